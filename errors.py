"""
Error types, logging setup and user-facing error messages.
"""

import logging


def setup_logging(
    level: str = "INFO",
    format_string: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
) -> logging.Logger:
    """Configure root logging once and return module logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(numeric_level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(format_string))
    root_logger.addHandler(console_handler)
    return logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status: int = 500


class ValidationError(AppError):
    """Missing or malformed request input."""

    status = 400


class NotFoundError(AppError):
    status = 404


class StoredFileNotFound(NotFoundError):
    def __init__(self, filename: str):
        super().__init__("File not found")
        self.filename = filename


class UpstreamFailure(AppError):
    """An outbound provider call failed; absorbed by fallback chains."""

    status = 502

    def __init__(self, provider: str, detail: str):
        super().__init__(f"{provider} failed: {detail}")
        self.provider = provider


APOLOGY_MESSAGE = (
    "I apologize, but I'm experiencing technical difficulties at the moment. "
    "Please try again later."
)


class ErrorManager:
    """Convert internal exceptions to compact user-facing messages."""

    def to_user_message(self, error: Exception) -> str:
        if isinstance(error, AppError) and not isinstance(error, UpstreamFailure):
            return str(error)

        msg = str(error).lower()

        if "timeout" in msg or "timed out" in msg:
            return "⏱️ The request took too long. Please try again in a moment."

        if "disk" in msg or "space" in msg:
            return "💾 The media library is out of space. Please try again later."

        return APOLOGY_MESSAGE


error_manager = ErrorManager()
