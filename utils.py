"""
Utilities for URL parsing, validation and file naming.
"""

import re
import time
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlparse

from config import PLATFORM_HOSTS
from models import Platform

YOUTUBE_ID_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/.*[?&]v=([^&\n?#]+)"),
)


def parse_platform(value: str) -> Optional[Platform]:
    """Map a request platform string onto a Platform, or None."""
    if not value or not isinstance(value, str):
        return None
    try:
        return Platform(value.strip().lower())
    except ValueError:
        return None


def is_valid_platform_url(url: str, platform: Platform) -> bool:
    """Check that the URL hostname belongs to the platform allow-list."""
    try:
        parsed = urlparse(url)
    except (TypeError, ValueError):
        return False
    if parsed.scheme.lower() not in {"http", "https"}:
        return False
    hostname = (parsed.hostname or "").lower()
    if not hostname:
        return False
    return any(host in hostname for host in PLATFORM_HOSTS[platform.value])


def extract_content_id(url: str, platform: Platform) -> str:
    """Pull the content identifier out of a platform URL."""
    try:
        parsed = urlparse(url)
    except (TypeError, ValueError):
        return "unknown"

    segments = parsed.path.split("/")
    if platform == Platform.YOUTUBE:
        if "youtu.be" in (parsed.hostname or ""):
            return parsed.path[1:] or "unknown"
        return parse_qs(parsed.query).get("v", ["unknown"])[0] or "unknown"
    if platform == Platform.TIKTOK:
        return segments[-1] or "unknown"
    if platform == Platform.INSTAGRAM:
        # /p/<id>/ keeps a trailing slash
        return (segments[-2] if len(segments) >= 2 else "") or "unknown"
    return "unknown"


def extract_youtube_video_id(url: str) -> Optional[str]:
    if not url:
        return None
    for pattern in YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def sanitize_filename(filename: str) -> str:
    """Return filesystem-safe filename."""
    safe_name = re.sub(r'[<>:"/\\|?*]', "_", filename)
    safe_name = CONTROL_CHARS_RE.sub("", safe_name)
    safe_name = safe_name.strip().strip(".")
    return (safe_name or "media")[:255]


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def format_file_size(bytes_size: int) -> str:
    """Human readable file size."""
    if bytes_size is None:
        return "0.0 B"

    size = float(max(bytes_size, 0))
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024.0 or unit == "TB":
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return "0.0 B"


def sanitize_user_input(text: str, max_length: int = 4000) -> str:
    """Remove control chars (newlines kept) and trim length."""
    if not text:
        return ""
    sanitized = re.sub(r"[\x00-\x09\x0b-\x1f\x7f-\x9f]", "", text)
    return sanitized.strip()[:max_length]
