"""
Runtime configuration for the CKS AI web service.
"""

import os
from typing import Dict, Tuple


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip() == "1"


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))

STORE_DIR: str = os.getenv("STORE_DIR", os.path.join(os.getcwd(), "db"))
RESERVED_DB_FILENAME: str = "custom.db"

SERPER_API_KEY: str = os.getenv("SERPER_API_KEY", "").strip()
SERPER_URL: str = "https://google.serper.dev/search"
SEARCH_RESULT_COUNT: int = 5

AI_ENABLED: bool = _flag("AI_ENABLED")
AI_API_KEY: str = os.getenv("AI_API_KEY", "").strip()
AI_API_URL: str = os.getenv("AI_API_URL", "https://api.openai.com/v1/chat/completions").strip()
AI_MODEL: str = os.getenv("AI_MODEL", "gpt-4o-mini").strip()
AI_TEMPERATURE: float = 0.7
AI_MAX_TOKENS: int = 1200

PROVIDER_TIMEOUT_SECONDS: int = int(os.getenv("PROVIDER_TIMEOUT_SECONDS", "20"))
DOWNLOADER_DELAY_SECONDS: float = float(os.getenv("DOWNLOADER_DELAY_SECONDS", "1.5"))
DOWNLOAD_BASE_URL: str = os.getenv("DOWNLOAD_BASE_URL", "https://cksdowloads.media")

SYSTEM_PROMPT: str = (
    "You are CKS AI, a professional AI assistant created by CKS-Tech. "
    "You provide visually appealing, well-structured responses with proper formatting.\n\n"
    "Guidelines (for formatting in the response):\n"
    "- Use emojis to make responses engaging and scannable\n"
    "- Use bullet points (•) and numbered lists for clarity\n"
    "- Use **bold text** for emphasis and headers\n"
    "- Use proper spacing and line breaks for readability\n"
    "- Create visual hierarchy with different formatting elements\n\n"
    "When web search results are available, include a Sources section at the bottom.\n\n"
    "Keep replies concise, helpful, and polite."
)

PLATFORM_HOSTS: Dict[str, Tuple[str, ...]] = {
    "youtube": ("youtube.com", "youtu.be"),
    "tiktok": ("tiktok.com", "douyin.com"),
    "instagram": ("instagram.com", "instagr.am"),
}

# (width, height, duration in timescale units, mdat payload bytes)
VIDEO_QUALITY_PROFILES: Dict[str, Tuple[int, int, int, int]] = {
    "1080p": (1920, 1080, 12000, 1_200_000),
    "720p": (1280, 720, 9000, 800_000),
    "360p": (640, 360, 6000, 300_000),
    "hd": (1080, 1920, 9000, 600_000),
    "sd": (720, 1280, 6000, 300_000),
    "video": (1080, 1920, 6000, 400_000),
    "story": (1080, 1920, 3000, 200_000),
    "reel": (1080, 1920, 3000, 200_000),
}
DEFAULT_VIDEO_PROFILE: Tuple[int, int, int, int] = VIDEO_QUALITY_PROFILES["360p"]

SAMPLE_IMAGE_SIZE: Tuple[int, int] = (800, 600)
SAMPLE_AUDIO_SECONDS: int = 3
SAMPLE_AUDIO_FREQUENCY_HZ: float = 440.0
SAMPLE_VIDEO_PROFILE: Tuple[int, int, int, int] = (640, 360, 3000, 500_000)
PHOTO_SIZE: Tuple[int, int] = (1080, 1080)

CONTENT_TYPES: Dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".mp4": "video/mp4",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
    ".wmv": "video/x-ms-wmv",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
    ".rtf": "application/rtf",
}
DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp")
AUDIO_EXTENSIONS: tuple[str, ...] = (".mp3", ".wav", ".ogg", ".aac", ".flac")
VIDEO_EXTENSIONS: tuple[str, ...] = (".mp4", ".avi", ".mov", ".wmv", ".webm", ".mkv")
DOCUMENT_EXTENSIONS: tuple[str, ...] = (".pdf", ".doc", ".docx", ".txt", ".rtf")
