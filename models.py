"""
Data models shared by the chat and media features.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class Platform(Enum):
    """Supported media source platforms."""

    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"


class MediaType(Enum):
    """Coarse media category inferred from a file extension."""

    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"
    UNKNOWN = "unknown"


class QueryIntent(Enum):
    """Query categories used to theme a locally composed answer."""

    DEFINITION = "definition"
    HOWTO = "howto"
    EXPLANATION = "explanation"
    COMPARISON = "comparison"
    REVIEW = "review"
    HISTORICAL = "historical"
    NEWS = "news"
    BENEFITS = "benefits"
    DRAWBACKS = "drawbacks"
    GENERAL = "general"


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SearchResult:
    """One ranked hit returned by a search provider."""

    title: str
    url: str
    snippet: str
    position: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "position": self.position,
        }


@dataclass
class StoredFile:
    """Metadata for one entry of the flat-file store."""

    filename: str
    size_bytes: int
    created_at: datetime
    modified_at: datetime
    media_type: MediaType = MediaType.UNKNOWN
    data: Optional[bytes] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "type": self.media_type.value,
            "size": self.size_bytes,
            "url": f"/api/files?filename={self.filename}",
            "createdAt": self.created_at.isoformat(),
            "modifiedAt": self.modified_at.isoformat(),
        }


@dataclass
class DownloadRequest:
    """Transient input of a single downloader call."""

    source_url: str
    platform: Platform
    requested_quality: Optional[str] = None


@dataclass
class ChatTurn:
    role: Role
    content: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_message(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}
