"""
Flat-file media store backed by a single directory.
"""

import logging
import os
from datetime import datetime, timezone
from stat import S_ISREG
from typing import Iterable, List

import aiofiles
import aiofiles.os

from config import (
    AUDIO_EXTENSIONS,
    CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
    DOCUMENT_EXTENSIONS,
    IMAGE_EXTENSIONS,
    RESERVED_DB_FILENAME,
    VIDEO_EXTENSIONS,
)
from errors import StoredFileNotFound, ValidationError
from models import MediaType, StoredFile
from utils import CONTROL_CHARS_RE

logger = logging.getLogger(__name__)


def content_type_for(filename: str) -> str:
    """MIME type by extension; unknown extensions map to a generic binary type."""
    ext = os.path.splitext(filename)[1].lower()
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def media_type_for(filename: str) -> MediaType:
    ext = os.path.splitext(filename)[1].lower()
    if ext in IMAGE_EXTENSIONS:
        return MediaType.IMAGE
    if ext in AUDIO_EXTENSIONS:
        return MediaType.AUDIO
    if ext in VIDEO_EXTENSIONS:
        return MediaType.VIDEO
    if ext in DOCUMENT_EXTENSIONS:
        return MediaType.DOCUMENT
    return MediaType.UNKNOWN


def _from_timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class FileStore:
    """Filename-keyed byte store. Writes truncate in place, without a temp file."""

    def __init__(self, root: str, reserved: Iterable[str] = (RESERVED_DB_FILENAME,)):
        self.root = os.path.abspath(root)
        self.reserved = frozenset(reserved)

    async def ensure_root(self) -> None:
        await aiofiles.os.makedirs(self.root, exist_ok=True)

    def resolve(self, filename: str) -> str:
        """Join filename into the store root, refusing anything that escapes it."""
        if not filename or not isinstance(filename, str) or "\x00" in filename:
            raise ValidationError("Filename is required")

        if CONTROL_CHARS_RE.search(filename):
            raise ValidationError("Invalid filename")

        path = os.path.abspath(os.path.join(self.root, filename))
        if os.path.dirname(path) != self.root:
            raise ValidationError("Invalid filename")
        return path

    async def exists(self, filename: str) -> bool:
        return await aiofiles.os.path.isfile(self.resolve(filename))

    async def read(self, filename: str) -> bytes:
        path = self.resolve(filename)
        try:
            async with aiofiles.open(path, "rb") as file:
                return await file.read()
        except (FileNotFoundError, IsADirectoryError) as error:
            raise StoredFileNotFound(filename) from error

    async def write(self, filename: str, data: bytes) -> StoredFile:
        path = self.resolve(filename)
        await self.ensure_root()
        async with aiofiles.open(path, "wb") as file:
            await file.write(data)
        logger.info("Stored %s (%d bytes)", filename, len(data))
        stored = await self.stat(filename)
        stored.data = data
        return stored

    async def stat(self, filename: str) -> StoredFile:
        path = self.resolve(filename)
        try:
            stats = await aiofiles.os.stat(path)
        except FileNotFoundError as error:
            raise StoredFileNotFound(filename) from error
        return self._to_stored_file(filename, stats)

    async def list(self) -> List[StoredFile]:
        """Metadata for every stored file, most recently modified first."""
        if not await aiofiles.os.path.isdir(self.root):
            return []

        entries: List[StoredFile] = []
        for name in await aiofiles.os.listdir(self.root):
            if name in self.reserved:
                continue
            path = os.path.join(self.root, name)
            try:
                stats = await aiofiles.os.stat(path)
            except FileNotFoundError:
                # removed between listdir and stat
                continue
            if not S_ISREG(stats.st_mode):
                continue
            entries.append(self._to_stored_file(name, stats))

        entries.sort(key=lambda item: item.modified_at, reverse=True)
        return entries

    @staticmethod
    def _to_stored_file(filename: str, stats: os.stat_result) -> StoredFile:
        created = getattr(stats, "st_birthtime", stats.st_ctime)
        return StoredFile(
            filename=filename,
            size_bytes=stats.st_size,
            created_at=_from_timestamp(created),
            modified_at=_from_timestamp(stats.st_mtime),
            media_type=media_type_for(filename),
        )
