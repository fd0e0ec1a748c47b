"""
Unit tests for the flat-file store.
"""

import asyncio
import os

import pytest

from errors import StoredFileNotFound, ValidationError
from models import MediaType
from storage import FileStore, content_type_for, media_type_for


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("a.jpg", "image/jpeg"),
        ("a.JPEG", "image/jpeg"),
        ("a.png", "image/png"),
        ("a.svg", "image/svg+xml"),
        ("a.mp3", "audio/mpeg"),
        ("a.wav", "audio/wav"),
        ("a.mp4", "video/mp4"),
        ("a.mkv", "video/x-matroska"),
        ("a.txt", "text/plain"),
        ("a.pdf", "application/pdf"),
        ("a.bin", "application/octet-stream"),
        ("noextension", "application/octet-stream"),
    ],
)
def test_content_type_for(filename, expected):
    assert content_type_for(filename) == expected


def test_media_type_for():
    assert media_type_for("x.webp") == MediaType.IMAGE
    assert media_type_for("x.flac") == MediaType.AUDIO
    assert media_type_for("x.mov") == MediaType.VIDEO
    assert media_type_for("x.docx") == MediaType.DOCUMENT
    assert media_type_for("x.zip") == MediaType.UNKNOWN


def test_write_then_read(tmp_path):
    store = FileStore(str(tmp_path / "db"))

    stored = asyncio.run(store.write("clip.mp4", b"abc"))

    assert stored.size_bytes == 3
    assert stored.media_type == MediaType.VIDEO
    assert stored.data == b"abc"
    assert asyncio.run(store.stat("clip.mp4")).data is None
    assert asyncio.run(store.read("clip.mp4")) == b"abc"
    assert asyncio.run(store.exists("clip.mp4"))


def test_write_truncates_existing(tmp_path):
    store = FileStore(str(tmp_path))
    asyncio.run(store.write("note.txt", b"long content"))
    asyncio.run(store.write("note.txt", b"short"))
    assert asyncio.run(store.read("note.txt")) == b"short"


def test_read_missing_raises_not_found(tmp_path):
    store = FileStore(str(tmp_path))
    with pytest.raises(StoredFileNotFound):
        asyncio.run(store.read("missing.mp4"))


@pytest.mark.parametrize("filename", ["../etc/passwd", "../../secret.txt", "sub/dir.txt", "", "/etc/passwd"])
def test_resolve_rejects_paths_outside_root(tmp_path, filename):
    store = FileStore(str(tmp_path))
    with pytest.raises(ValidationError):
        store.resolve(filename)


@pytest.mark.parametrize("filename", ["youtube_a\r\nX-Injected: 1.wav", "tab\tname.txt", "bell\x07.mp4", "del\x7f.jpg"])
def test_resolve_rejects_control_characters(tmp_path, filename):
    store = FileStore(str(tmp_path))
    with pytest.raises(ValidationError, match="Invalid filename"):
        store.resolve(filename)


def test_list_skips_reserved_and_sorts_newest_first(tmp_path):
    store = FileStore(str(tmp_path))
    for name in ("old.jpg", "new.wav", "custom.db"):
        (tmp_path / name).write_bytes(b"x")
    (tmp_path / "folder").mkdir()
    os.utime(tmp_path / "old.jpg", (1_000_000, 1_000_000))
    os.utime(tmp_path / "new.wav", (2_000_000, 2_000_000))

    entries = asyncio.run(store.list())

    assert [entry.filename for entry in entries] == ["new.wav", "old.jpg"]
    assert entries[0].media_type == MediaType.AUDIO


def test_list_missing_root_is_empty(tmp_path):
    store = FileStore(str(tmp_path / "absent"))
    assert asyncio.run(store.list()) == []
