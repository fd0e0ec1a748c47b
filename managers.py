"""
Chat answering and simulated media download orchestration.
"""

import asyncio
import copy
import functools
import logging
import os
import random
import time
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from builders import build_jpeg, build_mp4, build_wav
from config import (
    DEFAULT_VIDEO_PROFILE,
    DOWNLOAD_BASE_URL,
    DOWNLOADER_DELAY_SECONDS,
    PHOTO_SIZE,
    SAMPLE_AUDIO_FREQUENCY_HZ,
    SAMPLE_AUDIO_SECONDS,
    SAMPLE_IMAGE_SIZE,
    SAMPLE_VIDEO_PROFILE,
    VIDEO_QUALITY_PROFILES,
)
from errors import StoredFileNotFound, ValidationError
from fallback import FallbackChain, Producer
from formatter import compose_answer, format_sources
from models import DownloadRequest, Platform, SearchResult, StoredFile, utcnow
from providers import ProviderRegistry
from storage import FileStore
from utils import (
    extract_content_id,
    extract_youtube_video_id,
    format_file_size,
    is_valid_platform_url,
    parse_platform,
    sanitize_filename,
    timestamp_ms,
)

logger = logging.getLogger(__name__)

PLATFORM_OPTIONS: Dict[Platform, List[Dict[str, Any]]] = {
    Platform.YOUTUBE: [
        {"id": "1080p", "label": "Full HD (1080p)", "format": "MP4", "size": "~50-100MB", "quality": "1920x1080", "fps": 30},
        {"id": "720p", "label": "HD (720p)", "format": "MP4", "size": "~25-50MB", "quality": "1280x720", "fps": 30},
        {"id": "360p", "label": "SD (360p)", "format": "MP4", "size": "~10-20MB", "quality": "640x360", "fps": 30},
        {"id": "audio", "label": "Audio Only", "format": "WAV", "size": "~3-10MB", "quality": "16-bit PCM", "type": "audio"},
    ],
    Platform.TIKTOK: [
        {"id": "hd", "label": "HD Video", "format": "MP4", "size": "~15-30MB", "quality": "1080x1920", "fps": 30},
        {"id": "sd", "label": "SD Video", "format": "MP4", "size": "~5-15MB", "quality": "720x1280", "fps": 30},
        {"id": "audio", "label": "Audio Only", "format": "WAV", "size": "~2-8MB", "quality": "16-bit PCM", "type": "audio"},
    ],
    Platform.INSTAGRAM: [
        {"id": "photo", "label": "Photo", "format": "JPG", "size": "~200KB-5MB", "quality": "1080x1080", "type": "image"},
        {"id": "video", "label": "Video Post", "format": "MP4", "size": "~5-50MB", "quality": "1080x1920", "fps": 30, "type": "video"},
        {"id": "story", "label": "Story", "format": "MP4", "size": "~2-10MB", "quality": "1080x1920", "fps": 30, "type": "story"},
        {"id": "reel", "label": "Reel", "format": "MP4", "size": "~2-20MB", "quality": "1080x1920", "fps": 30, "type": "reel"},
    ],
}

PLATFORM_METADATA: Dict[Platform, Dict[str, Any]] = {
    Platform.YOUTUBE: {"title": "YouTube Video ({content_id})", "platform": "YouTube", "type": "Video", "duration": "Variable"},
    Platform.TIKTOK: {"title": "TikTok Video ({content_id})", "platform": "TikTok", "type": "Short-form Video", "duration": "15-60 seconds"},
    Platform.INSTAGRAM: {
        "title": "Instagram Content ({content_id})",
        "platform": "Instagram",
        "type": "Mixed Media",
        "formats": ["Photo", "Video", "Story", "Reel"],
    },
}

SAMPLE_KINDS: Dict[str, Tuple[str, ...]] = {
    "all": ("images", "audio", "videos"),
    "images": ("images",),
    "audio": ("audio",),
    "videos": ("videos",),
}
SAMPLES_PER_KIND = 2

YOUTUBE_AUDIO_QUALITIES = {"audio", "audio only"}


class ChatManager:
    """Answers chat messages through the search and completion fallback chains."""

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    async def search(self, query: str) -> List[SearchResult]:
        chain = FallbackChain(self.registry.search_producers(query), name="search")
        return await chain.run()

    async def answer(self, message: str) -> Dict[str, Any]:
        results = await self.search(message)

        chain = FallbackChain(self.registry.completion_producers(message, results), name="completion")
        ai_content = await chain.run("")
        if ai_content:
            response = ai_content + format_sources(results)
        else:
            response = compose_answer(message, results)

        return {
            "response": response,
            "sources": [result.to_dict() for result in results],
            "timestamp": utcnow().isoformat(),
        }


class MediaManager:
    """Fabricates download options and synthesizes placeholder media files."""

    def __init__(
        self,
        store: FileStore,
        registry: ProviderRegistry,
        delay_seconds: float = DOWNLOADER_DELAY_SECONDS,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.registry = registry
        self.delay_seconds = max(0.0, delay_seconds)
        self.rng = rng or random.Random()

    async def _build(self, builder: Callable[..., bytes], *args: Any) -> bytes:
        """Run a CPU-bound builder off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(builder, *args))

    # Downloader options

    def parse_request(self, url: Any, platform: Any) -> DownloadRequest:
        if not url or not platform:
            raise ValidationError("URL and platform are required")

        parsed_platform = parse_platform(platform)
        if parsed_platform is None:
            raise ValidationError("Invalid platform. Supported platforms: youtube, tiktok, instagram")

        if not isinstance(url, str) or not is_valid_platform_url(url, parsed_platform):
            raise ValidationError(f"Invalid {parsed_platform.value} URL format")

        return DownloadRequest(source_url=url, platform=parsed_platform)

    async def build_download_options(self, request: DownloadRequest) -> Dict[str, Any]:
        started = time.monotonic()
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        platform = request.platform.value
        content_id = extract_content_id(request.source_url, request.platform)
        download_id = str(timestamp_ms())
        base_url = f"{DOWNLOAD_BASE_URL}/{platform}"

        downloads = []
        for option in PLATFORM_OPTIONS[request.platform]:
            ext = option["format"].lower()
            filename = sanitize_filename(f"{platform}_{content_id}_{option['id']}.{ext}")
            downloads.append(
                {
                    **option,
                    "downloadId": f"{download_id}_{option['id']}",
                    "url": f"{base_url}/{download_id}_{option['id']}.{ext}",
                    "filename": filename,
                    "available": self.rng.random() > 0.1,
                    "downloadCount": self.rng.randint(1000, 10999),
                    "actualDownloadUrl": "/api/download/file?" + urlencode(
                        {"platform": platform, "contentId": content_id, "format": option["id"], "filename": filename}
                    ),
                }
            )

        metadata = copy.deepcopy(PLATFORM_METADATA[request.platform])
        metadata["title"] = metadata["title"].format(content_id=content_id)
        available = [item for item in downloads if item["available"]]

        logger.info("Prepared %d %s download options for %s", len(downloads), platform, content_id)
        return {
            "success": True,
            "downloadId": download_id,
            "platform": platform,
            "originalUrl": request.source_url,
            "contentId": content_id,
            "downloads": downloads,
            "metadata": metadata,
            "processingTime": f"{time.monotonic() - started:.1f} seconds",
            "message": (
                f"{platform.capitalize()} content processed successfully! "
                "Choose your preferred download option."
            ),
            "disclaimer": "🎬 Demo files with synthetic content; no media is fetched from the platform.",
            "stats": {
                "totalDownloads": sum(item["downloadCount"] for item in downloads),
                "availableOptions": len(available),
                "successRate": round(len(available) / len(downloads) * 100),
            },
        }

    # YouTube downloader

    @staticmethod
    def require_video_id(url: Any) -> str:
        if not url:
            raise ValidationError("YouTube URL is required")
        video_id = extract_youtube_video_id(url) if isinstance(url, str) else None
        if not video_id:
            raise ValidationError("Invalid YouTube URL")
        return video_id

    async def youtube_info(self, url: Any) -> Dict[str, Any]:
        started = time.monotonic()
        video_id = self.require_video_id(url)

        query = f"YouTube video {video_id} title duration information"
        chain = FallbackChain(self.registry.web_search_producers(query), name="youtube-info")
        results = await chain.run()

        title = f"YouTube Video {video_id}"
        for result in results:
            if video_id in result.title or video_id in result.snippet:
                title = result.title
                break

        expire = timestamp_ms() + 3_600_000
        stream_base = "https://rr5---sn-4g5ednsz.googlevideo.com/videoplayback"
        formats = [
            ("720p", "~15MB", 22, "video/mp4"),
            ("360p", "~8MB", 18, "video/mp4"),
            ("Audio Only", "~3MB", 140, "audio/wav"),
        ]
        return {
            "success": True,
            "videoInfo": {
                "videoId": video_id,
                "title": title,
                "thumbnail": f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg",
                "duration": "Unknown",
                "availableFormats": [
                    {
                        "quality": quality,
                        "size": size,
                        "url": f"{stream_base}?expire={expire}&id={video_id}&itag={itag}&source=youtube",
                        "type": mime,
                    }
                    for quality, size, itag, mime in formats
                ],
            },
            "processingTime": f"{time.monotonic() - started:.1f}s",
        }

    async def youtube_download(self, url: Any, quality: Any) -> Dict[str, Any]:
        started = time.monotonic()
        video_id = self.require_video_id(url)
        if not quality or not isinstance(quality, str):
            raise ValidationError("Invalid action")

        key = quality.strip().lower()
        safe_id = sanitize_filename(video_id)
        if key in YOUTUBE_AUDIO_QUALITIES:
            filename = f"youtube_{safe_id}_audio_{timestamp_ms()}.wav"
            data = await self._build(build_wav, SAMPLE_AUDIO_SECONDS, SAMPLE_AUDIO_FREQUENCY_HZ)
        elif key in VIDEO_QUALITY_PROFILES:
            width, height, duration, payload = VIDEO_QUALITY_PROFILES[key]
            filename = f"youtube_{safe_id}_{key}_{timestamp_ms()}.mp4"
            data = await self._build(build_mp4, duration, width, height, payload, 1000, None, self.rng)
        else:
            raise ValidationError(f"Unsupported quality: {quality}")

        stored = await self.store.write(filename, data)
        logger.info("YouTube video synthesized: %s (%d bytes)", filename, stored.size_bytes)
        return {
            "success": True,
            "downloadInfo": {
                "filename": filename,
                "size": stored.size_bytes,
                "sizeFormatted": format_file_size(stored.size_bytes),
                "downloadUrl": f"/api/files?filename={filename}",
                "quality": quality,
                "videoId": video_id,
            },
            "processingTime": f"{time.monotonic() - started:.1f}s",
        }

    # Media library

    async def list_files(self) -> List[StoredFile]:
        return await self.store.list()

    def _sample_producers(self, kind: str) -> List[Producer[bytes]]:
        if kind == "images":
            width, height = SAMPLE_IMAGE_SIZE
            return [
                Producer("jpeg-gradient", lambda: self._build(build_jpeg, width, height, self.rng)),
                Producer("jpeg-thumbnail", lambda: self._build(build_jpeg, 64, 48, self.rng)),
            ]
        if kind == "audio":
            return [
                Producer(
                    "wav-tone",
                    lambda: self._build(build_wav, SAMPLE_AUDIO_SECONDS, SAMPLE_AUDIO_FREQUENCY_HZ),
                ),
                Producer("wav-short-tone", lambda: self._build(build_wav, 1, SAMPLE_AUDIO_FREQUENCY_HZ)),
            ]
        width, height, duration, payload = SAMPLE_VIDEO_PROFILE
        return [
            Producer(
                "mp4-pattern",
                lambda: self._build(build_mp4, duration, width, height, payload, 1000, None, self.rng),
            ),
            Producer("mp4-minimal", lambda: self._build(build_mp4, 1000, 160, 90, 1000, 1000, None, self.rng)),
        ]

    async def generate_samples(self, kind: Optional[str] = "all") -> List[StoredFile]:
        if kind in (None, ""):
            kind = "all"
        kinds = SAMPLE_KINDS.get(kind.lower()) if isinstance(kind, str) else None
        if kinds is None:
            raise ValidationError("Invalid type. Supported types: all, images, audio, videos")

        stamp = timestamp_ms()
        extensions = {"images": ("image", "jpg"), "audio": ("audio", "wav"), "videos": ("video", "mp4")}
        generated: List[StoredFile] = []
        for sample_kind in kinds:
            label, ext = extensions[sample_kind]
            for index in range(1, SAMPLES_PER_KIND + 1):
                data = await FallbackChain(self._sample_producers(sample_kind), name=f"sample-{label}").run(b"")
                if not data:
                    logger.error("No generator produced a %s sample", label)
                    continue
                generated.append(await self.store.write(f"sample_{label}_{index}_{stamp}.{ext}", data))

        logger.info("Generated %d sample files", len(generated))
        return generated

    # File delivery

    def synthesis_plan(self, filename: str) -> Optional[Callable[[], Any]]:
        """Return a builder call for names eligible for on-demand synthesis."""
        name = os.path.basename(filename).lower()
        stem, ext = os.path.splitext(name)
        if not any(name.startswith(f"{platform.value}_") for platform in Platform):
            return None

        if ext == ".mp4":
            tokens = stem.split("_")
            profile = next(
                (VIDEO_QUALITY_PROFILES[token] for token in tokens if token in VIDEO_QUALITY_PROFILES),
                DEFAULT_VIDEO_PROFILE,
            )
            width, height, duration, payload = profile
            return lambda: self._build(build_mp4, duration, width, height, payload, 1000, None, self.rng)
        if ext == ".jpg":
            width, height = PHOTO_SIZE
            return lambda: self._build(build_jpeg, width, height, self.rng)
        if ext == ".wav":
            return lambda: self._build(build_wav, SAMPLE_AUDIO_SECONDS, SAMPLE_AUDIO_FREQUENCY_HZ)
        return None

    async def fetch_file(self, filename: str) -> bytes:
        """Read a stored file, synthesizing and persisting eligible names on first request."""
        try:
            return await self.store.read(filename)
        except StoredFileNotFound:
            plan = self.synthesis_plan(filename)
            if plan is None:
                raise

        logger.info("Synthesizing %s on demand", filename)
        stored = await self.store.write(filename, await plan())
        return stored.data

    @staticmethod
    def describe_files(files: List[StoredFile]) -> List[Dict[str, Any]]:
        return [dict(item.to_dict(), sizeFormatted=format_file_size(item.size_bytes)) for item in files]
