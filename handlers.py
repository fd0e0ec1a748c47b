"""
aiohttp route handlers for the chat, media library and downloader features.
"""

import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Set

from aiohttp import WSCloseCode, WSMsgType, web

from errors import AppError, ValidationError, error_manager
from managers import ChatManager, MediaManager
from models import utcnow
from providers import ProviderRegistry
from storage import FileStore, content_type_for
from utils import sanitize_user_input

logger = logging.getLogger(__name__)


class EchoChannel:
    """Websocket test channel: answers every ``test`` event with an echo."""

    def __init__(self) -> None:
        self.sockets: Set[web.WebSocketResponse] = set()

    async def handle(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(heartbeat=30)
        await ws.prepare(request)

        connection_id = uuid.uuid4().hex[:12]
        self.sockets.add(ws)
        logger.info("Echo client connected: %s", connection_id)
        try:
            async for message in ws:
                if message.type == WSMsgType.TEXT:
                    await ws.send_json(self.reply(message.data))
                elif message.type == WSMsgType.ERROR:
                    logger.warning("Echo client %s error: %s", connection_id, ws.exception())
        finally:
            self.sockets.discard(ws)
            logger.info("Echo client disconnected: %s", connection_id)
        return ws

    @staticmethod
    def reply(raw: str) -> Dict[str, Any]:
        try:
            payload = json.loads(raw)
        except ValueError:
            payload = {"event": "test", "data": raw}

        if not isinstance(payload, dict) or payload.get("event") != "test":
            return {"event": "error", "message": "Unsupported event"}
        return {
            "event": "test-response",
            "message": "Server received test message",
            "data": payload.get("data"),
            "timestamp": utcnow().isoformat(),
        }

    async def close(self) -> None:
        for ws in list(self.sockets):
            await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")


@dataclass
class AppContext:
    """Process-wide collaborators, created once and shared by every request."""

    store: FileStore
    registry: ProviderRegistry
    chat: ChatManager
    media: MediaManager
    echo: EchoChannel = field(default_factory=EchoChannel)

    @classmethod
    def create(cls, store: FileStore, registry: ProviderRegistry, **media_options: Any) -> "AppContext":
        return cls(
            store=store,
            registry=registry,
            chat=ChatManager(registry),
            media=MediaManager(store, registry, **media_options),
        )


CONTEXT_KEY = web.AppKey("context", AppContext)


@web.middleware
async def error_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except AppError as error:
        if error.status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, error)
        return web.json_response({"error": str(error)}, status=error.status)
    except Exception as error:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return web.json_response(
            {"error": "Internal server error", "details": str(error)},
            status=500,
        )


async def read_json_body(request: web.Request) -> Dict[str, Any]:
    """Parse a JSON object body; anything else reads as an empty object."""
    try:
        body = await request.json()
    except (ValueError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


class WebHandlers:
    """Registers HTTP routes and maps requests onto the managers."""

    def __init__(self, app: web.Application, context: AppContext):
        self.app = app
        self.context = context
        self._register_handlers()

    def _register_handlers(self) -> None:
        router = self.app.router
        router.add_get("/", self.handle_health)
        router.add_get("/health", self.handle_health)
        router.add_post("/api/chat", self.handle_chat)
        router.add_get("/api/files", self.handle_file)
        router.add_get("/api/download/file", self.handle_file)
        router.add_post("/api/download", self.handle_download)
        router.add_get("/api/youtube-downloader", self.handle_youtube_info)
        router.add_post("/api/youtube-downloader", self.handle_youtube)
        for path in ("/api/media", "/api/real-media"):
            router.add_get(path, self.handle_media)
            router.add_post(path, self.handle_media)
        router.add_get("/ws", self.context.echo.handle)

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "capabilities": self.context.registry.describe()})

    async def handle_chat(self, request: web.Request) -> web.Response:
        body = await read_json_body(request)
        message = body.get("message")
        message = sanitize_user_input(message) if isinstance(message, str) else ""
        if not message:
            raise ValidationError("Message is required")

        try:
            payload = await self.context.chat.answer(message)
        except Exception as error:
            logger.exception("Chat request failed")
            return web.json_response(
                {
                    "response": error_manager.to_user_message(error),
                    "sources": [],
                    "timestamp": utcnow().isoformat(),
                    "error": str(error),
                },
                status=500,
            )
        return web.json_response(payload)

    async def handle_file(self, request: web.Request) -> web.Response:
        filename = request.query.get("filename", "").strip()
        if not filename:
            raise ValidationError("Filename is required")

        data = await self.context.media.fetch_file(filename)
        return web.Response(
            body=data,
            content_type=content_type_for(filename),
            headers={
                "Content-Disposition": f'attachment; filename="{os.path.basename(filename)}"',
                "Cache-Control": "no-cache",
            },
        )

    async def handle_media(self, request: web.Request) -> web.Response:
        action = request.query.get("action")
        kind = request.query.get("type")
        if request.method == "POST" and action is None:
            body = await read_json_body(request)
            action = body.get("action")
            kind = body.get("type")

        media = self.context.media
        if action == "download":
            files = await media.generate_samples(kind)
            return web.json_response(
                {
                    "success": True,
                    "message": f"Generated {len(files)} files",
                    "files": media.describe_files(files),
                }
            )

        files = await media.list_files()
        return web.json_response(
            {"success": True, "files": media.describe_files(files), "totalFiles": len(files)}
        )

    async def handle_download(self, request: web.Request) -> web.Response:
        body = await read_json_body(request)
        media = self.context.media
        download_request = media.parse_request(body.get("url"), body.get("platform"))
        return web.json_response(await media.build_download_options(download_request))

    async def handle_youtube_info(self, request: web.Request) -> web.Response:
        return web.json_response(await self.context.media.youtube_info(request.query.get("url")))

    async def handle_youtube(self, request: web.Request) -> web.Response:
        body = await read_json_body(request)
        media = self.context.media
        url = body.get("url")
        action = body.get("action")

        media.require_video_id(url)
        if action == "info":
            return web.json_response(await media.youtube_info(url))
        if action == "download" and body.get("quality"):
            return web.json_response(await media.youtube_download(url, body.get("quality")))
        raise ValidationError("Invalid action")
