"""
Entry point for the CKS AI web service.
"""

import asyncio
import logging
import signal
import sys
from typing import Optional

from aiohttp import web
from dotenv import load_dotenv

load_dotenv()

import config  # noqa: E402  (reads the environment populated above)
from errors import setup_logging  # noqa: E402
from handlers import CONTEXT_KEY, AppContext, WebHandlers, error_middleware  # noqa: E402
from providers import ProviderRegistry  # noqa: E402
from storage import FileStore  # noqa: E402

shutdown_event = asyncio.Event()


def create_app(context: Optional[AppContext] = None) -> web.Application:
    """Build the application around one shared context."""
    if context is None:
        context = AppContext.create(
            store=FileStore(config.STORE_DIR),
            registry=ProviderRegistry.from_config(),
        )

    app = web.Application(middlewares=[error_middleware])
    app[CONTEXT_KEY] = context
    WebHandlers(app=app, context=context)

    async def on_startup(app: web.Application) -> None:
        await app[CONTEXT_KEY].store.ensure_root()
        logging.getLogger(__name__).info(
            "Store at %s, capabilities %s",
            app[CONTEXT_KEY].store.root,
            app[CONTEXT_KEY].registry.describe(),
        )

    async def on_shutdown(app: web.Application) -> None:
        await app[CONTEXT_KEY].echo.close()

    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)
    return app


async def main() -> None:
    logger = setup_logging(level=config.LOG_LEVEL, format_string=config.LOG_FORMAT)
    logger.info("Starting CKS AI server")

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    runner = None
    try:
        runner = web.AppRunner(create_app())
        await runner.setup()
        site = web.TCPSite(runner, host=config.HOST, port=config.PORT)
        await site.start()
        logger.info("Server running on %s:%s", config.HOST, config.PORT)
        await shutdown_event.wait()
    except Exception:
        logger.exception("Fatal startup/runtime error")
        sys.exit(1)
    finally:
        if runner is not None:
            await runner.cleanup()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
