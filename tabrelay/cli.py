"""CLI entry point for the tabrelay HTTP service."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn

from tabrelay.api.app import create_app
from tabrelay.browser.connection import BrowserConnection
from tabrelay.browser.driver import PlaywrightDriver
from tabrelay.core.config import Settings
from tabrelay.core.logging import setup_logging
from tabrelay.tabs.service import TabService

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


def load_settings(path: Path) -> Settings:
    """Load settings from YAML when the file exists, else from the environment."""
    if path.exists():
        return Settings.from_yaml(path)
    return Settings()


async def serve(settings: Settings) -> int:
    """Run the HTTP service until interrupted.

    Returns:
        Process exit code.
    """
    connection = BrowserConnection(settings.browser)
    if not await connection.connect():
        logger.error("Browser unavailable, not starting server")
        return 1

    driver = PlaywrightDriver(
        connection, navigation_timeout_ms=settings.browser.navigation_timeout_ms
    )
    service = TabService(driver, default_expiration=settings.tabs.default_expiration)
    app = create_app(service)

    host, port = settings.server.host, settings.server.port
    logger.info(f"Starting server at http://{host}:{port}")
    config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)
    try:
        # Open tabs are closed by the app's lifespan shutdown
        await server.serve()
    finally:
        await connection.disconnect()
    return 0


def main() -> int:
    """Parse arguments and run the service."""
    parser = argparse.ArgumentParser(
        description="Serve remote-controllable browser tabs over HTTP"
    )
    parser.add_argument(
        "--config", "-c",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to settings YAML file"
    )
    parser.add_argument("--host", help="Bind address (overrides settings)")
    parser.add_argument("--port", "-p", type=int, help="Bind port (overrides settings)")
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    settings = load_settings(Path(args.config))
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port

    level = "DEBUG" if args.debug else settings.log_level
    setup_logging(level)

    logger.info("=== tabrelay ===")
    try:
        return asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
