"""Chromium launch and CDP connection management."""
import asyncio
import json
import logging
import urllib.request
from typing import Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

from ..core.config import BrowserConfig

logger = logging.getLogger(__name__)

# Flags for long-running headless stability
CHROME_ARGS: list[str] = [
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--disable-features=TranslateUI",
    "--disable-component-extensions-with-background-pages",
    "--disable-background-timer-throttling",
    "--disable-hang-monitor",
    "--no-default-browser-check",
    "--disable-popup-blocking",
    "--disable-features=IsolateOrigins,site-per-process",
    "--disable-blink-features=AutomationControlled",
    "--disable-gpu",
    "--no-sandbox",
]


class BrowserConnection:
    """Owns the Playwright runtime and the Chromium instance tabs are opened in.

    Connects over CDP to an already running Chrome when ``cdp_url`` is
    configured, otherwise launches a dedicated Chromium.
    """

    def __init__(self, config: BrowserConfig) -> None:
        """Initialize browser connection settings.

        Args:
            config: Browser section of the application settings.
        """
        self._config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._persistent: Optional[BrowserContext] = None

    @property
    def browser(self) -> Browser:
        """Get the connected browser instance.

        Raises:
            RuntimeError: If not connected.
        """
        if not self._browser:
            raise RuntimeError("Not connected. Call connect() first.")
        return self._browser

    async def new_page(self) -> Page:
        """Open a blank page in its own browser context.

        With a persistent profile every page shares the profile's context.

        Raises:
            RuntimeError: If not connected.
        """
        if self._persistent is not None:
            return await self._persistent.new_page()
        # Pages from Browser.new_page own their context; closing the page closes it
        return await self.browser.new_page(
            user_agent=self._config.user_agent,
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
            locale=self._config.locale,
        )

    def _check_cdp_endpoint(self) -> bool:
        """Verify CDP endpoint is responding."""
        try:
            url = f"{self._config.cdp_url.rstrip('/')}/json/version"
            with urllib.request.urlopen(url, timeout=5) as resp:
                data = json.loads(resp.read().decode())
                logger.debug(f"CDP ready: {data.get('Browser', 'unknown')}")
                return True
        except Exception as e:
            logger.debug(f"CDP not ready: {e}")
            return False

    async def connect(self) -> bool:
        """Launch Chromium or attach to the configured CDP endpoint.

        Returns:
            True if the browser is ready, False otherwise.
        """
        if self._config.cdp_url:
            return await self._connect_over_cdp()
        return await self._launch()

    async def _launch(self) -> bool:
        logger.info(f"Launching Chromium (headless={self._config.headless})")
        logger.debug(f"Chrome args: {CHROME_ARGS}")
        try:
            self._playwright = await async_playwright().start()
            if self._config.user_data_dir:
                self._persistent = await self._playwright.chromium.launch_persistent_context(
                    self._config.user_data_dir,
                    headless=self._config.headless,
                    args=CHROME_ARGS,
                    user_agent=self._config.user_agent,
                    viewport={
                        "width": self._config.viewport_width,
                        "height": self._config.viewport_height,
                    },
                    locale=self._config.locale,
                )
            else:
                self._browser = await self._playwright.chromium.launch(
                    headless=self._config.headless,
                    args=CHROME_ARGS,
                )
            logger.info("Chromium launched")
            return True
        except Exception as e:
            logger.error(f"Failed to launch browser: {e}")
            await self._cleanup()
            return False

    async def _connect_over_cdp(self) -> bool:
        """Connect to Chrome with exponential backoff retry."""
        max_retries = self._config.connect_retries
        for attempt in range(max_retries):
            wait_time = min(self._config.retry_delay * (2**attempt), 30)

            if not await asyncio.to_thread(self._check_cdp_endpoint):
                logger.info(
                    f"Attempt {attempt + 1}/{max_retries}: "
                    f"CDP not ready, waiting {wait_time:.1f}s"
                )
                await asyncio.sleep(wait_time)
                continue

            try:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.connect_over_cdp(
                    self._config.cdp_url
                )
                logger.info("Connected to Chrome successfully")
                return True
            except Exception as e:
                logger.warning(f"Connection failed: {e}")
                await self._cleanup()
                await asyncio.sleep(wait_time)

        logger.error("Failed to connect after all retries")
        return False

    async def _cleanup(self) -> None:
        """Clean up playwright resources."""
        if self._persistent:
            try:
                await self._persistent.close()
            except Exception as e:
                logger.debug(f"Profile context close during cleanup failed: {e}")
        if self._browser:
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug(f"Browser close during cleanup failed: {e}")
        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"Playwright stop during cleanup failed: {e}")
        self._playwright = None
        self._browser = None
        self._persistent = None

    async def disconnect(self) -> None:
        """Close the browser connection."""
        logger.info("Disconnecting from browser")
        await self._cleanup()
