"""Post-click navigation stabilization.

A click may or may not navigate, and the driver's navigation signal can fire
before a redirect chain has finished. ``NavigationStabilizer`` turns that into
a bounded "the location stopped changing" wait. Every degraded outcome below
counts as settled; only an explicit driver error from the navigation wait
fails the caller.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from ..browser.driver import BrowserDriver
from ..core.errors import DriverError, OperationError
from .models import (
    NAVIGATION_WAIT_TIMEOUT_SECONDS,
    POLL_INTERVAL_SECONDS,
    STABILIZE_MAX_WAIT_SECONDS,
    STABLE_FOR_SECONDS,
)

logger = logging.getLogger(__name__)


class NavigationStabilizer:
    """Waits out possible navigation and redirects after an action."""

    def __init__(
        self,
        driver: BrowserDriver,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        navigation_timeout: float = NAVIGATION_WAIT_TIMEOUT_SECONDS,
        max_wait: float = STABILIZE_MAX_WAIT_SECONDS,
        stable_for: float = STABLE_FOR_SECONDS,
        poll_every: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the stabilizer.

        Args:
            driver: Driver used to observe the page.
            clock: Monotonic time source in seconds.
            sleep: Coroutine used between polls.
            navigation_timeout: Bound on the initial navigation wait.
            max_wait: Hard ceiling on the polling phase.
            stable_for: How long the location must stay unchanged.
            poll_every: Delay between location reads.
        """
        self._driver = driver
        self._clock = clock
        self._sleep = sleep
        self._navigation_timeout = navigation_timeout
        self._max_wait = max_wait
        self._stable_for = stable_for
        self._poll_every = poll_every

    async def settle(self, page: Any, action: str) -> None:
        """Wait for possible navigation, then for the location to stabilize.

        Args:
            page: Page the action ran against.
            action: Description used in error messages, e.g. ``click '#go'``.

        Raises:
            OperationError: If the driver reports an error while waiting
                for navigation.
        """
        await self._wait_for_possible_navigation(page, action)
        await self._wait_for_stable_location(page)

    async def _wait_for_possible_navigation(self, page: Any, action: str) -> None:
        try:
            await asyncio.wait_for(
                self._driver.wait_for_navigation(page), self._navigation_timeout
            )
        except asyncio.TimeoutError:
            # Many clicks never navigate
            logger.debug(f"No navigation within {self._navigation_timeout}s after {action}")
        except DriverError as e:
            raise OperationError(
                f"Failed while waiting for navigation after {action}: {e}"
            ) from e

    async def _read_location(self, page: Any) -> Optional[str]:
        try:
            return await self._driver.current_url(page)
        except DriverError as e:
            logger.debug(f"Location read failed, treating page as settled: {e}")
            return None

    async def _wait_for_stable_location(self, page: Any) -> None:
        last_href = await self._read_location(page)
        if last_href is None:
            return

        started = self._clock()
        last_change = started

        while True:
            now = self._clock()
            if now - started >= self._max_wait:
                logger.info(f"Location still changing after {self._max_wait}s, giving up: {last_href}")
                break
            if now - last_change >= self._stable_for:
                break

            await self._sleep(self._poll_every)

            href = await self._read_location(page)
            if href is None:
                break
            if href != last_href:
                logger.debug(f"Location changed: {last_href} -> {href}")
                last_href = href
                last_change = self._clock()
