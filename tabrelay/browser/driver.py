"""Browser driver contract and its Playwright implementation.

The tab layer only talks to a ``BrowserDriver``. Every method is async and
raises ``DriverError`` when the underlying protocol call fails, so the layer
above never depends on Playwright's exception types.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from ..core.errors import DriverError
from .connection import BrowserConnection
from .scripts import LOCATION_HREF_JS
from .stealth import LINUX_PROFILE, StealthProfile

logger = logging.getLogger(__name__)

Cookie = dict[str, Any]

T = TypeVar("T")


class BrowserDriver(Protocol):
    """Capabilities the tab layer needs from a browser remote-control client."""

    async def new_page(self) -> Any: ...

    async def navigate(self, page: Any, url: str) -> None: ...

    async def apply_stealth_profile(self, page: Any) -> None: ...

    async def find_element(self, page: Any, selector: str) -> Optional[Any]: ...

    async def click(self, element: Any) -> None: ...

    async def type_text(self, page: Any, text: str) -> None: ...

    async def evaluate(self, page: Any, script: str) -> Any: ...

    async def inner_text(self, element: Any) -> Optional[str]: ...

    async def get_cookies(self, page: Any) -> list[Cookie]: ...

    async def delete_cookies(self, page: Any, cookies: list[Cookie]) -> None: ...

    async def close_page(self, page: Any) -> None: ...

    async def screenshot(self, page: Any) -> bytes: ...

    async def wait_for_navigation(self, page: Any) -> None: ...

    async def current_url(self, page: Any) -> str: ...


def _driver_call(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Translate Playwright failures into ``DriverError``."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except PlaywrightError as e:
            raise DriverError(e.message) from e

    return wrapper


class PlaywrightDriver:
    """``BrowserDriver`` backed by Playwright's async API."""

    def __init__(
        self,
        connection: BrowserConnection,
        navigation_timeout_ms: int = 60000,
        profile: StealthProfile = LINUX_PROFILE,
    ) -> None:
        """Initialize the driver.

        Args:
            connection: Connected browser the pages are opened in.
            navigation_timeout_ms: Timeout for ``navigate`` page loads.
            profile: Fingerprint applied by ``apply_stealth_profile``.
        """
        self._connection = connection
        self._navigation_timeout_ms = navigation_timeout_ms
        self._profile = profile

    @_driver_call
    async def new_page(self) -> Page:
        return await self._connection.new_page()

    @_driver_call
    async def navigate(self, page: Page, url: str) -> None:
        response = await page.goto(
            url, wait_until="domcontentloaded", timeout=self._navigation_timeout_ms
        )
        if response is not None:
            logger.debug(f"Navigated to {url}: HTTP {response.status}")

    @_driver_call
    async def apply_stealth_profile(self, page: Page) -> None:
        await page.add_init_script(self._profile.init_script())
        await page.set_extra_http_headers(self._profile.extra_headers)

    @_driver_call
    async def find_element(self, page: Page, selector: str) -> Optional[ElementHandle]:
        return await page.query_selector(selector)

    @_driver_call
    async def click(self, element: ElementHandle) -> None:
        await element.click()

    @_driver_call
    async def type_text(self, page: Page, text: str) -> None:
        await page.keyboard.type(text)

    @_driver_call
    async def evaluate(self, page: Page, script: str) -> Any:
        return await page.evaluate(script)

    @_driver_call
    async def inner_text(self, element: ElementHandle) -> Optional[str]:
        return await element.inner_text()

    @_driver_call
    async def get_cookies(self, page: Page) -> list[Cookie]:
        return [dict(cookie) for cookie in await page.context.cookies(page.url)]

    @_driver_call
    async def delete_cookies(self, page: Page, cookies: list[Cookie]) -> None:
        for cookie in cookies:
            await page.context.clear_cookies(
                name=cookie["name"],
                domain=cookie.get("domain"),
                path=cookie.get("path"),
            )

    @_driver_call
    async def close_page(self, page: Page) -> None:
        await page.close()

    @_driver_call
    async def screenshot(self, page: Page) -> bytes:
        return await page.screenshot(full_page=True, type="png")

    @_driver_call
    async def wait_for_navigation(self, page: Page) -> None:
        """Return once the page's current navigation, if any, has loaded.

        Resolves immediately when nothing is pending. timeout=0 disables
        Playwright's own timeout; the caller bounds the wait.
        """
        await page.wait_for_load_state("load", timeout=0)

    @_driver_call
    async def current_url(self, page: Page) -> str:
        href = await page.evaluate(LOCATION_HREF_JS)
        if not isinstance(href, str):
            raise DriverError(f"location.href evaluated to {href!r}")
        return href
