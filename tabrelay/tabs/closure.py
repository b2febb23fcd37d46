"""Tab closure with best-effort cookie cleanup."""
import asyncio
import logging
from typing import Any, Optional

from ..browser.driver import BrowserDriver
from ..core.errors import DriverError, OperationError
from .models import TabSession
from .registry import SessionRegistry

logger = logging.getLogger(__name__)


async def close_page(driver: BrowserDriver, page: Any) -> None:
    """Close a page, wrapping driver failures.

    Raises:
        OperationError: If the driver fails to close the page.
    """
    try:
        await driver.close_page(page)
    except DriverError as e:
        raise OperationError(f"Failed to close tab: {e}") from e


class ClosureCoordinator:
    """Removes a tab from the registry and releases its page.

    Cookie cleanup never prevents the page from being closed, but a cookie
    failure is still reported once the close itself has succeeded.
    """

    def __init__(self, registry: SessionRegistry, driver: BrowserDriver) -> None:
        self._registry = registry
        self._driver = driver

    async def close(self, tab_id: str) -> None:
        """Close the tab with the given id.

        Raises:
            NotFoundError: If the tab is not live (never opened or already closed).
            OperationError: If cookie cleanup or the page close failed.
        """
        session = await self._registry.remove(tab_id)
        self._cancel_expiry(session)

        cookie_error = await self._clear_cookies(session)

        try:
            await close_page(self._driver, session.page)
        except OperationError as close_error:
            if cookie_error is None:
                raise
            raise OperationError(
                "Failed to close tab after cookie cleanup error. "
                f"cookie_error: {cookie_error}; close_error: {close_error}"
            ) from close_error

        if cookie_error is not None:
            raise cookie_error
        logger.info(f"Closed tab {tab_id}")

    def _cancel_expiry(self, session: TabSession) -> None:
        expiry = session.expiry
        # The expiry task itself runs this close path and must not cancel itself
        if expiry is None or expiry.done() or expiry is asyncio.current_task():
            return
        expiry.cancel()
        logger.debug(f"Cancelled pending expiry for tab {session.id}")

    async def _clear_cookies(self, session: TabSession) -> Optional[OperationError]:
        """Delete the page's cookies, returning the failure instead of raising."""
        try:
            cookies = await self._driver.get_cookies(session.page)
        except DriverError as e:
            logger.warning(f"Failed to read cookies for tab {session.id}: {e}")
            return OperationError(f"Failed to get cookies: {e}")

        if not cookies:
            return None

        try:
            await self._driver.delete_cookies(session.page, cookies)
        except DriverError as e:
            logger.warning(f"Failed to delete cookies for tab {session.id}: {e}")
            return OperationError(f"Failed to delete cookies: {e}")

        logger.info(f"Deleted {len(cookies)} cookies for tab {session.id}")
        return None
