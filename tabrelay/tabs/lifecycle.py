"""Opening tabs and scheduling their automatic expiry."""
import asyncio
import logging
import uuid
from typing import Awaitable, Callable

from pydantic import AnyUrl, TypeAdapter, ValidationError

from ..browser.driver import BrowserDriver
from ..core.errors import DriverError, NotFoundError, OperationError, TabRelayError
from .closure import ClosureCoordinator, close_page
from .models import DEFAULT_EXPIRATION_SECONDS, TabSession, clamp_expiration
from .registry import SessionRegistry

logger = logging.getLogger(__name__)

_URL_ADAPTER = TypeAdapter(AnyUrl)


def parse_url(url: str) -> str:
    """Validate an absolute URL and return its normalized form.

    Raises:
        OperationError: If the URL cannot be parsed.
    """
    try:
        return str(_URL_ADAPTER.validate_python(url))
    except ValidationError as e:
        reason = e.errors()[0]["msg"] if e.errors() else str(e)
        raise OperationError(f"Invalid URL: {reason}") from e


def new_tab_id() -> str:
    return str(uuid.uuid4())


class TabLifecycleManager:
    """Creates navigated tabs and closes them again when they expire."""

    def __init__(
        self,
        registry: SessionRegistry,
        driver: BrowserDriver,
        closer: ClosureCoordinator,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        id_factory: Callable[[], str] = new_tab_id,
    ) -> None:
        """Initialize the lifecycle manager.

        Args:
            registry: Registry new tabs are stored in.
            driver: Driver used to create and navigate pages.
            closer: Close path shared with manual closes.
            sleep: Coroutine used to wait out the expiration delay.
            id_factory: Generator for fresh tab ids.
        """
        self._registry = registry
        self._driver = driver
        self._closer = closer
        self._sleep = sleep
        self._id_factory = id_factory
        self._expiry_tasks: set[asyncio.Task] = set()
        # Expiry tasks still waiting out their delay
        self._sleeping: set[asyncio.Task] = set()

    async def open(self, url: str, expiration: int = DEFAULT_EXPIRATION_SECONDS) -> str:
        """Open a new tab, navigate it and schedule its auto-close.

        Either a fully navigated tab is registered or nothing is; pages
        created along a failed path are closed before the error is raised.

        Args:
            url: Absolute URL to navigate to.
            expiration: Seconds until auto-close, clamped to [1, 3600].

        Returns:
            The new tab id.

        Raises:
            OperationError: If the URL is invalid or any driver step fails.
        """
        target = parse_url(url)

        try:
            page = await self._driver.new_page()
        except DriverError as e:
            raise OperationError(f"Failed to create new page: {e}") from e

        try:
            await self._driver.apply_stealth_profile(page)
        except DriverError as e:
            await close_page(self._driver, page)
            raise OperationError(f"Failed to apply stealth profile: {e}") from e

        try:
            await self._driver.navigate(page, target)
        except DriverError as e:
            await close_page(self._driver, page)
            raise OperationError(f"Failed to navigate to URL: {e}") from e

        session = TabSession(id=self._id_factory(), page=page)
        await self._registry.insert(session)

        delay = clamp_expiration(expiration)
        session.expiry = self._schedule_expiry(session.id, delay)
        logger.info(f"Opened tab {session.id} at {target} (expires in {delay}s)")
        return session.id

    def _schedule_expiry(self, tab_id: str, delay: int) -> asyncio.Task:
        task = asyncio.create_task(self._expire_after(tab_id, delay), name=f"expire-{tab_id}")
        self._expiry_tasks.add(task)
        self._sleeping.add(task)
        task.add_done_callback(self._expiry_tasks.discard)
        task.add_done_callback(self._sleeping.discard)
        return task

    async def _expire_after(self, tab_id: str, delay: int) -> None:
        await self._sleep(delay)
        self._sleeping.discard(asyncio.current_task())
        await self.expire(tab_id, delay)

    async def expire(self, tab_id: str, after: float = 0) -> None:
        """Run the auto-close for a tab now. Never raises."""
        try:
            await self._closer.close(tab_id)
        except NotFoundError:
            logger.info(f"Tab {tab_id} already closed before expiry")
        except TabRelayError as e:
            logger.warning(f"Failed to auto-close tab {tab_id} after expiration: {e}")
        else:
            logger.info(f"Tab {tab_id} expired after {after} seconds")

    @property
    def pending_expiries(self) -> int:
        return len(self._expiry_tasks)

    async def cancel_expiries(self) -> None:
        """Cancel pending auto-closes and wait for every expiry task to finish.

        An expiry already past its delay is closing its tab and is left to
        complete, so its page is never abandoned half closed.
        """
        tasks = list(self._expiry_tasks)
        for task in tasks:
            if task in self._sleeping:
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
