"""Composition root for the tab layer."""
import logging
from typing import Optional

from ..browser.driver import BrowserDriver
from ..core.errors import TabRelayError
from .actions import ActionExecutor
from .closure import ClosureCoordinator
from .lifecycle import TabLifecycleManager
from .models import (
    DEFAULT_EXPIRATION_SECONDS,
    ClickRequest,
    ExecuteRequest,
    ExistsRequest,
    ExtractRequest,
    FillRequest,
    OpenRequest,
)
from .registry import SessionRegistry
from .stabilizer import NavigationStabilizer

logger = logging.getLogger(__name__)


class TabService:
    """Owns one session registry and the components that share it.

    Each service instance is independent, so tests can build as many as
    they like against fake drivers.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        registry: Optional[SessionRegistry] = None,
        stabilizer: Optional[NavigationStabilizer] = None,
        lifecycle: Optional[TabLifecycleManager] = None,
        default_expiration: int = DEFAULT_EXPIRATION_SECONDS,
    ) -> None:
        """Wire the tab components.

        Args:
            driver: Browser driver all components call into.
            registry: Registry to share; a fresh one is created by default.
            stabilizer: Click stabilizer; defaults to the fixed timings.
            lifecycle: Lifecycle manager override, mainly for tests.
            default_expiration: Auto-close delay for opens that omit one.
        """
        self.driver = driver
        self.default_expiration = default_expiration
        self.registry = registry if registry is not None else SessionRegistry()
        self.closer = ClosureCoordinator(self.registry, driver)
        if lifecycle is None:
            lifecycle = TabLifecycleManager(self.registry, driver, self.closer)
        self.lifecycle = lifecycle
        self.actions = ActionExecutor(self.registry, driver, stabilizer)

    async def open(self, request: OpenRequest) -> str:
        expiration = request.expiration
        if expiration is None:
            expiration = self.default_expiration
        return await self.lifecycle.open(request.url, expiration)

    async def close(self, tab_id: str) -> None:
        await self.closer.close(tab_id)

    async def fill(self, tab_id: str, request: FillRequest) -> None:
        await self.actions.fill(tab_id, request.inputs)

    async def click(self, tab_id: str, request: ClickRequest) -> str:
        return await self.actions.click(tab_id, request.selector)

    async def exists(self, tab_id: str, request: ExistsRequest) -> bool:
        return await self.actions.exists(tab_id, request.selector)

    async def extract(self, tab_id: str, request: ExtractRequest) -> str:
        return await self.actions.extract(tab_id, request.selector)

    async def execute(self, tab_id: str, request: ExecuteRequest) -> str:
        return await self.actions.execute(tab_id, request.script, request.selector)

    async def screenshot(self, tab_id: str) -> bytes:
        return await self.actions.screenshot(tab_id)

    async def humanize(self, tab_id: str) -> None:
        await self.actions.humanize(tab_id)

    async def shutdown(self) -> None:
        """Cancel pending expiries and close every live tab."""
        await self.lifecycle.cancel_expiries()
        tab_ids = await self.registry.ids()
        if tab_ids:
            logger.info(f"Closing {len(tab_ids)} open tabs")
        for tab_id in tab_ids:
            try:
                await self.closer.close(tab_id)
            except TabRelayError as e:
                logger.warning(f"Failed to close tab {tab_id} during shutdown: {e}")
