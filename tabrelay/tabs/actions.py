"""Actions executed against open tabs."""
import json
import logging
from typing import Any, Optional

from ..browser.driver import BrowserDriver
from ..browser.scripts import (
    DOCUMENT_TITLE_JS,
    FOCUS_AND_CLEAR_OK,
    focus_and_clear_js,
    humanize_js,
)
from ..core.errors import DriverError, NotFoundError, OperationError, TabRelayError
from .models import UNIT_RESULT, UNKNOWN_TITLE, InputField
from .registry import SessionRegistry
from .stabilizer import NavigationStabilizer

logger = logging.getLogger(__name__)


def coerce_result(value: Any) -> str:
    """Render an evaluation result as text.

    Strings pass through verbatim, a missing value becomes ``"unit"`` and
    anything else is rendered as compact JSON.
    """
    if value is None:
        return UNIT_RESULT
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, separators=(",", ":"))
    except (TypeError, ValueError):
        return str(value)


class ActionExecutor:
    """Runs element and page actions for tabs looked up by id.

    Registry lookups never hold the registry lock while the driver works, and
    nothing here serializes actions against the same tab.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        driver: BrowserDriver,
        stabilizer: Optional[NavigationStabilizer] = None,
    ) -> None:
        self._registry = registry
        self._driver = driver
        self._stabilizer = stabilizer if stabilizer is not None else NavigationStabilizer(driver)

    async def _find_element(self, page: Any, selector: str) -> Any:
        try:
            element = await self._driver.find_element(page, selector)
        except DriverError as e:
            raise OperationError(
                f"Failed to find element with selector '{selector}': {e}"
            ) from e
        if element is None:
            raise NotFoundError(f"element with selector '{selector}'")
        return element

    async def click(self, tab_id: str, selector: str) -> str:
        """Click an element and return the title of the page it settles on.

        Raises:
            NotFoundError: If the tab or element is missing.
            OperationError: If the click or the navigation wait fails.
        """
        page = await self._registry.lookup(tab_id)
        element = await self._find_element(page, selector)

        try:
            await self._driver.click(element)
        except DriverError as e:
            raise OperationError(f"Failed to click element '{selector}': {e}") from e

        await self._stabilizer.settle(page, f"click '{selector}'")
        return await self._read_title(page)

    async def _read_title(self, page: Any) -> str:
        try:
            title = await self._driver.evaluate(page, DOCUMENT_TITLE_JS)
        except DriverError as e:
            logger.debug(f"Title read failed: {e}")
            return UNKNOWN_TITLE
        return title if isinstance(title, str) else UNKNOWN_TITLE

    async def fill(self, tab_id: str, inputs: list[InputField]) -> None:
        """Fill inputs one by one in request order.

        Stops at the first failure; fields filled before it stay filled.

        Raises:
            NotFoundError: If the tab or a selector is missing.
            OperationError: If preparing or typing into an element fails.
        """
        page = await self._registry.lookup(tab_id)
        for field in inputs:
            await self._fill_element(page, field.selector, field.value)

    async def _fill_element(self, page: Any, selector: str, value: str) -> None:
        try:
            status = await self._driver.evaluate(page, focus_and_clear_js(selector))
        except DriverError as e:
            raise OperationError(f"Failed to prepare element '{selector}': {e}") from e

        if status != FOCUS_AND_CLEAR_OK:
            raise NotFoundError(f"element with selector '{selector}'")

        if not value:
            return

        try:
            # Typed exactly as given, no normalization
            await self._driver.type_text(page, value)
        except DriverError as e:
            raise OperationError(f"Failed to type into element '{selector}': {e}") from e

    async def extract(self, tab_id: str, selector: str) -> str:
        """Get the inner text of an element, or an empty string."""
        page = await self._registry.lookup(tab_id)
        element = await self._find_element(page, selector)
        try:
            text = await self._driver.inner_text(element)
        except DriverError as e:
            raise OperationError(
                f"Failed to get content of element '{selector}': {e}"
            ) from e
        return text or ""

    async def execute(self, tab_id: str, script: str, selector: Optional[str] = None) -> str:
        """Evaluate a script in the page and return its result as text.

        When ``selector`` is given the element must exist, but the script
        still runs in page scope.

        Raises:
            NotFoundError: If the tab or element is missing.
            OperationError: If evaluation fails.
        """
        page = await self._registry.lookup(tab_id)
        if selector is not None:
            await self._find_element(page, selector)

        try:
            value = await self._driver.evaluate(page, script)
        except DriverError as e:
            raise OperationError(f"Failed to evaluate JS: {e}") from e
        return coerce_result(value)

    async def exists(self, tab_id: str, selector: str) -> bool:
        """Check for an element. Any failure counts as absent."""
        try:
            page = await self._registry.lookup(tab_id)
            await self._find_element(page, selector)
        except TabRelayError as e:
            logger.debug(f"exists({tab_id}, {selector!r}) -> False: {e}")
            return False
        return True

    async def screenshot(self, tab_id: str) -> bytes:
        """Capture a full-page PNG of the tab."""
        page = await self._registry.lookup(tab_id)
        try:
            return await self._driver.screenshot(page)
        except DriverError as e:
            raise OperationError(f"Failed to capture screenshot: {e}") from e

    async def humanize(self, tab_id: str) -> None:
        """Apply small human-like window, scroll and pointer activity."""
        page = await self._registry.lookup(tab_id)
        try:
            await self._driver.evaluate(page, humanize_js())
        except DriverError as e:
            raise OperationError(f"Failed to humanize tab: {e}") from e
