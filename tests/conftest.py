"""Shared fixtures: an in-memory browser driver and deterministic timers."""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import pytest

from tabrelay.browser.scripts import DOCUMENT_TITLE_JS, FOCUS_AND_CLEAR_NOT_FOUND, FOCUS_AND_CLEAR_OK
from tabrelay.core.errors import DriverError
from tabrelay.tabs.lifecycle import TabLifecycleManager
from tabrelay.tabs.registry import SessionRegistry
from tabrelay.tabs.closure import ClosureCoordinator
from tabrelay.tabs.service import TabService
from tabrelay.tabs.stabilizer import NavigationStabilizer

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


@dataclass
class FakeElement:
    selector: str
    text: Optional[str] = ""
    clicks: int = 0
    on_click: Optional[Callable[[], None]] = None


@dataclass
class FakePage:
    url: str = "about:blank"
    title: str = "Example Domain"
    elements: dict[str, FakeElement] = field(default_factory=dict)
    cookies: list[dict] = field(default_factory=list)
    results: dict[str, Any] = field(default_factory=dict)
    hrefs: list[str] = field(default_factory=list)
    navigates: bool = False
    typed: list[str] = field(default_factory=list)
    cleared: list[str] = field(default_factory=list)
    scripts: list[str] = field(default_factory=list)
    stealth: bool = False
    closed: bool = False

    def add_element(self, selector: str, text: Optional[str] = "") -> FakeElement:
        element = FakeElement(selector=selector, text=text)
        self.elements[selector] = element
        return element

    def evaluate(self, script: str) -> Any:
        if script in self.results:
            return self.results[script]
        if script == DOCUMENT_TITLE_JS:
            return self.title
        if "document.querySelector(" in script:
            for selector in self.elements:
                if f"document.querySelector({json.dumps(selector)})" in script:
                    self.cleared.append(selector)
                    return FOCUS_AND_CLEAR_OK
            return FOCUS_AND_CLEAR_NOT_FOUND
        return None


class FakeDriver:
    """In-memory ``BrowserDriver`` that records calls and fails on demand."""

    def __init__(self) -> None:
        self.pages: list[FakePage] = []
        self.calls: list[str] = []
        self.failures: dict[str, str] = {}
        self.page_factory: Callable[[], FakePage] = FakePage
        self.gates: dict[str, asyncio.Event] = {}
        self.waiting: dict[str, int] = {}

    def fail(self, method: str, message: str = "boom") -> None:
        self.failures[method] = message

    def block(self, method: str) -> asyncio.Event:
        """Make calls to ``method`` wait until the returned event is set."""
        gate = asyncio.Event()
        self.gates[method] = gate
        return gate

    async def wait_until_blocked(self, method: str, count: int = 1) -> None:
        while self.waiting.get(method, 0) < count:
            await asyncio.sleep(0)

    def _call(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failures:
            raise DriverError(self.failures[method])

    async def _pass_gate(self, method: str) -> None:
        gate = self.gates.get(method)
        if gate is None:
            return
        self.waiting[method] = self.waiting.get(method, 0) + 1
        try:
            await gate.wait()
        finally:
            self.waiting[method] -= 1

    async def new_page(self) -> FakePage:
        self._call("new_page")
        page = self.page_factory()
        self.pages.append(page)
        return page

    async def navigate(self, page: FakePage, url: str) -> None:
        self._call("navigate")
        page.url = url

    async def apply_stealth_profile(self, page: FakePage) -> None:
        self._call("apply_stealth_profile")
        page.stealth = True

    async def find_element(self, page: FakePage, selector: str) -> Optional[FakeElement]:
        self._call("find_element")
        return page.elements.get(selector)

    async def click(self, element: FakeElement) -> None:
        self._call("click")
        element.clicks += 1
        if element.on_click:
            element.on_click()

    async def type_text(self, page: FakePage, text: str) -> None:
        self._call("type_text")
        page.typed.append(text)

    async def evaluate(self, page: FakePage, script: str) -> Any:
        self._call("evaluate")
        page.scripts.append(script)
        return page.evaluate(script)

    async def inner_text(self, element: FakeElement) -> Optional[str]:
        self._call("inner_text")
        return element.text

    async def get_cookies(self, page: FakePage) -> list[dict]:
        self._call("get_cookies")
        return list(page.cookies)

    async def delete_cookies(self, page: FakePage, cookies: list[dict]) -> None:
        self._call("delete_cookies")
        page.cookies = [c for c in page.cookies if c not in cookies]

    async def close_page(self, page: FakePage) -> None:
        self._call("close_page")
        await self._pass_gate("close_page")
        page.closed = True

    async def screenshot(self, page: FakePage) -> bytes:
        self._call("screenshot")
        await self._pass_gate("screenshot")
        return PNG_BYTES

    async def wait_for_navigation(self, page: FakePage) -> None:
        self._call("wait_for_navigation")
        if not page.navigates:
            await asyncio.Event().wait()

    async def current_url(self, page: FakePage) -> str:
        self._call("current_url")
        if page.hrefs:
            page.url = page.hrefs.pop(0)
        return page.url


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ExpiryTimer:
    """Stands in for the expiry sleep; only records the requested delay."""

    def __init__(self, block: bool = True) -> None:
        self.block = block
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.block:
            await asyncio.Event().wait()


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timer() -> ExpiryTimer:
    return ExpiryTimer()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def closer(registry: SessionRegistry, driver: FakeDriver) -> ClosureCoordinator:
    return ClosureCoordinator(registry, driver)


@pytest.fixture
async def lifecycle(registry, driver, closer, timer):
    manager = TabLifecycleManager(registry, driver, closer, sleep=timer)
    yield manager
    await manager.cancel_expiries()


@pytest.fixture
def stabilizer(driver: FakeDriver, clock: FakeClock) -> NavigationStabilizer:
    return NavigationStabilizer(driver, clock=clock, sleep=clock.sleep, navigation_timeout=0.01)


@pytest.fixture
async def service(driver, registry, stabilizer, lifecycle):
    return TabService(driver, registry=registry, stabilizer=stabilizer, lifecycle=lifecycle)


@pytest.fixture
async def open_tab(service: TabService, driver: FakeDriver) -> tuple[str, FakePage]:
    """A registered tab on https://example.com."""
    tab_id = await service.lifecycle.open("https://example.com", 30)
    return tab_id, driver.pages[-1]
