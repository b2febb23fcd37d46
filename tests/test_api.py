"""Tests for the HTTP surface."""
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from tabrelay import __version__
from tabrelay.api.app import create_app
from tabrelay.tabs.closure import ClosureCoordinator
from tabrelay.tabs.lifecycle import TabLifecycleManager
from tabrelay.tabs.registry import SessionRegistry
from tabrelay.tabs.service import TabService
from tabrelay.tabs.stabilizer import NavigationStabilizer

from conftest import PNG_BYTES, ExpiryTimer, FakeClock, FakeDriver, FakePage


def form_page() -> FakePage:
    page = FakePage(title="Sign in")
    page.add_element("#user")
    page.add_element("#submit")
    page.add_element("h1", text="Welcome back")
    page.results["1+1"] = 2
    return page


@pytest.fixture
def api_driver() -> FakeDriver:
    driver = FakeDriver()
    driver.page_factory = form_page
    return driver


@pytest.fixture
def client(api_driver: FakeDriver) -> Iterator[TestClient]:
    registry = SessionRegistry()
    clock = FakeClock()
    lifecycle = TabLifecycleManager(
        registry, api_driver, ClosureCoordinator(registry, api_driver), sleep=ExpiryTimer()
    )
    service = TabService(
        api_driver,
        registry=registry,
        lifecycle=lifecycle,
        stabilizer=NavigationStabilizer(
            api_driver, clock=clock, sleep=clock.sleep, navigation_timeout=0.01
        ),
    )
    with TestClient(create_app(service)) as test_client:
        yield test_client


def open_tab(client: TestClient) -> str:
    response = client.post("/api/v1/tab/open", json={"url": "https://example.com"})
    assert response.status_code == 200
    return response.text


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}


class TestTabRoutes:
    def test_open_returns_tab_id(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/tab/open", json={"url": "https://example.com", "expirationSeconds": 5}
        )

        assert response.status_code == 200
        assert len(response.text) == 36

    def test_open_invalid_url_is_bad_request(self, client: TestClient, api_driver: FakeDriver) -> None:
        response = client.post("/api/v1/tab/open", json={"url": "nonsense"})

        assert response.status_code == 400
        assert response.text.startswith("Operation Error: Invalid URL")
        assert api_driver.calls == []

    def test_close_twice(self, client: TestClient) -> None:
        tab_id = open_tab(client)

        assert client.delete(f"/api/v1/tabs/{tab_id}/close").status_code == 200

        response = client.delete(f"/api/v1/tabs/{tab_id}/close")
        assert response.status_code == 404
        assert response.text == f"tab_id {tab_id}"

    def test_fill(self, client: TestClient, api_driver: FakeDriver) -> None:
        tab_id = open_tab(client)

        response = client.post(
            f"/api/v1/tabs/{tab_id}/fill",
            json={"inputs": [{"selector": "#user", "value": "alice"}]},
        )

        assert response.status_code == 200
        assert api_driver.pages[-1].typed == ["alice"]

    def test_fill_missing_selector_is_not_found(self, client: TestClient) -> None:
        tab_id = open_tab(client)

        response = client.post(
            f"/api/v1/tabs/{tab_id}/fill",
            json={"inputs": [{"selector": "#missing", "value": "y"}]},
        )

        assert response.status_code == 404
        assert "#missing" in response.text

    def test_screenshot(self, client: TestClient) -> None:
        tab_id = open_tab(client)

        response = client.get(f"/api/v1/tabs/{tab_id}/screenshot")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == PNG_BYTES

    def test_humanize(self, client: TestClient) -> None:
        tab_id = open_tab(client)
        assert client.post(f"/api/v1/tabs/{tab_id}/humanize").status_code == 200

    def test_unknown_tab_screenshot_is_not_found(self, client: TestClient) -> None:
        assert client.get("/api/v1/tabs/nope/screenshot").status_code == 404


class TestElementRoutes:
    def test_click_returns_title(self, client: TestClient) -> None:
        tab_id = open_tab(client)

        response = client.post(f"/api/v1/tabs/{tab_id}/element/click", json={"selector": "#submit"})

        assert response.status_code == 200
        assert response.text == "Sign in"

    def test_exists(self, client: TestClient) -> None:
        tab_id = open_tab(client)

        found = client.post(f"/api/v1/tabs/{tab_id}/element/exists", json={"selector": "#user"})
        missing = client.post(f"/api/v1/tabs/{tab_id}/element/exists", json={"selector": "#nope"})
        no_tab = client.post("/api/v1/tabs/nope/element/exists", json={"selector": "#user"})

        assert (found.status_code, found.text) == (200, "true")
        assert (missing.status_code, missing.text) == (200, "false")
        assert (no_tab.status_code, no_tab.text) == (200, "false")

    def test_extract(self, client: TestClient) -> None:
        tab_id = open_tab(client)

        response = client.post(f"/api/v1/tabs/{tab_id}/element/extract", json={"selector": "h1"})

        assert response.text == "Welcome back"

    def test_execute_accepts_function_alias(self, client: TestClient) -> None:
        tab_id = open_tab(client)

        response = client.post(f"/api/v1/tabs/{tab_id}/element/execute", json={"function": "1+1"})

        assert response.status_code == 200
        assert response.text == "2"

    def test_execute_operation_error_is_bad_request(
        self, client: TestClient, api_driver: FakeDriver
    ) -> None:
        tab_id = open_tab(client)
        api_driver.fail("evaluate", "ReferenceError: x is not defined")

        response = client.post(f"/api/v1/tabs/{tab_id}/element/execute", json={"script": "x"})

        assert response.status_code == 400
        assert response.text == "Operation Error: Failed to evaluate JS: ReferenceError: x is not defined"


class TestShutdown:
    def test_app_shutdown_closes_open_tabs(self, api_driver: FakeDriver) -> None:
        registry = SessionRegistry()
        lifecycle = TabLifecycleManager(
            registry, api_driver, ClosureCoordinator(registry, api_driver), sleep=ExpiryTimer()
        )
        service = TabService(api_driver, registry=registry, lifecycle=lifecycle)

        with TestClient(create_app(service)) as client:
            open_tab(client)
            open_tab(client)

        assert len(registry) == 0
        assert all(page.closed for page in api_driver.pages)
