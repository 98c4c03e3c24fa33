"""Shared test fixtures."""

from collections.abc import Generator
from datetime import timedelta

import httpx
import pytest
from fastapi.testclient import TestClient
from mac_vendor_lookup import VendorNotFoundError

import presenceboard.main as main_module
import presenceboard.registry.vendors as vendors_module
from presenceboard.client.mock import MockBackend
from presenceboard.dashboard.controller import DashboardController
from presenceboard.main import app


class FakeMacLookup:
    """Offline stand-in for the OUI database."""

    vendors = {"AABBCC": "Acme Devices"}

    def lookup(self, mac: str) -> str:
        vendor = self.vendors.get(mac[:6])
        if vendor is None:
            raise VendorNotFoundError(mac)
        return vendor


@pytest.fixture(autouse=True)
def _offline_vendor_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(vendors_module, "_mac_lookup", FakeMacLookup())


@pytest.fixture
def backend() -> MockBackend:
    return MockBackend()


@pytest.fixture
def http(backend: MockBackend) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url="http://backend.test", transport=backend.transport())


@pytest.fixture
def controller(http: httpx.AsyncClient) -> DashboardController:
    return DashboardController(http, consider_home=timedelta(minutes=5))


@pytest.fixture
def client(
    backend: MockBackend, monkeypatch: pytest.MonkeyPatch
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient whose lifespan talks to the mock backend."""

    def _mock_client(cfg) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url="http://backend.test", transport=backend.transport())

    monkeypatch.setattr(main_module, "create_http_client", _mock_client)
    with TestClient(app) as c:
        yield c
