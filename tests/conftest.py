import pytest
from typer.testing import CliRunner
from unittest.mock import MagicMock

import httpx

from yardcli.domain.models.api import ClientConfig
from yardcli.domain.models.common import UnitOfMeasure
from yardcli.domain.models.pricing import Address, LineItem, Material
from yardcli.infrastructure.cli.display import ConsoleDisplay
from yardcli.infrastructure.config import settings

CONFIG_ENV_VARS = [
    "PRICING_BASE_URL", "PRICING_API_KEY", "PRICING_TIMEOUT_MS", "PRICING_MAX_RETRIES",
    "TAX_BASE_URL", "TAX_API_KEY", "TAX_TIMEOUT_MS", "TAX_MAX_RETRIES", "TAX_DEFAULT_RATE",
    "STORE_STREET", "STORE_CITY", "STORE_STATE", "STORE_ZIP", "DELIVERY_BASE_FEE",
    "LOGGING_LEVEL", "LOGGING_FILE", "LOGGING_FORMAT",
]


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keeps the developer's ~/.yardcli, .env and environment out of every test."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"{settings.ENV_PREFIX}{name}", raising=False)
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", True)
    yield
    settings.clear_test_config()


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def events():
    """A list that doubles as an event sink (use events.append)."""
    return []


def make_http_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose network is the given request handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), timeout=None)


@pytest.fixture
def http_client_factory():
    return make_http_client


@pytest.fixture
def client_config():
    return ClientConfig(base_url="https://pricing.example.test/functions/v1", api_key="secret", max_retries=2)


@pytest.fixture
def address():
    return Address(street="1 Elm St", city="Windsor", state="CO", postal_code="80550")


@pytest.fixture
def mulch_items():
    mulch = Material(name="Cedar Mulch", unit=UnitOfMeasure.YARD, category="Mulch")
    return [LineItem(material=mulch, quantity=13)]


@pytest.fixture
def mock_console_display(mocker):
    """Mocks the ConsoleDisplay to capture output easily.
    Patches the ConsoleDisplay where main.py instantiates it.
    """
    mock = mocker.MagicMock(spec=ConsoleDisplay)
    mocker.patch('yardcli.main.ConsoleDisplay', return_value=mock)
    return mock
