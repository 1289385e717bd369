"""Shared test fixtures for the Dialoqbase SDK."""

from collections.abc import Callable

import httpx
import pytest

from dialoqbase_sdk import DialoqbaseClient
from helpers import API_KEY, BASE_URL

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def make_client() -> Callable[[Handler], DialoqbaseClient]:
    """Build a client whose requests are answered by ``handler``."""

    def _make(handler: Handler) -> DialoqbaseClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return DialoqbaseClient(BASE_URL, API_KEY, http=http)

    return _make


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep DIALOQBASE_* variables from the host out of the tests."""
    for name in ("DIALOQBASE_URL", "DIALOQBASE_API_KEY", "DIALOQBASE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
