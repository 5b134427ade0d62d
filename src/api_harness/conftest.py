"""Pytest configuration and shared fixtures for harness unit tests."""

from collections.abc import Iterator
from typing import Any

import pytest
from loguru import logger
from stubs.stub_jsonplaceholder import JsonPlaceholderStub, JsonPlaceholderStubAdapter

from api_harness.config import HarnessConfig
from api_harness.http_client import HttpClient
from api_harness.placeholder_client import JsonPlaceholderClient

STUB_BASE_URL = "https://stub.jsonplaceholder.test"


@pytest.fixture
def config() -> HarnessConfig:
    return HarnessConfig(base_url=STUB_BASE_URL, use_stub=True)


@pytest.fixture
def stub() -> JsonPlaceholderStub:
    return JsonPlaceholderStub()


@pytest.fixture
def stub_adapter(stub: JsonPlaceholderStub) -> JsonPlaceholderStubAdapter:
    return JsonPlaceholderStubAdapter(stub)


@pytest.fixture
def http_client(stub_adapter: JsonPlaceholderStubAdapter) -> HttpClient:
    """An :class:`HttpClient` whose session is served by the in-memory stub."""
    client = HttpClient(STUB_BASE_URL, timeout_ms=5000)
    client.session.mount(STUB_BASE_URL, stub_adapter)
    return client


@pytest.fixture
def placeholder_client(http_client: HttpClient) -> JsonPlaceholderClient:
    return JsonPlaceholderClient(http_client)


@pytest.fixture
def log_records() -> Iterator[list[dict[str, Any]]]:
    """
    Capture every loguru record emitted during the test.

    Each entry holds the level name, the message and the bound ``extra`` values.
    """
    records: list[dict[str, Any]] = []

    def _sink(message: Any) -> None:
        record = message.record
        records.append(
            {
                "level": record["level"].name,
                "message": record["message"],
                "extra": dict(record["extra"]),
            }
        )

    handler_id = logger.add(_sink, level="DEBUG")
    yield records
    logger.remove(handler_id)
