"""Shared test fixtures."""

import socket
from unittest.mock import patch

import pytest

from linkradar_archive.archive.jobs import reset_queue
from linkradar_archive.config import Settings, get_settings
from linkradar_archive.storage import InMemoryArchiveStore, reset_store

PUBLIC_IP = "93.184.216.34"


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Isolate cached settings, store and queue between tests."""
    get_settings.cache_clear()
    reset_store()
    reset_queue()
    yield
    get_settings.cache_clear()
    reset_store()
    reset_queue()


@pytest.fixture
def fake_dns():
    """Replace DNS with a hostname -> addresses table.

    Hosts missing from the table resolve to a public address; hosts ending in
    .invalid fail to resolve. Tests may add entries to the returned dict.
    """
    table: dict[str, list[str]] = {
        "localhost": ["127.0.0.1"],
        "metadata.internal": ["169.254.169.254"],
        "intranet.example.com": ["10.0.0.5"],
        "mixed.example.com": [PUBLIC_IP, "192.168.1.10"],
    }

    async def resolve(hostname: str) -> list[str]:
        if hostname.endswith(".invalid"):
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return table.get(hostname, [PUBLIC_IP])

    with patch("linkradar_archive.fetching.url_validator.resolve_host", new=resolve):
        yield table


@pytest.fixture
def settings() -> Settings:
    """Default archival settings, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def store() -> InMemoryArchiveStore:
    return InMemoryArchiveStore()
