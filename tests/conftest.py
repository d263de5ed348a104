"""Shared pytest fixtures for pagekit tests."""

import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clean_pagekit_env(monkeypatch):
    """Keep host PAGEKIT_* variables from leaking into settings resolution."""
    import os

    for key in list(os.environ):
        if key.startswith("PAGEKIT_"):
            monkeypatch.delenv(key, raising=False)
