# tests/conftest.py
from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests.utils import (
    FakeEnhancer,
    FakeExtractor,
    InMemoryImageStorage,
    MemoryHistory,
    make_policy,
    png_bytes as _make_png,
)


# -------- Environment isolation --------
@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("PROPSCRAPE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    yield


# -------- Domain fixtures --------
@pytest.fixture
def policy(tmp_path: Path):
    return make_policy(tmp_path)


@pytest.fixture
def storage():
    return InMemoryImageStorage()


@pytest.fixture
def history():
    return MemoryHistory()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def enhancer():
    return FakeEnhancer()


@pytest.fixture
def png_bytes():
    """
    Fixture that returns a callable to generate PNG bytes.
    Usage:
        data = png_bytes(64, 64)
    """
    return _make_png


# -------- Pytest markers --------
def pytest_configure(config):
    config.addinivalue_line("markers", "integration: marks integration tests")
