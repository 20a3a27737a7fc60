#!/usr/bin/env python3
"""
Pytest configuration file
Shared fixtures: an in-memory gateway with a signed-in user, an error
handler on a mocked page and local files of any size or type.
"""

import os
from unittest.mock import MagicMock

import pytest

from voxen.config import Settings, reset_settings
from voxen.error_handler import ErrorBoundary, ErrorHandler
from voxen.mock_gateway import build_memory_gateway
from voxen.models import User
from voxen.uploads import LocalFile

# Enable pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

os.environ["GATEWAY_MODE"] = "memory"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

MB = 1024 * 1024


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def user():
    return User(id="user_alice", email="Alice@Example.com")


@pytest.fixture
def other_user():
    return User(id="user_bob", email="bob@example.com")


@pytest.fixture
def gateway(user):
    gw = build_memory_gateway(user)
    gw.auth.register("alice@example.com", "secret", user_id=user.id)
    return gw


@pytest.fixture
def store(gateway):
    """The raw record store behind the gateway, for seeding and call counts"""
    return gateway.records


@pytest.fixture
def blobs(gateway):
    return gateway.storage


@pytest.fixture
def page():
    mock_page = MagicMock()
    mock_page.overlay = []
    return mock_page


@pytest.fixture
def handler(page):
    return ErrorHandler(page)


@pytest.fixture
def boundary(handler):
    return ErrorBoundary(handler)


def snack_messages(page) -> list:
    """Text of every snackbar pushed onto the mocked page"""
    messages = []
    for control in page.overlay:
        row = getattr(control, "content", None)
        for item in getattr(row, "controls", []):
            value = getattr(item, "value", None)
            if isinstance(value, str):
                messages.append(value)
    return messages


@pytest.fixture
def snacks(page):
    return lambda: snack_messages(page)


@pytest.fixture
def make_file():
    """Factory for picked files; nothing touches the disk"""

    def _make(name="photo.png", size=1024, mime_type="image/png", path=None):
        return LocalFile(path=path or f"/tmp/{name}", name=name, size=size, mime_type=mime_type)

    return _make


@pytest.fixture
def real_file(tmp_path):
    """A file that exists on disk, for streaming uploads"""

    def _make(name="notes.txt", content=b"hello voxen"):
        path = tmp_path / name
        path.write_bytes(content)
        return LocalFile.from_path(str(path))

    return _make
