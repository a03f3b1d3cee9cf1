"""Pytest configuration and shared fixtures for AetherRealtime tests."""

from __future__ import annotations

import json
from typing import Any

import pytest

from AetherRealtime import MemoryTransport, Realtime, create_realtime


class JsonSerializer:
    """JSON codec used to exercise the serializer contract."""

    def encode(self, data: Any) -> str:
        return json.dumps(data)

    def decode(self, data: Any) -> Any:
        return json.loads(data)


@pytest.fixture
def transport() -> MemoryTransport:
    """Create an in-memory transport."""
    return MemoryTransport()


@pytest.fixture
def app(transport: MemoryTransport) -> Realtime:
    """Create a dispatcher bound to the memory transport (not started)."""
    return create_realtime().adapter(transport)


@pytest.fixture
async def started_app(app: Realtime):
    """Create and start a dispatcher; stop it after the test."""
    await app.start()
    yield app
    await app.stop()


@pytest.fixture
def json_serializer() -> JsonSerializer:
    return JsonSerializer()
