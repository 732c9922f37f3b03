"""
Shared pytest fixtures
======================

Unit tests drive connections through an in-memory fake socket and read what
the relay queued on each connection's outbox. API tests go through the
FastAPI app with TestClient.
"""

import json
from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient

from app import create_app
from connection import Connection
from handler import ConnectionHandler
from registry import SessionRegistry


class FakeWebSocket:
    """Collects whatever Connection.pump writes."""

    def __init__(self, fail: bool = False):
        self.sent: List[dict] = []
        self.fail = fail

    async def send_text(self, text: str):
        if self.fail:
            raise RuntimeError("socket gone")
        self.sent.append(json.loads(text))


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def make_connection():
    """Factory for bare connections over a fake socket."""

    def _make(connection_id: str = None, fail: bool = False) -> Connection:
        return Connection(FakeWebSocket(fail=fail), connection_id=connection_id)

    return _make


@pytest.fixture
def make_peer(registry):
    """Factory for (connection, handler) pairs bound to the shared registry."""

    def _make(connection_id: str = None) -> Tuple[Connection, ConnectionHandler]:
        connection = Connection(FakeWebSocket(), connection_id=connection_id)
        return connection, ConnectionHandler(connection, registry)

    return _make


@pytest.fixture
def drain():
    """Pop every message queued on a connection's outbox (close markers skipped)."""

    def _drain(connection: Connection) -> List[dict]:
        messages = []
        while not connection.outbox.empty():
            message = connection.outbox.get_nowait()
            if message is not None:
                messages.append(message)
        return messages

    return _drain


@pytest.fixture
def app(tmp_path):
    return create_app(
        capture_dir=str(tmp_path / "capture"),
        static_dir=str(tmp_path / "public"),
    )


@pytest.fixture
def client(app):
    # Entering the client shares one event loop between all websocket sessions
    with TestClient(app) as client:
        yield client
