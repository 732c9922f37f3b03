import asyncio
import json
import uuid
from enum import Enum
from typing import Optional

from fastapi import WebSocket

from constants import WRITER_DRAIN_SECONDS
from logging_config import get_logger
from registry import Role

logger = get_logger(__name__)


class ConnectionState(str, Enum):
    UNJOINED = "unjoined"
    JOINED = "joined"
    CLOSED = "closed"


class Connection:
    """One realtime client link.

    Outbound messages are queued on `outbox` and written by `pump()`, so
    `send()` never suspends the caller.
    """

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or str(uuid.uuid4())
        self.room_id: Optional[str] = None
        self.role: Optional[Role] = None
        self.state = ConnectionState.UNJOINED
        self.outbox: asyncio.Queue = asyncio.Queue()
        self._open = True
        self._writer: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, message: dict) -> bool:
        if not self._open:
            return False
        self.outbox.put_nowait(message)
        return True

    def close(self):
        if not self._open:
            return
        self._open = False
        self.outbox.put_nowait(None)

    async def pump(self):
        """Write queued messages to the socket until closed."""
        while True:
            message = await self.outbox.get()
            if message is None:
                break
            try:
                await self.websocket.send_text(json.dumps(message))
            except Exception as e:
                logger.warning(f"Send failed on connection {self.connection_id}, marking closed: {e}")
                self._open = False
                break
        logger.debug(f"Writer stopped for connection {self.connection_id}")

    def start(self) -> asyncio.Task:
        self._writer = asyncio.create_task(self.pump())
        return self._writer

    async def wait_closed(self, timeout: float = WRITER_DRAIN_SECONDS):
        """Give the writer `timeout` seconds to flush what is queued, then collect it."""
        if self._writer is None:
            return
        try:
            # wait_for cancels and awaits the writer if it overruns
            await asyncio.wait_for(self._writer, timeout)
        except asyncio.TimeoutError:
            logger.debug(f"Writer for connection {self.connection_id} did not drain within {timeout}s, cancelled")

    def __repr__(self):
        return f"Connection({self.connection_id[:8]}, room={self.room_id}, role={self.role}, state={self.state.value})"
