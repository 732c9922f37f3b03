import asyncio
import os
import re
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from logging_config import get_logger

logger = get_logger(__name__)

CAPTURES_URL_PREFIX = "/captures"

_SAFE_ROOM_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class StoredCapture(NamedTuple):
    filename: str
    url: str
    path: str


def is_safe_room_id(room_id: str) -> bool:
    return bool(_SAFE_ROOM_ID.match(room_id))


def capture_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with ':' and '.' replaced, e.g. 2025-03-01T10-04-05-123Z."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


class CaptureStore:
    """Stores still photos on disk under one flat directory."""

    def __init__(self, directory: str):
        self.directory = os.path.abspath(directory)
        os.makedirs(self.directory, exist_ok=True)
        logger.info(f"Capture directory: {self.directory}")

    def filename_for(self, room_id: str, now: Optional[datetime] = None) -> str:
        return f"capture-{room_id}-{capture_timestamp(now)}.jpg"

    def _write(self, path: str, data: bytes):
        with open(path, "wb") as f:
            f.write(data)

    async def save(self, room_id: str, data: bytes) -> StoredCapture:
        if not is_safe_room_id(room_id):
            raise ValueError(f"Unsafe room id for capture filename: {room_id!r}")
        filename = self.filename_for(room_id)
        path = os.path.join(self.directory, filename)

        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._write, path, data)

        logger.info(f"Stored capture {filename} ({len(data)} bytes) for room {room_id}")
        return StoredCapture(filename=filename, url=f"{CAPTURES_URL_PREFIX}/{filename}", path=path)
