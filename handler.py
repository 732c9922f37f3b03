import json
from typing import Callable, Dict, Union

from pydantic import ValidationError

from connection import Connection, ConnectionState
from logging_config import get_logger
from registry import SessionRegistry, get_buddy
from relay import deliver, relay_to_buddy
from schemas import messages
from schemas.messages import JoinMessage, RoomMessage, SignalMessage

logger = get_logger(__name__)


def _reject_constant(name: str):
    # NaN and Infinity are not JSON and would be relayed as invalid frames
    raise ValueError(f"Non-standard JSON constant {name}")


class ConnectionHandler:
    """Drives one connection through unjoined -> joined -> closed.

    Nothing here awaits: every inbound message is handled to completion,
    including registry mutation and queuing of outbound messages, before
    any other connection gets to run.
    """

    def __init__(self, connection: Connection, registry: SessionRegistry):
        self.connection = connection
        self.registry = registry
        self._dispatch: Dict[str, Callable[[dict], None]] = {
            "join": self.on_join,
            "signal": self.on_signal,
            "capture_request": self.on_capture_request,
            "photo_uploaded": self.on_photo_uploaded,
        }

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    def handle_raw(self, raw: Union[str, bytes]):
        if self.state is ConnectionState.CLOSED:
            return
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            message = json.loads(raw, parse_constant=_reject_constant)
        except (ValueError, RecursionError):
            # ValueError also covers decode errors and the int digit limit
            logger.warning(f"Malformed message on connection {self.connection.connection_id}")
            self.connection.send(messages.error(messages.BAD_JSON))
            return

        if not isinstance(message, dict):
            logger.warning(f"Non-object message on connection {self.connection.connection_id}")
            self.connection.send(messages.error(messages.BAD_JSON))
            return

        self.handle_message(message)

    def handle_message(self, message: dict):
        message_type = message.get("type")
        handler = self._dispatch.get(message_type) if isinstance(message_type, str) else None
        if handler is None:
            logger.debug(f"Ignoring message of type {message_type!r} on connection {self.connection.connection_id}")
            return
        handler(message)

    def on_join(self, message: dict):
        try:
            join = JoinMessage.model_validate(message)
        except ValidationError:
            logger.warning(f"Invalid join on connection {self.connection.connection_id}: roomId={message.get('roomId')!r}, role={message.get('role')!r}")
            self.connection.send(messages.error(messages.BAD_JOIN))
            return

        conn = self.connection
        if conn.state is ConnectionState.JOINED and (conn.room_id, conn.role) != (join.roomId, join.role):
            # Moving to another slot: give up the old one first
            self._leave()

        room = self.registry.create_or_get_room(join.roomId)
        evicted = room.assign(join.role, conn)
        if evicted is not None:
            logger.warning(f"Connection {evicted.connection_id} evicted from {join.role.value} slot of room {join.roomId}")

        conn.room_id = join.roomId
        conn.role = join.role
        conn.state = ConnectionState.JOINED
        logger.info(f"Connection {conn.connection_id} joined room {join.roomId} as {join.role.value}")

        conn.send(messages.joined(join.role, join.roomId))

        buddy = get_buddy(room, join.role)
        if buddy is not None and buddy.is_open:
            conn.send(messages.peer_ready(join.role.opposite))
            buddy.send(messages.peer_ready(join.role))
            logger.info(f"Room {join.roomId} has both peers")

    def on_signal(self, message: dict):
        room = self._addressed_room(message, SignalMessage)
        if room is None:
            return
        relay_to_buddy(room, self.connection.role, messages.signal(self.connection.role, message.get("data")))

    def on_capture_request(self, message: dict):
        room = self._addressed_room(message, RoomMessage)
        if room is None:
            return
        relay_to_buddy(room, self.connection.role, messages.capture_request())

    def on_photo_uploaded(self, message: dict):
        room = self._addressed_room(message, RoomMessage)
        if room is None:
            return
        relay_to_buddy(room, self.connection.role, messages.photo_uploaded())

    def _addressed_room(self, message: dict, model):
        """Room named by a relay message, or None when the message must be dropped."""
        if self.state is not ConnectionState.JOINED:
            logger.debug(f"Dropped {message.get('type')} from unjoined connection {self.connection.connection_id}")
            return None
        try:
            parsed = model.model_validate(message)
        except ValidationError:
            logger.debug(f"Dropped malformed {message.get('type')} from connection {self.connection.connection_id}")
            return None
        if not parsed.roomId:
            return None
        room = self.registry.get_room(parsed.roomId)
        if room is None:
            logger.debug(f"Dropped {message.get('type')} for unknown room {parsed.roomId}")
        return room

    def _leave(self):
        conn = self.connection
        room_id, role = conn.room_id, conn.role
        room = self.registry.get_room(room_id)
        if room is None:
            return

        if not room.release(role, conn):
            logger.debug(f"Connection {conn.connection_id} no longer holds {role.value} in room {room_id}")

        deliver(get_buddy(room, role), messages.peer_left(role))

        if room.is_empty():
            self.registry.delete_room(room_id)
        logger.info(f"Connection {conn.connection_id} left room {room_id} ({role.value})")

    def close(self):
        """Run the close lifecycle. Safe to call more than once."""
        conn = self.connection
        if conn.state is ConnectionState.CLOSED:
            return
        if conn.state is ConnectionState.JOINED:
            self._leave()
        conn.state = ConnectionState.CLOSED
        conn.close()
