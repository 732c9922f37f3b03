from typing import Optional

from connection import Connection
from logging_config import get_logger
from registry import Role, Room, SessionRegistry, get_buddy

logger = get_logger(__name__)


def deliver(target: Optional[Connection], message: dict) -> bool:
    """Best-effort send: only to a present, open connection."""
    if target is None or not target.is_open:
        return False
    return target.send(message)


def relay_to_buddy(room: Optional[Room], role: Optional[Role], message: dict) -> bool:
    buddy = get_buddy(room, role)
    delivered = deliver(buddy, message)
    if not delivered:
        logger.debug(f"Dropped {message.get('type')} from {role}: no open buddy")
    return delivered


def notify_role(registry: SessionRegistry, room_id: str, role: Role, message: dict) -> bool:
    """Send to whoever holds `role` in `room_id`, independent of any sender."""
    room = registry.get_room(room_id)
    if room is None:
        logger.debug(f"Dropped {message.get('type')} for room {room_id}: room not found")
        return False
    delivered = deliver(room.occupant(role), message)
    if not delivered:
        logger.debug(f"Dropped {message.get('type')} for {role.value} in room {room_id}: slot empty or closed")
    return delivered
