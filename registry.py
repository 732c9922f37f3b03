from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional

from logging_config import get_logger

if TYPE_CHECKING:
    from connection import Connection

logger = get_logger(__name__)


class Role(str, Enum):
    HOMEOWNER = "homeowner"
    APPRAISER = "appraiser"

    @property
    def opposite(self) -> "Role":
        return Role.APPRAISER if self is Role.HOMEOWNER else Role.HOMEOWNER


@dataclass(eq=False)
class Room:
    """The two peer slots of a session.

    Slots hold non-owning references: the connection handler decides when a
    connection is closed, the room only forgets it.
    """

    homeowner: Optional["Connection"] = None
    appraiser: Optional["Connection"] = None

    def occupant(self, role: Role) -> Optional["Connection"]:
        return self.homeowner if role is Role.HOMEOWNER else self.appraiser

    def assign(self, role: Role, connection: "Connection") -> Optional["Connection"]:
        """Put `connection` in the slot for `role`, returning whoever was overwritten."""
        previous = self.occupant(role)
        if role is Role.HOMEOWNER:
            self.homeowner = connection
        else:
            self.appraiser = connection
        if previous is connection:
            return None
        return previous

    def release(self, role: Role, connection: "Connection") -> bool:
        """Empty the slot only if `connection` still occupies it."""
        if self.occupant(role) is not connection:
            return False
        if role is Role.HOMEOWNER:
            self.homeowner = None
        else:
            self.appraiser = None
        return True

    def is_empty(self) -> bool:
        return self.homeowner is None and self.appraiser is None


def get_buddy(room: Optional[Room], role: Optional[Role]) -> Optional["Connection"]:
    """Occupant of the slot opposite to `role`."""
    if room is None or role is None:
        return None
    return room.occupant(Role(role).opposite)


class SessionRegistry:
    """In-memory map of session id -> Room.

    Every method is synchronous. Handlers run on one event loop and never
    await between a lookup and the mutation that depends on it, so each
    join/relay/close sequence is atomic with respect to the others.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        logger.debug("Initialized empty SessionRegistry")

    def create_or_get_room(self, session_id: str) -> Room:
        room = self._rooms.get(session_id)
        if room is None:
            room = Room()
            self._rooms[session_id] = room
            logger.info(f"Created room {session_id}")
        return room

    def get_room(self, session_id: str) -> Optional[Room]:
        return self._rooms.get(session_id)

    def reset_room(self, session_id: str) -> Room:
        """Store a fresh empty room under `session_id`, replacing any existing one."""
        existing = self._rooms.get(session_id)
        if existing is not None and not existing.is_empty():
            # TODO: retry with a new id instead of orphaning the live session
            logger.warning(f"Session id collision: room {session_id} was occupied and has been replaced")
        # TODO: expire reserved rooms nobody joins; until then they stay for the process lifetime
        room = Room()
        self._rooms[session_id] = room
        logger.debug(f"Reserved room {session_id}")
        return room

    def delete_room(self, session_id: str):
        if self._rooms.pop(session_id, None) is not None:
            logger.info(f"Deleted room {session_id}")

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
