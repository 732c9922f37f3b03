from typing import Any, Optional

from pydantic import BaseModel, Field

from registry import Role

# Inbound (client -> relay)


class JoinMessage(BaseModel):
    roomId: str = Field(min_length=1)
    role: Role


class SignalMessage(BaseModel):
    roomId: Optional[str] = None
    data: Any = None


class RoomMessage(BaseModel):
    """Shape shared by capture_request and photo_uploaded."""
    roomId: Optional[str] = None


# Outbound (relay -> client)

BAD_JSON = "bad_json"
BAD_JOIN = "bad_join"


def error(reason: str) -> dict:
    return {"type": "error", "reason": reason}


def joined(role: Role, room_id: str) -> dict:
    return {"type": "joined", "role": role.value, "roomId": room_id}


def peer_ready(peer: Role) -> dict:
    return {"type": "peer-ready", "peer": peer.value}


def peer_left(peer: Role) -> dict:
    return {"type": "peer-left", "peer": peer.value}


def signal(sender: Role, data: Any) -> dict:
    return {"type": "signal", "from": sender.value, "data": data}


def capture_request() -> dict:
    return {"type": "capture_request"}


def photo_uploaded(url: Optional[str] = None) -> dict:
    message = {"type": "photo_uploaded"}
    if url is not None:
        message["url"] = url
    return message
