import secrets
from typing import NamedTuple

from constants import PUBLIC_SCHEME, SESSION_ID_LENGTH
from logging_config import get_logger
from registry import Role, SessionRegistry

logger = get_logger(__name__)


def make_session_id(length: int = SESSION_ID_LENGTH) -> str:
    # 9 random bytes encode to 12 url-safe characters with no padding
    return secrets.token_urlsafe(max(9, (length * 3 + 3) // 4))[:length]


class IssuedSession(NamedTuple):
    id: str
    homeownerUrl: str
    appraiserUrl: str


class SessionIssuer:
    def __init__(self, registry: SessionRegistry, scheme: str = PUBLIC_SCHEME, id_length: int = SESSION_ID_LENGTH):
        self.registry = registry
        self.scheme = scheme
        self.id_length = id_length

    def join_url(self, host: str, session_id: str, role: Role) -> str:
        return f"{self.scheme}://{host}/{role.value}.html?room={session_id}"

    def issue(self, host: str) -> IssuedSession:
        """Mint a session id and reserve an empty room for it before anyone connects."""
        session_id = make_session_id(self.id_length)
        self.registry.reset_room(session_id)
        logger.info(f"Issued session {session_id} for host {host}")
        return IssuedSession(
            id=session_id,
            homeownerUrl=self.join_url(host, session_id, Role.HOMEOWNER),
            appraiserUrl=self.join_url(host, session_id, Role.APPRAISER),
        )
