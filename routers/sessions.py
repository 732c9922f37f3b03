from fastapi import APIRouter, HTTPException, Request
from schemas.sessions import CreateSessionResponse, SessionStatusResponse
from registry import Role
from logging_config import get_logger

logger = get_logger(__name__)

sessions_router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@sessions_router.post("", response_model=CreateSessionResponse)
async def create_session(request: Request):
    # Response: { "id": "aZ3_k9", "homeownerUrl": "https://host/homeowner.html?room=aZ3_k9", "appraiserUrl": "..." }
    host = request.headers.get("host") or request.url.netloc
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Session creation request from {client_host}")

    issued = request.app.state.issuer.issue(host)
    return CreateSessionResponse(**issued._asdict())


@sessions_router.get("/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(session_id: str, request: Request):
    """
    Report which role slots of a session are held by an open connection.

    Returns 404 when the session is not in the registry (never issued,
    or deleted after both peers left).
    """
    room = request.app.state.registry.get_room(session_id)
    if room is None:
        logger.warning(f"Session status failed: session {session_id} not found")
        raise HTTPException(status_code=404, detail="Session not found")

    def occupied(role: Role) -> bool:
        occupant = room.occupant(role)
        return occupant is not None and occupant.is_open

    return SessionStatusResponse(
        id=session_id,
        homeowner=occupied(Role.HOMEOWNER),
        appraiser=occupied(Role.APPRAISER),
    )
