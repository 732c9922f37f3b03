import base64
import binascii

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError
from schemas.sessions import SnapRequest, SnapResponse
from schemas import messages
from registry import Role
from relay import notify_role
from storage import is_safe_room_id
from logging_config import get_logger

logger = get_logger(__name__)

captures_router = APIRouter(prefix="/api", tags=["captures"])


async def read_limited_body(request: Request, limit: int) -> bytes:
    """Read the request body, refusing with 413 as soon as it passes `limit` bytes."""
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        logger.warning(f"Snap rejected: declared body of {declared} bytes exceeds {limit}")
        raise HTTPException(status_code=413, detail="Request body too large")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            logger.warning(f"Snap rejected: body exceeds {limit} bytes")
            raise HTTPException(status_code=413, detail="Request body too large")
    return bytes(body)


@captures_router.post(
    "/snap",
    response_model=SnapResponse,
    openapi_extra={"requestBody": {"content": {"application/json": {"schema": SnapRequest.model_json_schema()}}, "required": True}},
)
async def snap(request: Request):
    # Body: { "roomId": "aZ3_k9", "imageBase64": "<jpeg bytes, base64>" }
    # Response: { "ok": true, "url": "/captures/capture-aZ3_k9-....jpg", "filename": "capture-aZ3_k9-....jpg" }
    raw = await read_limited_body(request, request.app.state.max_snap_bytes)
    try:
        body = SnapRequest.model_validate_json(raw)
    except ValidationError:
        logger.warning("Snap rejected: body is not a JSON object")
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    if not body.roomId or not body.imageBase64:
        raise HTTPException(status_code=400, detail="roomId and imageBase64 required")

    if not is_safe_room_id(body.roomId):
        logger.warning(f"Snap rejected: unsafe roomId {body.roomId!r}")
        raise HTTPException(status_code=400, detail="Invalid roomId")

    try:
        data = base64.b64decode(body.imageBase64)
    except (binascii.Error, ValueError):
        logger.warning(f"Snap rejected for room {body.roomId}: invalid base64")
        raise HTTPException(status_code=400, detail="Invalid imageBase64")

    try:
        stored = await request.app.state.capture_store.save(body.roomId, data)
    except Exception as e:
        logger.error(f"Snap error for room {body.roomId}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="internal_error")

    # Upload completion always goes to the homeowner, whoever uploaded
    delivered = notify_role(
        request.app.state.registry,
        body.roomId,
        Role.HOMEOWNER,
        messages.photo_uploaded(stored.url),
    )
    logger.info(f"Capture {stored.filename} for room {body.roomId} stored, homeowner notified: {delivered}")

    return SnapResponse(ok=True, url=stored.url, filename=stored.filename)
