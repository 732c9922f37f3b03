from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from routers.sessions import sessions_router
from routers.captures import captures_router
from registry import SessionRegistry
from issuer import SessionIssuer
from storage import CaptureStore, CAPTURES_URL_PREFIX
from connection import Connection
from handler import ConnectionHandler
import os
from typing import Optional
import constants
from logging_config import get_logger

logger = get_logger(__name__)


def create_app(
    registry: Optional[SessionRegistry] = None,
    capture_dir: Optional[str] = None,
    static_dir: Optional[str] = None,
    public_scheme: Optional[str] = None,
    max_snap_bytes: Optional[int] = None,
) -> FastAPI:
    """Build the relay app. Each app gets its own registry unless one is passed in."""
    app = FastAPI(title="Appraisal Relay")

    app.state.registry = registry if registry is not None else SessionRegistry()
    app.state.issuer = SessionIssuer(app.state.registry, scheme=public_scheme or constants.PUBLIC_SCHEME)
    app.state.capture_store = CaptureStore(capture_dir or constants.CAPTURE_DIR)
    app.state.max_snap_bytes = max_snap_bytes or constants.MAX_SNAP_BODY_BYTES

    # Configure CORS to allow all origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sessions_router)
    app.include_router(captures_router)
    app.add_api_websocket_route("/ws", websocket_endpoint)

    app.mount(CAPTURES_URL_PREFIX, StaticFiles(directory=app.state.capture_store.directory), name="captures")

    static_dir = static_dir or constants.STATIC_DIR
    if os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info(f"Serving browser client from {os.path.abspath(static_dir)}")
    else:
        logger.info(f"Static directory {static_dir} not found, browser client not served")

    logger.info("FastAPI application initialized")
    return app


async def receive_raw(websocket: WebSocket):
    """Next text or binary frame payload; raises WebSocketDisconnect on close."""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(code=message.get("code", 1000))
    if message.get("text") is not None:
        return message["text"]
    return message.get("bytes") or b""


async def websocket_endpoint(websocket: WebSocket):
    """Realtime endpoint: one handler and one writer task per connection."""
    registry: SessionRegistry = websocket.app.state.registry

    await websocket.accept()
    connection = Connection(websocket)
    handler = ConnectionHandler(connection, registry)
    connection.start()
    client_host = websocket.client.host if websocket.client else "unknown"
    logger.info(f"WebSocket connection {connection.connection_id} accepted from {client_host}")

    message_count = 0
    try:
        while True:
            raw = await receive_raw(websocket)
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection.connection_id}")
            handler.handle_raw(raw)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected normally for connection {connection.connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection.connection_id}: {e}", exc_info=True)
        try:
            await websocket.close()
        except Exception as e:
            logger.debug(f"Error closing WebSocket: {e}")
    finally:
        # Synchronous cleanup first: it must run even when the task is being cancelled
        handler.close()
        logger.debug(f"Connection {connection.connection_id} cleaned up after {message_count} messages")
        await connection.wait_closed()
