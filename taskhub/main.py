from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Depends, Query, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session, sessionmaker
from typing import Optional
import json
import logging

from taskhub.config.settings import settings
from taskhub.database import get_session_factory
from taskhub.models.user import User
from taskhub.routers import chat, notifications, watchlist
from taskhub.services import rooms
from taskhub.services.websocket_manager import ConnectionInfo, websocket_manager
from taskhub.utils.auth import get_user_from_token
from taskhub.utils.errors import register_error_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="TaskHub Notifications API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Route registration
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
app.include_router(watchlist.router, prefix="/watchlist", tags=["Watchlist"])
app.include_router(chat.router, prefix="/chat", tags=["Chat"])

# Root route
@app.get("/")
def read_root():
    return {"message": "TaskHub Notifications API"}

@app.get("/health")
def health():
    return {"status": "ok", "connections": websocket_manager.get_total_connections()}


def _refresh_user(db: Session, connection: ConnectionInfo) -> Optional[User]:
    """Re-read the connected user so role changes and deactivation apply to later joins"""
    user = db.query(User).filter(User.id == connection.user_id).first()
    if user is None or not user.is_active:
        return None
    connection.user_role = user.role
    connection.user_name = user.display_name
    return user


async def handle_client_frame(session_factory: sessionmaker, connection: ConnectionInfo, frame: dict):
    """Apply one client frame: room membership changes and typing relays"""
    event = frame.get("event")
    data = frame.get("data") if isinstance(frame.get("data"), dict) else {}
    room = data.get("room")

    if event == rooms.JOIN:
        with session_factory() as db:
            user = _refresh_user(db, connection)
            allowed = user is not None and rooms.RoomPolicy(db).can_join(user, room)
        if not allowed:
            # Unauthorized joins get no reply at all
            logger.warning(f"User {connection.user_id} refused join to {room!r}")
            return
        websocket_manager.join(connection.id, room)
        await websocket_manager.send_personal_message(
            {"event": "chat:joined", "data": {"room": room}},
            connection.websocket
        )

    elif event == rooms.LEAVE:
        if isinstance(room, str):
            websocket_manager.leave(connection.id, room)

    elif event in (rooms.TYPING, rooms.STOP_TYPING):
        if not isinstance(room, str) or not websocket_manager.is_member(connection.id, room):
            return
        await websocket_manager.publish(
            room,
            event,
            {"room": room, "userId": connection.user_id, "name": connection.user_name},
            exclude=connection.id,
        )

    else:
        logger.debug(f"Ignoring client event {event!r} from user {connection.user_id}")


# WebSocket endpoint for real-time delivery
@app.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    await websocket.accept()

    # The handshake session is closed before the socket starts idling
    with session_factory() as db:
        user = get_user_from_token(db, token)
        identity = (user.id, user.email, user.role, user.display_name) if user else None

    if identity is None:
        logger.info("WebSocket rejected: missing or invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection = await websocket_manager.connect(websocket, *identity)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if isinstance(frame, dict):
                await handle_client_frame(session_factory, connection, frame)
    except WebSocketDisconnect:
        pass
    finally:
        websocket_manager.disconnect(connection.id)
