"""
Socket.IO setup: per-retrospective rooms and change broadcasts.

Clients subscribe to a retrospective and re-fetch whatever a
``retrospective_updated`` event tells them has changed.
"""

import logging

from flask_socketio import SocketIO, join_room, leave_room, emit

logger = logging.getLogger(__name__)

socketio = SocketIO()

UPDATE_EVENT = "retrospective_updated"


def room_for(retrospective_id: str) -> str:
    return f"retro:{retrospective_id}"


def broadcast_change(retrospective_id: str, event: str, **payload) -> None:
    """Tell every subscriber of a retrospective that it changed."""
    message = {"retrospective_id": retrospective_id, "event": event}
    message.update(payload)
    socketio.emit(UPDATE_EVENT, message, to=room_for(retrospective_id))
    logger.debug(f"Broadcast {event} to {room_for(retrospective_id)}")


def init_socketio(app):
    """Initialize Socket.IO and register subscription handlers."""
    socketio.init_app(app, cors_allowed_origins=app.config.get("SOCKETIO_CORS_ALLOWED_ORIGINS", "*"))

    @socketio.on("join_retrospective")
    def handle_join(data):
        retrospective_id = (data or {}).get("retrospective_id")
        if not retrospective_id:
            return
        join_room(room_for(retrospective_id))
        emit("subscribed", {"retrospective_id": retrospective_id})

    @socketio.on("leave_retrospective")
    def handle_leave(data):
        retrospective_id = (data or {}).get("retrospective_id")
        if not retrospective_id:
            return
        leave_room(room_for(retrospective_id))
