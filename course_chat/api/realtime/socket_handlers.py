# course_chat/api/realtime/socket_handlers.py
from __future__ import annotations

import logging
import threading

from flask import request

from course_chat.api.container import ChatContainer
from course_chat.api.schemas.message_schema import MessageResponse
from course_chat.api.schemas.presence_schema import PresenceQuery, TypingUserResponse
from course_chat.core.channels import normalize_channel_code
from course_chat.core.exceptions import AppError
from course_chat.infrastructure.realtime.socketio_server import socketio
from course_chat.services.chat_session import ChatSession

logger = logging.getLogger(__name__)

# sid -> chat session of that socket
_sessions: dict[str, ChatSession] = {}
_lock = threading.Lock()


def _get_bearer_token() -> str | None:
    # 1) Authorization: Bearer <token>
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip()

    # 2) querystring ?token=...
    token = request.args.get("token")
    if token:
        return str(token).strip()

    return None


def _current_session() -> ChatSession | None:
    with _lock:
        return _sessions.get(request.sid)


def _channel_of(data) -> str | None:
    if isinstance(data, dict):
        return data.get("channel")
    return None


def active_session_count() -> int:
    with _lock:
        return len(_sessions)


def register_socket_handlers(container: ChatContainer) -> None:
    @socketio.on("connect")
    def on_connect(auth=None):
        try:
            user_id = container.jwt.user_id_from(_get_bearer_token())
            chat = container.new_chat_session(user_id)
            chat.start()
        except AppError as e:
            logger.info("socket rejected: %s", e)
            return False

        with _lock:
            _sessions[request.sid] = chat
        logger.debug("socket %s connected as %s", request.sid, user_id)

    @socketio.on("disconnect")
    def on_disconnect(*_args):
        with _lock:
            chat = _sessions.pop(request.sid, None)
        if chat is not None:
            chat.stop()

    @socketio.on("chat:join")
    def on_join(data):
        chat = _current_session()
        if chat is None:
            return {"ok": False, "error": "Not connected."}

        sid = request.sid
        try:
            code = normalize_channel_code(_channel_of(data))
        except AppError as e:
            return {"ok": False, "error": str(e)}

        def push_messages(messages):
            socketio.emit(
                "messages:snapshot",
                {"channel": code, "messages": [MessageResponse.from_entity(m).model_dump() for m in messages]},
                to=sid,
            )

        def push_typing(typers):
            socketio.emit(
                "typing:snapshot",
                {"channel": code, "users": [TypingUserResponse.from_entity(t).model_dump() for t in typers]},
                to=sid,
            )

        try:
            chat.watch_messages(code, push_messages)
            chat.watch_typing(code, push_typing)
        except AppError as e:
            chat.unwatch_channel(code)
            return {"ok": False, "error": str(e)}

        return {"ok": True, "channel": code}

    @socketio.on("chat:leave")
    def on_leave(data):
        chat = _current_session()
        code = _channel_of(data)
        if chat is None or not code:
            return {"ok": False}
        try:
            chat.unwatch_channel(code)
        except AppError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True}

    @socketio.on("typing:set")
    def on_typing(data):
        chat = _current_session()
        code = _channel_of(data)
        if chat is None or not code:
            return {"ok": False}
        result = chat.set_typing(code, bool(data.get("is_typing")))
        return {"ok": result.success}

    @socketio.on("presence:watch")
    def on_presence_watch(data=None):
        chat = _current_session()
        if chat is None:
            return {"ok": False, "error": "Not connected."}

        sid = request.sid
        try:
            query = PresenceQuery.model_validate(data or {})
        except ValueError:
            return {"ok": False, "error": "Invalid presence filter."}
        f = query.to_filter()

        def push_count(count: int):
            socketio.emit("presence:count", {"filter": f.key, "count": count}, to=sid)

        chat.watch_online_count(f, push_count)
        return {"ok": True, "filter": f.key}

    @socketio.on("presence:unwatch")
    def on_presence_unwatch(*_args):
        chat = _current_session()
        if chat is not None:
            chat.unwatch_presence()
        return {"ok": True}
