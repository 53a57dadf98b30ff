# course_chat/app_factory.py
from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from course_chat.api.container import ChatContainer
from course_chat.api.middlewares.error_handler import register_error_handlers
from course_chat.api.realtime.socket_handlers import register_socket_handlers
from course_chat.api.routes import register_routes
from course_chat.config.flask_config import configure_app
from course_chat.config.logging_config import configure_logging
from course_chat.config.settings import Settings, settings as default_settings
from course_chat.core.clock import SystemClock
from course_chat.infrastructure.database.session import db_session
from course_chat.infrastructure.directory.sql_account_directory import SqlAccountDirectory
from course_chat.infrastructure.realtime.socketio_chat_notifier import SocketIOChatNotifier
from course_chat.infrastructure.realtime.socketio_server import socketio
from course_chat.infrastructure.realtime.subscription_hub import SubscriptionHub
from course_chat.infrastructure.scheduling.socketio_heartbeat_scheduler import SocketIOHeartbeatScheduler
from course_chat.infrastructure.security.jwt_provider import JwtProvider
from course_chat.services.service_factory import ServiceFactory
from course_chat.services.subscription_service import SubscriptionService


def build_container(cfg: Settings | None = None) -> ChatContainer:
    cfg = cfg or default_settings
    clock = SystemClock()
    hub = SubscriptionHub()
    factory = ServiceFactory(notifier=SocketIOChatNotifier(hub), clock=clock, settings=cfg)

    return ChatContainer(
        settings=cfg,
        session_scope=db_session,
        clock=clock,
        hub=hub,
        factory=factory,
        subscriptions=SubscriptionService(hub=hub, session_scope=db_session, factory=factory),
        directory=SqlAccountDirectory(session_scope=db_session, settings=cfg),
        scheduler=SocketIOHeartbeatScheduler(socketio),
        jwt=JwtProvider(cfg),
    )


def create_app(container: ChatContainer | None = None) -> Flask:
    container = container or build_container()
    cfg = container.settings

    # -------------------------
    # Prefixes (subpath)
    # -------------------------
    app_prefix = cfg.app_prefix.rstrip("/")
    api_prefix = f"{app_prefix}/api"
    socket_prefix = f"{app_prefix}/socket.io"

    configure_logging(cfg.log_level)

    app = Flask(__name__)

    # ✅ CORS before the routes so OPTIONS is answered
    CORS(
        app,
        resources={rf"{api_prefix}/*": {"origins": cfg.cors_origins}},
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )

    configure_app(app)
    container.init_app(app)

    register_routes(app, api_prefix=api_prefix, app_prefix=app_prefix)
    register_error_handlers(app)

    socketio.init_app(app, path=socket_prefix)
    register_socket_handlers(container)

    return app
