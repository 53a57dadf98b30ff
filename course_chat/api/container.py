# course_chat/api/container.py
from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from course_chat.config.settings import Settings
from course_chat.core.clock import Clock
from course_chat.core.interfaces.account_directory import AccountDirectory
from course_chat.core.interfaces.heartbeat_scheduler import HeartbeatScheduler
from course_chat.infrastructure.database.session import SessionScope
from course_chat.infrastructure.realtime.subscription_hub import SubscriptionHub
from course_chat.infrastructure.security.jwt_provider import JwtProvider
from course_chat.services.chat_session import ChatSession
from course_chat.services.service_factory import ServiceFactory
from course_chat.services.subscription_service import SubscriptionService

EXTENSION_KEY = "course_chat"


@dataclass
class ChatContainer:
    settings: Settings
    session_scope: SessionScope
    clock: Clock
    hub: SubscriptionHub
    factory: ServiceFactory
    subscriptions: SubscriptionService
    directory: AccountDirectory
    scheduler: HeartbeatScheduler
    jwt: JwtProvider

    def new_chat_session(self, user_id: str | None) -> ChatSession:
        return ChatSession(
            user_id=user_id,
            directory=self.directory,
            session_scope=self.session_scope,
            factory=self.factory,
            subscriptions=self.subscriptions,
            scheduler=self.scheduler,
            heartbeat_seconds=self.settings.presence_heartbeat_seconds,
        )

    def init_app(self, app: Flask) -> None:
        app.extensions[EXTENSION_KEY] = self


def get_container() -> ChatContainer:
    return current_app.extensions[EXTENSION_KEY]
