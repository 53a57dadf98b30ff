# course_chat/services/chat_session.py
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from course_chat.core.channels import normalize_channel_code
from course_chat.core.exceptions import AppError, ForbiddenError, UnauthenticatedError
from course_chat.core.interfaces.account_directory import AccountDirectory
from course_chat.core.interfaces.heartbeat_scheduler import HeartbeatScheduler, ScheduledTask
from course_chat.core.results import OperationResult
from course_chat.entities.chat import ChatMessage, PresenceFilter, TypingIndicator
from course_chat.entities.user import ChannelMembership, UserProfile
from course_chat.infrastructure.database.session import SessionScope
from course_chat.infrastructure.realtime.subscription_hub import Subscription
from course_chat.services.service_factory import ServiceFactory
from course_chat.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


class ChatSession:
    """Everything one signed-in client holds open: presence heartbeat,
    subscriptions and the resolved channel membership.

    Writes come back as OperationResult so callers can keep the typed text and
    retry. Reads degrade to empty values. Nothing here raises after `start()`
    except watch_* on a channel outside the membership.
    """

    def __init__(
        self,
        *,
        user_id: str | None,
        directory: AccountDirectory,
        session_scope: SessionScope,
        factory: ServiceFactory,
        subscriptions: SubscriptionService,
        scheduler: HeartbeatScheduler,
        heartbeat_seconds: float = 30.0,
    ) -> None:
        self._user_id = user_id
        self._directory = directory
        self._session_scope = session_scope
        self._factory = factory
        self._subscriptions = subscriptions
        self._scheduler = scheduler
        self._heartbeat_seconds = heartbeat_seconds

        self._profile: UserProfile | None = None
        self._membership: ChannelMembership | None = None
        self._heartbeat: ScheduledTask | None = None
        # key -> subscription; watching the same key again replaces the old one
        self._watches: dict[str, Subscription] = {}

    # -------------------------
    # Lifecycle
    # -------------------------

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def profile(self) -> UserProfile | None:
        return self._profile

    @property
    def membership(self) -> ChannelMembership:
        if self._membership is None:
            raise UnauthenticatedError("Chat session not started.")
        return self._membership

    @property
    def started(self) -> bool:
        return self._membership is not None

    def start(self) -> OperationResult:
        if not self._user_id:
            raise UnauthenticatedError("User not authenticated.")

        self._profile = self._directory.get_profile(self._user_id)
        if self._profile is None:
            raise UnauthenticatedError("Unknown account.")
        self._membership = self._directory.get_membership(self._user_id)

        result = self._best_effort("announce presence", self._announce)

        if self._heartbeat is None:
            self._heartbeat = self._scheduler.every(self._heartbeat_seconds, self.heartbeat)
        return result

    def stop(self) -> OperationResult:
        """Tears down subscriptions and the heartbeat first; the offline
        write is attempted last and never blocks logout."""
        for sub in list(self._watches.values()):
            sub.cancel()
        self._watches.clear()

        if self._heartbeat is not None:
            self._heartbeat.cancel()
            self._heartbeat = None

        if not self._user_id or self._membership is None:
            return OperationResult.ok()

        result = self._best_effort("withdraw presence", self._withdraw)
        self._membership = None
        return result

    def heartbeat(self) -> OperationResult:
        return self._best_effort("presence heartbeat", self._touch)

    # -------------------------
    # Helpers
    # -------------------------

    def _require_started(self) -> tuple[UserProfile, ChannelMembership]:
        if not self._user_id or self._profile is None or self._membership is None:
            raise UnauthenticatedError("User not authenticated.")
        return self._profile, self._membership

    def _require_channel(self, channel_code: str) -> str:
        _, membership = self._require_started()
        code = normalize_channel_code(channel_code)
        if not membership.can_access(code):
            raise ForbiddenError(f"No access to channel {code}.")
        return code

    def _best_effort(self, what: str, fn: Callable[[], Any]) -> OperationResult:
        try:
            return OperationResult.ok(fn())
        except Exception as e:
            logger.warning("%s failed for user %s: %s", what, self._user_id, e)
            return OperationResult.failed(str(e))

    def _write(self, what: str, fn: Callable[[], Any]) -> OperationResult:
        try:
            return OperationResult.ok(fn())
        except AppError as e:
            logger.info("%s rejected for user %s: %s", what, self._user_id, e)
            return OperationResult.failed(str(e))
        except Exception as e:
            logger.exception("%s failed for user %s", what, self._user_id)
            return OperationResult.failed(str(e))

    def _read(self, what: str, fn: Callable[[], Any], empty: Any) -> Any:
        try:
            return fn()
        except Exception as e:
            logger.warning("%s failed for user %s: %s", what, self._user_id, e)
            return empty

    def _announce(self) -> None:
        profile, _ = self._require_started()
        with self._session_scope() as session:
            self._factory.presence(session).announce(profile=profile)

    def _withdraw(self) -> None:
        with self._session_scope() as session:
            self._factory.presence(session).withdraw(user_id=self._user_id)

    def _touch(self) -> bool:
        if not self._user_id:
            raise UnauthenticatedError("User not authenticated.")
        with self._session_scope() as session:
            return self._factory.presence(session).heartbeat(user_id=self._user_id)

    # -------------------------
    # Messages
    # -------------------------

    def send(
        self,
        channel_code: str,
        text: str,
        *,
        reply_to_id: int | None = None,
        message_type: str = "text",
    ) -> OperationResult:
        def _send() -> ChatMessage:
            profile, _ = self._require_started()
            code = self._require_channel(channel_code)
            with self._session_scope() as session:
                return self._factory.messages(session).send(
                    channel_code=code,
                    author=profile,
                    text=text,
                    reply_to_id=reply_to_id,
                    message_type=message_type,
                )

        return self._write("send message", _send)

    def edit(self, channel_code: str, message_id: int, new_text: str) -> OperationResult:
        def _edit() -> ChatMessage:
            code = self._require_channel(channel_code)
            with self._session_scope() as session:
                return self._factory.messages(session).edit(
                    channel_code=code,
                    message_id=message_id,
                    author_id=self._user_id,
                    new_text=new_text,
                )

        return self._write("edit message", _edit)

    def delete(self, channel_code: str, message_id: int) -> OperationResult:
        def _delete() -> None:
            code = self._require_channel(channel_code)
            with self._session_scope() as session:
                self._factory.messages(session).delete(
                    channel_code=code,
                    message_id=message_id,
                    author_id=self._user_id,
                )

        return self._write("delete message", _delete)

    def mark_read(self, channel_code: str, messages: Iterable[ChatMessage | int]) -> OperationResult:
        ids = [m.id if isinstance(m, ChatMessage) else int(m) for m in messages]

        def _mark() -> int:
            code = self._require_channel(channel_code)
            with self._session_scope() as session:
                return self._factory.receipts(session).mark_read(
                    channel_code=code,
                    message_ids=ids,
                    reader_id=self._user_id,
                )

        return self._write("mark read", _mark)

    def toggle_reaction(self, channel_code: str, message_id: int, emoji: str) -> OperationResult:
        def _toggle():
            code = self._require_channel(channel_code)
            with self._session_scope() as session:
                return self._factory.receipts(session).toggle_reaction(
                    channel_code=code,
                    message_id=message_id,
                    user_id=self._user_id,
                    emoji=emoji,
                )

        return self._write("toggle reaction", _toggle)

    def set_typing(self, channel_code: str, is_typing: bool) -> OperationResult:
        def _set() -> None:
            profile, _ = self._require_started()
            code = self._require_channel(channel_code)
            with self._session_scope() as session:
                self._factory.typing(session).set_typing(channel_code=code, profile=profile, is_typing=is_typing)

        # a dropped typing write only hides a bubble
        return self._best_effort("set typing", _set)

    # -------------------------
    # Reads (never raise)
    # -------------------------

    def unread_count(self, channel_code: str) -> int:
        def _count() -> int:
            code = self._require_channel(channel_code)
            with self._session_scope() as session:
                return self._factory.unread(session).unread_count(channel_code=code, user_id=self._user_id)

        return self._read("unread count", _count, 0)

    def unread_counts(self) -> dict[str, int]:
        def _counts() -> dict[str, int]:
            _, membership = self._require_started()
            with self._session_scope() as session:
                return self._factory.unread(session).unread_counts_for_channels(
                    channel_codes=membership.sorted_channels(),
                    user_id=self._user_id,
                )

        return self._read("unread counts", _counts, {})

    def count_online(self, presence_filter: PresenceFilter | None = None) -> int:
        def _count() -> int:
            with self._session_scope() as session:
                return self._factory.presence(session).count_online(presence_filter=presence_filter)

        return self._read("online count", _count, 0)

    def cohort_filter(self) -> PresenceFilter:
        """Same role and level as this user."""
        _, membership = self._require_started()
        return PresenceFilter(role=membership.role, academic_level=membership.academic_level)

    # -------------------------
    # Subscriptions
    # -------------------------

    def _release(self, key: str) -> None:
        previous = self._watches.pop(key, None)
        if previous is not None:
            previous.cancel()

    def watch_messages(self, channel_code: str, on_update: Callable[[list[ChatMessage]], None]) -> Subscription:
        code = self._require_channel(channel_code)
        key = f"messages:{code}"
        self._release(key)
        sub = self._subscriptions.subscribe_messages(channel_code=code, on_update=on_update)
        self._watches[key] = sub
        return sub

    def watch_typing(self, channel_code: str, on_update: Callable[[list[TypingIndicator]], None]) -> Subscription:
        code = self._require_channel(channel_code)
        key = f"typing:{code}"
        self._release(key)
        sub = self._subscriptions.subscribe_typing(
            channel_code=code,
            exclude_user_id=self._user_id,
            on_update=on_update,
        )
        self._watches[key] = sub
        return sub

    def watch_online_count(
        self,
        presence_filter: PresenceFilter | None,
        on_update: Callable[[int], None],
    ) -> Subscription:
        self._require_started()
        f = presence_filter or PresenceFilter()
        key = f"presence:{f.key}"
        self._release(key)
        sub = self._subscriptions.subscribe_online_count(presence_filter=f, on_update=on_update)
        self._watches[key] = sub
        return sub

    def unwatch_channel(self, channel_code: str) -> None:
        code = normalize_channel_code(channel_code)
        for key in (f"messages:{code}", f"typing:{code}"):
            sub = self._watches.pop(key, None)
            if sub is not None:
                sub.cancel()

    def unwatch_presence(self) -> None:
        for key in [k for k in self._watches if k.startswith("presence:")]:
            self._watches.pop(key).cancel()

    @property
    def open_watches(self) -> list[str]:
        return sorted(self._watches)
