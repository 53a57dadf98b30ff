# course_chat/infrastructure/realtime/subscription_hub.py
from __future__ import annotations

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)


def messages_topic(channel_code: str) -> str:
    return f"messages:{channel_code}"


def typing_topic(channel_code: str) -> str:
    return f"typing:{channel_code}"


PRESENCE_TOPIC = "presence"


class Subscription:
    """Live snapshot subscription. Each subscriber reloads its own snapshot."""

    def __init__(
        self,
        hub: "SubscriptionHub",
        topic: str,
        *,
        loader: Callable[[], Any],
        callback: Callable[[Any], None],
        empty: Callable[[], Any],
    ) -> None:
        self._hub = hub
        self.topic = topic
        self._loader = loader
        self._callback = callback
        self._empty = empty
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._hub._remove(self)

    def refresh(self) -> None:
        if not self._active:
            return

        try:
            snapshot = self._loader()
        except Exception as e:
            # read path: "error fetching" looks exactly like "no data yet"
            logger.warning("snapshot load failed for %s: %s", self.topic, e)
            snapshot = self._empty()

        try:
            self._callback(snapshot)
        except Exception:
            logger.exception("subscriber callback failed for %s", self.topic)


class SubscriptionHub:
    def __init__(self) -> None:
        # topic -> subscriptions, in subscribe order
        self._topics: dict[str, list[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(
        self,
        topic: str,
        *,
        loader: Callable[[], Any],
        callback: Callable[[Any], None],
        empty: Callable[[], Any] = list,
    ) -> Subscription:
        sub = Subscription(self, topic, loader=loader, callback=callback, empty=empty)
        with self._lock:
            self._topics.setdefault(topic, []).append(sub)

        # initial snapshot right away
        sub.refresh()
        return sub

    def publish(self, topic: str) -> None:
        with self._lock:
            subs = list(self._topics.get(topic, []))
        for sub in subs:
            sub.refresh()

    def subscriber_count(self, topic: str | None = None) -> int:
        with self._lock:
            if topic is not None:
                return len(self._topics.get(topic, []))
            return sum(len(v) for v in self._topics.values())

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._topics.get(sub.topic)
            if not subs:
                return
            if sub in subs:
                subs.remove(sub)
            if not subs:
                del self._topics[sub.topic]
