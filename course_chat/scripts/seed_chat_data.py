#!/usr/bin/env python3
"""
Seed course channels with sample accounts and a short conversation.

Usage:
    python -m course_chat.scripts.seed_chat_data             # all sample courses
    python -m course_chat.scripts.seed_chat_data CSM101      # only the given codes
    python -m course_chat.scripts.seed_chat_data --create-schema
"""
from __future__ import annotations

import argparse
import logging
from datetime import timedelta

from course_chat.core.clock import Clock
from course_chat.entities.user import Role, UserProfile
from course_chat.infrastructure.database.models.user_model import UserModel
from course_chat.infrastructure.database.session import SessionScope
from course_chat.repositories.user_repository import UserRepository
from course_chat.services.service_factory import ServiceFactory

logger = logging.getLogger(__name__)

COURSE_CODES = ["CSM101", "CSM102", "CSM201", "CSM202", "CSM301", "CSM302", "CSM401", "CSM402"]

SAMPLE_USERS = [
    (UserProfile("user1", "John Doe", Role.STUDENT, "100"), "enrolled", COURSE_CODES),
    (UserProfile("user2", "Jane Smith", Role.STUDENT, "200"), "enrolled", COURSE_CODES),
    (UserProfile("lecturer1", "Dr. Alice Johnson", Role.LECTURER), "teaching", ["CSM101", "CSM201"]),
    (UserProfile("lecturer2", "Prof. Bob Wilson", Role.LECTURER), "teaching", ["CSM301", "CSM401"]),
]

# (sender id, text)
SAMPLE_MESSAGES = [
    ("lecturer1", "Welcome to the course! Looking forward to working with everyone this semester."),
    ("user1", "Hi everyone! Excited to be in this class. Has anyone started reading the course materials?"),
    ("user2", "Yes, I've gone through the first two chapters. The concepts are quite interesting!"),
    ("lecturer1", "Great to hear! Don't hesitate to ask questions if anything is unclear."),
]


class _SteppedClock:
    """Replays messages one minute apart, ending at the real clock's now."""

    def __init__(self, base: Clock, steps: int) -> None:
        self._next = base.now() - timedelta(minutes=steps)

    def now(self):
        current = self._next
        self._next = current + timedelta(minutes=1)
        return current


def seed_users(session_scope: SessionScope) -> int:
    added = 0
    with session_scope() as session:
        repo = UserRepository(session)
        for profile, relation, courses in SAMPLE_USERS:
            if repo.get_by_id(profile.user_id) is None:
                repo.add(
                    UserModel(
                        id=profile.user_id,
                        full_name=profile.full_name,
                        role=profile.role.value,
                        academic_level=profile.academic_level,
                        avatar=profile.avatar,
                        is_deleted=False,
                    )
                )
                added += 1
            for code in courses:
                repo.add_course(user_id=profile.user_id, course_code=code, relation=relation)
    return added


def seed_channels(
    session_scope: SessionScope,
    factory: ServiceFactory,
    course_codes: list[str] | None = None,
) -> dict[str, int]:
    """Posts the sample conversation into every empty channel; returns messages added per channel."""
    profiles = {p.user_id: p for p, _, _ in SAMPLE_USERS}
    seeded: dict[str, int] = {}

    for code in course_codes or COURSE_CODES:
        with session_scope() as session:
            if factory.messages(session).list_messages(channel_code=code):
                logger.info("%s already has messages, skipping", code)
                continue

        clock = _SteppedClock(factory.clock, len(SAMPLE_MESSAGES))
        stepped = ServiceFactory(notifier=factory.notifier, clock=clock, settings=factory.settings)
        for sender_id, text in SAMPLE_MESSAGES:
            with session_scope() as session:
                stepped.messages(session).send(channel_code=code, author=profiles[sender_id], text=text)

        seeded[code.upper()] = len(SAMPLE_MESSAGES)
        logger.info("seeded %s", code)

    return seeded


def main() -> None:
    from course_chat.config.logging_config import configure_logging
    from course_chat.config.settings import settings
    from course_chat.core.clock import SystemClock
    from course_chat.infrastructure.database.session import create_schema, db_session
    from course_chat.infrastructure.realtime.hub_chat_notifier import HubChatNotifier
    from course_chat.infrastructure.realtime.subscription_hub import SubscriptionHub

    parser = argparse.ArgumentParser(description="Seed course chat channels with sample data")
    parser.add_argument("codes", nargs="*", help="Course codes to seed (default: all sample courses)")
    parser.add_argument("--create-schema", action="store_true", help="Create missing tables first")
    args = parser.parse_args()

    configure_logging()
    if args.create_schema:
        create_schema()

    # no live clients while seeding, pushes go nowhere
    factory = ServiceFactory(notifier=HubChatNotifier(SubscriptionHub()), clock=SystemClock(), settings=settings)
    users = seed_users(db_session)
    seeded = seed_channels(db_session, factory, args.codes or None)
    print(f"Added {users} users, seeded {len(seeded)} channels")


if __name__ == "__main__":
    main()
