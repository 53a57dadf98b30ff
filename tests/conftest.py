# tests/conftest.py
import os

# settings, engine and the Socket.IO server are built at import time
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")
os.environ.setdefault("SOCKETIO_ASYNC_MODE", "threading")
os.environ.setdefault("DEBUG", "false")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from course_chat.api.container import ChatContainer  # noqa: E402
from course_chat.app_factory import create_app  # noqa: E402
from course_chat.config.settings import Settings  # noqa: E402
from course_chat.entities.user import UserProfile, Role  # noqa: E402
from course_chat.infrastructure.database.models.user_model import UserModel  # noqa: E402
from course_chat.infrastructure.database.session import create_schema, make_session_scope  # noqa: E402
from course_chat.infrastructure.directory.sql_account_directory import SqlAccountDirectory  # noqa: E402
from course_chat.infrastructure.realtime.hub_chat_notifier import HubChatNotifier  # noqa: E402
from course_chat.infrastructure.realtime.subscription_hub import SubscriptionHub  # noqa: E402
from course_chat.infrastructure.security.jwt_provider import JwtProvider  # noqa: E402
from course_chat.repositories.user_repository import UserRepository  # noqa: E402
from course_chat.services.service_factory import ServiceFactory  # noqa: E402
from course_chat.services.subscription_service import SubscriptionService  # noqa: E402

T0 = datetime(2024, 3, 4, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value


class RecordingNotifier(HubChatNotifier):
    """Publishes to the hub like production and keeps every event it saw."""

    def __init__(self, hub: SubscriptionHub) -> None:
        super().__init__(hub)
        self.events = []

    def notify_messages_changed(self, event) -> None:
        self.events.append(event)
        super().notify_messages_changed(event)

    def notify_typing_changed(self, event) -> None:
        self.events.append(event)
        super().notify_typing_changed(event)

    def notify_presence_changed(self, event) -> None:
        self.events.append(event)
        super().notify_presence_changed(event)

    def kinds(self) -> list[str]:
        return [getattr(e, "change_kind", type(e).__name__) for e in self.events]


class ManualTask:
    def __init__(self, interval: float, fn) -> None:
        self.interval = interval
        self.fn = fn
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """Heartbeat scheduler driven by the test: `tick()` runs every live task once."""

    def __init__(self) -> None:
        self.tasks: list[ManualTask] = []

    def every(self, interval_seconds: float, fn) -> ManualTask:
        task = ManualTask(interval_seconds, fn)
        self.tasks.append(task)
        return task

    def live(self) -> list[ManualTask]:
        return [t for t in self.tasks if not t.cancelled]

    def tick(self) -> None:
        for task in self.live():
            task.fn()


# -------------------------
# Store
# -------------------------

@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_scope(engine):
    return make_session_scope(engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hub():
    return SubscriptionHub()


@pytest.fixture
def notifier(hub):
    return RecordingNotifier(hub)


@pytest.fixture
def chat_settings():
    return Settings(
        database_url_override="sqlite://",
        jwt_secret="test-secret",
        general_channels_raw="GENERAL",
        lecturer_channels_raw="FACULTY",
    )


@pytest.fixture
def factory(notifier, clock, chat_settings):
    return ServiceFactory(notifier=notifier, clock=clock, settings=chat_settings)


@pytest.fixture
def subscriptions(hub, session_scope, factory):
    return SubscriptionService(hub=hub, session_scope=session_scope, factory=factory)


@pytest.fixture
def scheduler():
    return ManualScheduler()


# -------------------------
# Accounts
# -------------------------

ALICE = UserProfile(user_id="userA", full_name="Alice Student", role=Role.STUDENT, academic_level="100")
BOB = UserProfile(user_id="userB", full_name="Bob Student", role=Role.STUDENT, academic_level="100")
CAROL = UserProfile(user_id="lect1", full_name="Dr. Carol", role=Role.LECTURER)


def _add_user(repo: UserRepository, profile: UserProfile, courses: list[str], relation: str) -> None:
    repo.add(
        UserModel(
            id=profile.user_id,
            full_name=profile.full_name,
            email=f"{profile.user_id}@uni.test",
            role=profile.role.value,
            academic_level=profile.academic_level,
            avatar=profile.avatar,
            created_at=T0,
            is_deleted=False,
        )
    )
    for code in courses:
        repo.add_course(user_id=profile.user_id, course_code=code, relation=relation)


@pytest.fixture
def users(session_scope):
    with session_scope() as session:
        repo = UserRepository(session)
        _add_user(repo, ALICE, ["CSM101", "CSM102"], "enrolled")
        _add_user(repo, BOB, ["CSM101"], "enrolled")
        _add_user(repo, CAROL, ["CSM101"], "teaching")
    return {"alice": ALICE, "bob": BOB, "carol": CAROL}


@pytest.fixture
def directory(session_scope, chat_settings):
    return SqlAccountDirectory(session_scope=session_scope, settings=chat_settings)


@pytest.fixture
def jwt_provider(chat_settings):
    return JwtProvider(chat_settings)


@pytest.fixture
def container(chat_settings, session_scope, clock, hub, factory, subscriptions, directory, scheduler, jwt_provider):
    return ChatContainer(
        settings=chat_settings,
        session_scope=session_scope,
        clock=clock,
        hub=hub,
        factory=factory,
        subscriptions=subscriptions,
        directory=directory,
        scheduler=scheduler,
        jwt=jwt_provider,
    )


# -------------------------
# HTTP
# -------------------------

@pytest.fixture
def app(container, users):
    flask_app = create_app(container)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(jwt_provider):
    def _headers(user_id: str) -> dict:
        token = jwt_provider.issue_access_token(subject=user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers
