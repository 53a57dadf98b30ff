import pytest

from course_chat.core.exceptions import ForbiddenError, TransientStoreError, UnauthenticatedError
from course_chat.entities.chat import PresenceFilter
from course_chat.entities.user import Role
from tests.conftest import ALICE, BOB, CAROL


@pytest.fixture
def open_session(container, users):
    opened = []

    def _open(user_id):
        chat = container.new_chat_session(user_id)
        chat.start()
        opened.append(chat)
        return chat

    yield _open
    for chat in opened:
        chat.stop()


# -------------------------
# Membership
# -------------------------

def test_student_membership_is_enrolled_courses_plus_general(directory, users):
    membership = directory.get_membership(ALICE.user_id)

    assert membership.role == Role.STUDENT
    assert membership.academic_level == "100"
    assert membership.sorted_channels() == ["CSM101", "CSM102", "GENERAL"]


def test_lecturer_membership_includes_faculty_channel(directory, users):
    membership = directory.get_membership(CAROL.user_id)

    assert membership.role == Role.LECTURER
    assert membership.sorted_channels() == ["CSM101", "FACULTY", "GENERAL"]
    assert membership.can_access("csm101")
    assert not membership.can_access("CSM102")


def test_unknown_account_only_gets_general(directory, users):
    assert directory.get_profile("ghost") is None
    assert directory.get_membership("ghost").sorted_channels() == ["GENERAL"]


# -------------------------
# Lifecycle
# -------------------------

def test_start_without_user_is_unauthenticated(container):
    with pytest.raises(UnauthenticatedError):
        container.new_chat_session(None).start()


def test_start_with_unknown_account_is_unauthenticated(container, users):
    with pytest.raises(UnauthenticatedError):
        container.new_chat_session("ghost").start()


def test_start_announces_presence_and_schedules_heartbeat(open_session, scheduler, container):
    chat = open_session(ALICE.user_id)

    assert chat.started
    assert chat.count_online() == 1
    assert len(scheduler.live()) == 1
    assert scheduler.live()[0].interval == container.settings.presence_heartbeat_seconds


def test_heartbeat_keeps_session_online_past_staleness_floor(open_session, scheduler, clock):
    chat = open_session(ALICE.user_id)

    for _ in range(6):
        clock.advance(30)
        scheduler.tick()

    assert chat.count_online() == 1


def test_without_heartbeat_presence_goes_stale(open_session, clock):
    chat = open_session(ALICE.user_id)
    clock.advance(121)

    assert chat.count_online() == 0


def test_stop_releases_everything_and_goes_offline(container, users, scheduler, hub):
    chat = container.new_chat_session(ALICE.user_id)
    chat.start()
    chat.watch_messages("CSM101", lambda _: None)
    chat.watch_typing("CSM101", lambda _: None)
    chat.watch_online_count(None, lambda _: None)
    assert hub.subscriber_count() == 3

    result = chat.stop()

    assert result.success
    assert hub.subscriber_count() == 0
    assert scheduler.live() == []
    assert chat.open_watches == []
    assert chat.count_online() == 0


def test_stop_survives_failed_presence_write(container, users, monkeypatch):
    chat = container.new_chat_session(ALICE.user_id)
    chat.start()

    def broken(_session):
        raise TransientStoreError("store unavailable")

    monkeypatch.setattr(container.factory, "presence", broken)
    result = chat.stop()

    assert result.success is False
    assert "store unavailable" in result.error


def test_start_survives_failed_presence_write(container, users, monkeypatch, scheduler):
    def broken(_session):
        raise TransientStoreError("store unavailable")

    monkeypatch.setattr(container.factory, "presence", broken)
    chat = container.new_chat_session(ALICE.user_id)
    result = chat.start()

    assert result.success is False
    assert chat.started
    assert len(scheduler.live()) == 1
    chat.stop()


# -------------------------
# Writes
# -------------------------

def test_send_and_read_through_sessions(open_session):
    alice = open_session(ALICE.user_id)
    bob = open_session(BOB.user_id)

    sent = alice.send("csm101", "hello")
    assert sent.success
    assert bob.unread_count("CSM101") == 1
    assert bob.unread_counts() == {"CSM101": 1, "GENERAL": 0}

    read = bob.mark_read("CSM101", [sent.value])
    assert read.success and read.value == 1
    assert bob.unread_count("CSM101") == 0


def test_write_errors_come_back_as_failed_results(open_session):
    alice = open_session(ALICE.user_id)
    bob = open_session(BOB.user_id)
    msg = alice.send("CSM101", "mine").value

    edit = bob.edit("CSM101", msg.id, "hacked")
    assert edit.success is False
    assert edit.error == "Only the sender can change this message"

    blank = alice.send("CSM101", "   ")
    assert blank.success is False

    elsewhere = bob.send("CSM102", "not enrolled")
    assert elsewhere.success is False


def test_edit_delete_and_toggle(open_session):
    alice = open_session(ALICE.user_id)
    bob = open_session(BOB.user_id)
    msg = alice.send("CSM101", "draft").value

    assert alice.edit("CSM101", msg.id, "final").value.text == "final"

    toggled = bob.toggle_reaction("CSM101", msg.id, "👍")
    assert toggled.value.active is True

    assert alice.delete("CSM101", msg.id).success
    assert alice.delete("CSM101", msg.id).success is False


def test_typing_is_best_effort(open_session, monkeypatch, container):
    bob = open_session(BOB.user_id)
    assert bob.set_typing("CSM101", True).success

    def broken(_session):
        raise TransientStoreError("store unavailable")

    monkeypatch.setattr(container.factory, "typing", broken)
    assert bob.set_typing("CSM101", False).success is False


def test_reads_degrade_to_empty_values(open_session, monkeypatch, container):
    bob = open_session(BOB.user_id)

    def broken(_session):
        raise TransientStoreError("store unavailable")

    monkeypatch.setattr(container.factory, "unread", broken)
    monkeypatch.setattr(container.factory, "presence", broken)

    assert bob.unread_count("CSM101") == 0
    assert bob.unread_counts() == {}
    assert bob.count_online() == 0


# -------------------------
# Watches
# -------------------------

def test_watch_messages_receives_live_snapshots(open_session):
    alice = open_session(ALICE.user_id)
    bob = open_session(BOB.user_id)
    snapshots = []
    bob.watch_messages("CSM101", snapshots.append)

    alice.send("CSM101", "one")
    alice.send("CSM101", "two")

    assert [[m.text for m in s] for s in snapshots] == [[], ["one"], ["one", "two"]]


def test_rewatching_replaces_previous_subscription(open_session, hub):
    bob = open_session(BOB.user_id)
    first, second = [], []

    bob.watch_messages("CSM101", first.append)
    bob.watch_messages("CSM101", second.append)

    assert hub.subscriber_count("messages:CSM101") == 1
    assert bob.open_watches == ["messages:CSM101"]


def test_watching_a_foreign_channel_is_forbidden(open_session):
    bob = open_session(BOB.user_id)
    with pytest.raises(ForbiddenError):
        bob.watch_messages("CSM102", lambda _: None)


def test_cohort_online_count(open_session):
    alice = open_session(ALICE.user_id)
    open_session(BOB.user_id)
    open_session(CAROL.user_id)
    counts = []

    alice.watch_online_count(alice.cohort_filter(), counts.append)

    assert alice.cohort_filter() == PresenceFilter(role=Role.STUDENT, academic_level="100")
    assert counts == [2]


def test_unwatch_channel_and_presence(open_session, hub):
    bob = open_session(BOB.user_id)
    bob.watch_messages("CSM101", lambda _: None)
    bob.watch_typing("CSM101", lambda _: None)
    bob.watch_online_count(None, lambda _: None)

    bob.unwatch_channel("csm101")
    assert bob.open_watches == ["presence:*:*"]

    bob.unwatch_presence()
    assert hub.subscriber_count() == 0
