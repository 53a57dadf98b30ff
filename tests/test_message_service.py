from datetime import timedelta

import pytest

from course_chat.core.exceptions import NotFoundError, PermissionDeniedError, UnauthenticatedError, ValidationError
from course_chat.entities.chat import DeliveryStatus, MessageType
from course_chat.entities.user import UserProfile
from tests.conftest import ALICE, BOB, T0


@pytest.fixture
def chat(factory, session_scope):
    """Runs one MessageService call per committed session."""

    class _Chat:
        def __getattr__(self, name):
            def call(**kwargs):
                with session_scope() as session:
                    return getattr(factory.messages(session), name)(**kwargs)

            return call

    return _Chat()


def _send(chat, author, text, channel="CSM101", **kwargs):
    return chat.send(channel_code=channel, author=author, text=text, **kwargs)


def test_send_stamps_server_time_and_sender_reads_own_message(chat, clock):
    msg = _send(chat, ALICE, "  hello  ")

    assert msg.text == "hello"
    assert msg.created_at == T0
    assert msg.sender_id == ALICE.user_id
    assert msg.read_by == {ALICE.user_id}
    assert msg.status == DeliveryStatus.SENT
    assert msg.message_type == MessageType.TEXT

    stored = chat.get_message(channel_code="CSM101", message_id=msg.id)
    assert stored.read_by == {ALICE.user_id}
    assert stored.created_at == T0


def test_send_notifies_created_with_preview(chat, notifier):
    msg = _send(chat, ALICE, "hi")

    event = notifier.events[-1]
    assert event.change_kind == "created"
    assert event.message_ids == (msg.id,)
    assert event.preview["text"] == "hi"
    assert event.preview["sender_name"] == ALICE.full_name


def test_same_timestamp_keeps_insertion_order(chat):
    first = _send(chat, ALICE, "one")
    second = _send(chat, BOB, "two")
    third = _send(chat, ALICE, "three")

    listed = chat.list_messages(channel_code="CSM101")
    assert [m.id for m in listed] == [first.id, second.id, third.id]
    assert len({m.created_at for m in listed}) == 1


def test_timestamps_never_go_backwards_within_a_channel(chat, clock):
    clock.advance(10)
    first = _send(chat, ALICE, "later")

    clock.set(T0 - timedelta(minutes=5))
    second = _send(chat, BOB, "clock skewed")

    listed = chat.list_messages(channel_code="CSM101")
    assert [m.id for m in listed] == [first.id, second.id]
    assert second.created_at == first.created_at


def test_subscription_snapshots_are_ordered(subscriptions, chat, clock):
    snapshots = []
    sub = subscriptions.subscribe_messages(channel_code="csm101", on_update=snapshots.append)
    assert snapshots == [[]]

    for i in range(4):
        clock.advance(1 if i % 2 else 0)
        _send(chat, ALICE if i % 2 else BOB, f"m{i}")

    last = snapshots[-1]
    assert [m.text for m in last] == ["m0", "m1", "m2", "m3"]
    stamps = [m.created_at for m in last]
    assert stamps == sorted(stamps)
    assert len(snapshots) == 5
    sub.cancel()


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_text_is_rejected(chat, text):
    with pytest.raises(ValidationError):
        _send(chat, ALICE, text)
    assert chat.list_messages(channel_code="CSM101") == []


def test_text_longer_than_limit_is_rejected(chat, chat_settings):
    with pytest.raises(ValidationError):
        _send(chat, ALICE, "x" * (chat_settings.max_message_length + 1))


def test_unknown_message_type_is_rejected(chat):
    with pytest.raises(ValidationError):
        _send(chat, ALICE, "hi", message_type="hologram")


def test_send_without_user_is_unauthenticated(chat):
    with pytest.raises(UnauthenticatedError):
        _send(chat, UserProfile(user_id="", full_name="nobody"), "hi")


def test_reply_carries_quoted_text(chat):
    original = _send(chat, ALICE, "question?")
    reply = _send(chat, BOB, "answer", reply_to_id=original.id)

    assert reply.reply_to.message_id == original.id
    assert reply.reply_to.text == "question?"
    assert reply.reply_to.sender_name == ALICE.full_name


def test_reply_to_unknown_message_is_not_found(chat):
    with pytest.raises(NotFoundError):
        _send(chat, BOB, "answer", reply_to_id=999)


def test_channels_are_isolated(chat):
    msg = _send(chat, ALICE, "only in 101")

    assert chat.list_messages(channel_code="CSM102") == []
    with pytest.raises(NotFoundError):
        chat.get_message(channel_code="CSM102", message_id=msg.id)


# -------------------------
# Edit / delete
# -------------------------

def test_edit_by_other_user_is_denied_and_leaves_message_unchanged(chat, notifier):
    msg = _send(chat, ALICE, "original")
    before = len(notifier.events)

    with pytest.raises(PermissionDeniedError):
        chat.edit(channel_code="CSM101", message_id=msg.id, author_id=BOB.user_id, new_text="hacked")

    stored = chat.get_message(channel_code="CSM101", message_id=msg.id)
    assert stored.text == "original"
    assert stored.is_edited is False
    assert len(notifier.events) == before


def test_edit_by_sender_marks_edited_and_updates_preview(chat, clock):
    msg = _send(chat, ALICE, "draft")
    clock.advance(30)

    edited = chat.edit(channel_code="CSM101", message_id=msg.id, author_id=ALICE.user_id, new_text="final")

    assert edited.text == "final"
    assert edited.is_edited is True
    assert edited.edited_at == clock.now()
    assert edited.created_at == T0
    assert chat.last_message_preview(channel_code="CSM101").text == "final"


def test_edit_to_blank_is_rejected(chat):
    msg = _send(chat, ALICE, "draft")
    with pytest.raises(ValidationError):
        chat.edit(channel_code="CSM101", message_id=msg.id, author_id=ALICE.user_id, new_text="  ")


def test_delete_by_other_user_is_denied(chat):
    msg = _send(chat, ALICE, "mine")

    with pytest.raises(PermissionDeniedError):
        chat.delete(channel_code="CSM101", message_id=msg.id, author_id=BOB.user_id)

    assert [m.id for m in chat.list_messages(channel_code="CSM101")] == [msg.id]


def test_deleted_message_disappears_and_preview_falls_back(chat, clock):
    first = _send(chat, ALICE, "first")
    clock.advance(1)
    second = _send(chat, ALICE, "second")

    chat.delete(channel_code="CSM101", message_id=second.id, author_id=ALICE.user_id)

    assert [m.id for m in chat.list_messages(channel_code="CSM101")] == [first.id]
    with pytest.raises(NotFoundError):
        chat.get_message(channel_code="CSM101", message_id=second.id)
    preview = chat.last_message_preview(channel_code="CSM101")
    assert preview.message_id == first.id
    assert preview.text == "first"


def test_deleting_the_only_message_clears_preview(chat):
    msg = _send(chat, ALICE, "oops")
    chat.delete(channel_code="CSM101", message_id=msg.id, author_id=ALICE.user_id)

    assert chat.last_message_preview(channel_code="CSM101") is None


def test_deleted_message_cannot_be_deleted_or_edited_again(chat):
    msg = _send(chat, ALICE, "gone")
    chat.delete(channel_code="CSM101", message_id=msg.id, author_id=ALICE.user_id)

    with pytest.raises(NotFoundError):
        chat.delete(channel_code="CSM101", message_id=msg.id, author_id=ALICE.user_id)
    with pytest.raises(NotFoundError):
        chat.edit(channel_code="CSM101", message_id=msg.id, author_id=ALICE.user_id, new_text="back")


def test_new_messages_keep_order_after_a_delete(chat, clock):
    clock.advance(5)
    doomed = _send(chat, ALICE, "doomed")
    chat.delete(channel_code="CSM101", message_id=doomed.id, author_id=ALICE.user_id)

    clock.set(T0)
    after = _send(chat, BOB, "after")
    assert after.created_at >= doomed.created_at


# -------------------------
# Delivery / previews / stats
# -------------------------

def test_mark_delivered_only_touches_other_peoples_sent_messages(chat):
    mine = _send(chat, ALICE, "mine")
    theirs = _send(chat, BOB, "theirs")

    changed = chat.mark_delivered(channel_code="CSM101", message_ids=[mine.id, theirs.id], reader_id=ALICE.user_id)
    assert changed == 1
    assert chat.get_message(channel_code="CSM101", message_id=theirs.id).status == DeliveryStatus.DELIVERED
    assert chat.get_message(channel_code="CSM101", message_id=mine.id).status == DeliveryStatus.SENT

    again = chat.mark_delivered(channel_code="CSM101", message_ids=[theirs.id], reader_id=ALICE.user_id)
    assert again == 0


def test_recent_previews_cover_only_active_channels(chat, clock):
    _send(chat, ALICE, "in 101")
    clock.advance(60)
    _send(chat, ALICE, "in 102", channel="CSM102")

    previews = chat.recent_previews(channel_codes=["csm101", "CSM102", "GENERAL"])

    assert set(previews) == {"CSM101", "CSM102"}
    assert previews["CSM102"].text == "in 102"
    assert previews["CSM102"].last_activity > previews["CSM101"].last_activity


def test_channel_stats_count_live_messages_and_senders(chat, clock):
    _send(chat, ALICE, "a")
    _send(chat, BOB, "b")
    clock.advance(10)
    doomed = _send(chat, ALICE, "c")
    chat.delete(channel_code="CSM101", message_id=doomed.id, author_id=ALICE.user_id)

    stats = chat.channel_stats(channel_code="CSM101")
    assert stats.message_count == 2
    assert stats.participant_count == 2
    assert stats.last_activity == T0


def test_empty_channel_stats(chat):
    stats = chat.channel_stats(channel_code="GENERAL")
    assert stats.message_count == 0
    assert stats.participant_count == 0
    assert stats.last_activity is None
