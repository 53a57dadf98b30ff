from datetime import timedelta

from course_chat.scripts.seed_chat_data import SAMPLE_MESSAGES, seed_channels, seed_users
from tests.conftest import T0


def test_seed_creates_accounts_and_conversation(session_scope, factory, directory):
    assert seed_users(session_scope) == 4
    assert seed_users(session_scope) == 0

    seeded = seed_channels(session_scope, factory, ["csm101"])
    assert seeded == {"CSM101": len(SAMPLE_MESSAGES)}

    with session_scope() as session:
        messages = factory.messages(session).list_messages(channel_code="CSM101")

    assert [m.sender_id for m in messages] == [sender for sender, _ in SAMPLE_MESSAGES]
    assert messages[0].created_at == T0 - timedelta(minutes=len(SAMPLE_MESSAGES))
    assert all(m.read_by == {m.sender_id} for m in messages)
    assert directory.get_membership("lecturer1").can_access("CSM201")


def test_seed_skips_channels_that_have_messages(session_scope, factory):
    seed_users(session_scope)
    seed_channels(session_scope, factory, ["CSM101"])

    assert seed_channels(session_scope, factory, ["CSM101", "CSM102"]) == {"CSM102": len(SAMPLE_MESSAGES)}
