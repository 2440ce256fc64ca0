"""Tests for message gating and the introduction one-shot."""

import uuid

import pytest

from heartline.core.errors import (
    ConflictError,
    ForbiddenError,
    GoneError,
    LockedError,
    NotFoundError,
    ValidationError,
)
from heartline.services.conversation_store import ConversationStore
from heartline.services.like_registry import LikeRegistry
from heartline.services.message_store import MessageStore


@pytest.fixture()
def matched(db_session, alice, bob):
    registry = LikeRegistry(db_session)
    registry.record_like(alice.id, bob.id)
    return registry.record_like(bob.id, alice.id).match.conversation


@pytest.fixture()
def pending(db_session, alice, bob):
    LikeRegistry(db_session).record_like(alice.id, bob.id)
    return MessageStore(db_session).send_introduction(alice.id, bob.id, "Hi!").conversation


def _drop_slot(db_session, conversation, user) -> None:
    if conversation.user_a_id == user.id:
        conversation.user_a_id = None
    else:
        conversation.user_b_id = None
    db_session.commit()


def test_send_message_in_active_conversation(db_session, alice, bob, matched) -> None:
    posted = MessageStore(db_session).send_message(str(matched.id), alice.id, "  hello  ")

    assert posted.message.content == "hello"
    assert posted.message.sender_id == alice.id
    assert posted.recipient_id == bob.id


@pytest.mark.parametrize("sender", ["alice", "bob"])
def test_pending_conversation_is_locked_for_both_participants(
    db_session, alice, bob, pending, sender
) -> None:
    user = alice if sender == "alice" else bob
    with pytest.raises(LockedError, match="Chat is locked until you match"):
        MessageStore(db_session).send_message(pending.id, user.id, "hello")


def test_invalid_and_unknown_conversation_ids(db_session, alice) -> None:
    store = MessageStore(db_session)
    with pytest.raises(ValidationError, match="Invalid conversation ID format"):
        store.send_message("not-a-uuid", alice.id, "hi")
    with pytest.raises(NotFoundError, match="Conversation not found"):
        store.send_message(uuid.uuid4(), alice.id, "hi")


def test_outsider_is_forbidden(db_session, matched, make_user) -> None:
    mallory = make_user("Mallory")
    with pytest.raises(ForbiddenError, match="Forbidden"):
        MessageStore(db_session).send_message(matched.id, mallory.id, "hi")


def test_conversation_without_participants_is_forbidden(db_session, alice, bob, matched) -> None:
    matched.user_a_id = None
    matched.user_b_id = None
    db_session.commit()

    with pytest.raises(ForbiddenError, match="Forbidden"):
        MessageStore(db_session).send_message(matched.id, alice.id, "hi")


def test_deleted_counterpart_blocks_sending(db_session, alice, bob, matched) -> None:
    _drop_slot(db_session, matched, bob)
    with pytest.raises(GoneError, match="other user has been deleted"):
        MessageStore(db_session).send_message(matched.id, alice.id, "hi")


def test_presence_is_checked_before_lock_and_content(db_session, alice, bob, pending) -> None:
    _drop_slot(db_session, pending, bob)
    with pytest.raises(GoneError):
        MessageStore(db_session).send_message(pending.id, alice.id, "")


def test_lock_is_checked_before_content(db_session, alice, pending) -> None:
    with pytest.raises(LockedError):
        MessageStore(db_session).send_message(pending.id, alice.id, "")


def test_content_is_validated_last(db_session, alice, matched) -> None:
    with pytest.raises(ValidationError, match="Message cannot be empty"):
        MessageStore(db_session).send_message(matched.id, alice.id, "   ")


def test_introduction_creates_pending_conversation(db_session, alice, bob) -> None:
    LikeRegistry(db_session).record_like(alice.id, bob.id)

    posted = MessageStore(db_session).send_introduction(alice.id, str(bob.id), "Hi Bob")

    assert posted.conversation.is_locked is True
    assert posted.recipient_id == bob.id
    assert posted.message.content == "Hi Bob"
    assert ConversationStore(db_session).find(bob.id, alice.id).id == posted.conversation.id


def test_second_introduction_conflicts(db_session, alice, bob, pending) -> None:
    with pytest.raises(ConflictError, match="Introduction message already sent"):
        MessageStore(db_session).send_introduction(alice.id, bob.id, "Hi again")


def test_introduction_requires_a_like(db_session, alice, bob) -> None:
    with pytest.raises(NotFoundError, match="Like not found"):
        MessageStore(db_session).send_introduction(alice.id, bob.id, "Hi")


def test_introduction_validates_id_and_content(db_session, alice, bob) -> None:
    store = MessageStore(db_session)
    with pytest.raises(ValidationError, match="Invalid user ID format"):
        store.send_introduction(alice.id, "bogus", "Hi")
    with pytest.raises(ValidationError, match="Message content must be a non-empty string"):
        store.send_introduction(alice.id, bob.id, "")
    with pytest.raises(ValidationError, match="Message content must be a non-empty string"):
        store.send_introduction(alice.id, bob.id, None)
    with pytest.raises(ValidationError, match="maximum length"):
        store.send_introduction(alice.id, bob.id, "x" * 5001)


def test_introduction_keeps_active_state(db_session, alice, bob, matched) -> None:
    posted = MessageStore(db_session).send_introduction(alice.id, bob.id, "Hey")
    assert posted.conversation.id == matched.id
    assert posted.conversation.is_locked is False


def test_both_sides_may_introduce_themselves(db_session, alice, bob, pending) -> None:
    LikeRegistry(db_session).record_like(bob.id, alice.id)
    posted = MessageStore(db_session).send_introduction(bob.id, alice.id, "Hi Alice")
    assert posted.conversation.id == pending.id


def test_list_messages_oldest_first(db_session, alice, bob, matched) -> None:
    store = MessageStore(db_session)
    store.send_message(matched.id, alice.id, "one")
    store.send_message(matched.id, bob.id, "two")

    thread = store.list_messages(str(matched.id), alice)

    assert [m.content for m in thread.messages] == ["one", "two"]
    assert thread.me["id"] == str(alice.id)
    assert thread.other == {"id": str(bob.id), "name": "Bob", "avatarUrl": bob.avatar_url}


def test_list_messages_hides_counterpart_while_pending(db_session, bob, pending) -> None:
    thread = MessageStore(db_session).list_messages(pending.id, bob)
    assert thread.conversation.is_locked is True
    assert thread.other == {"name": "Hidden User", "avatarUrl": None}
    assert [m.content for m in thread.messages] == ["Hi!"]


def test_list_messages_forbidden_for_outsiders(db_session, matched, make_user) -> None:
    with pytest.raises(ForbiddenError):
        MessageStore(db_session).list_messages(matched.id, make_user("Eve"))
