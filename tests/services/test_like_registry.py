"""Tests for recording and removing likes and passes."""

import uuid

import pytest
from sqlalchemy import func, select

from heartline.core.errors import ConflictError, NotFoundError, ValidationError
from heartline.models import Conversation, Like, Message
from heartline.services.conversation_store import ConversationStore
from heartline.services.like_registry import LikeRegistry
from heartline.services.message_store import MessageStore


def _conversation_count(db_session) -> int:
    return db_session.scalar(select(func.count()).select_from(Conversation))


def test_record_like(db_session, alice, bob) -> None:
    outcome = LikeRegistry(db_session).record_like(alice.id, str(bob.id))

    assert outcome.like.liker_id == alice.id
    assert outcome.like.liked_id == bob.id
    assert outcome.match is None
    assert LikeRegistry(db_session).check_exists(alice.id, bob.id) is True
    assert LikeRegistry(db_session).check_exists(bob.id, alice.id) is False


def test_second_like_conflicts(db_session, alice, bob) -> None:
    registry = LikeRegistry(db_session)
    registry.record_like(alice.id, bob.id)

    with pytest.raises(ConflictError, match="User already liked"):
        registry.record_like(alice.id, bob.id)
    assert db_session.scalar(select(func.count()).select_from(Like)) == 1


@pytest.mark.parametrize(
    ("value", "message"),
    [(None, "likedId is required"), ("", "likedId is required"), ("nope", "Invalid user ID format")],
)
def test_like_rejects_bad_target_id(db_session, alice, value, message) -> None:
    with pytest.raises(ValidationError, match=message):
        LikeRegistry(db_session).record_like(alice.id, value)


def test_cannot_like_yourself(db_session, alice) -> None:
    with pytest.raises(ValidationError, match="Cannot like yourself"):
        LikeRegistry(db_session).record_like(alice.id, alice.id)


def test_like_requires_verified_existing_target(db_session, alice, make_user) -> None:
    unverified = make_user("Dana", verified=False)
    registry = LikeRegistry(db_session)

    with pytest.raises(NotFoundError, match="User not found or not verified"):
        registry.record_like(alice.id, unverified.id)
    with pytest.raises(NotFoundError, match="User not found or not verified"):
        registry.record_like(alice.id, uuid.uuid4())


@pytest.mark.parametrize("order", ["alice_first", "bob_first"])
def test_mutual_likes_open_exactly_one_conversation(db_session, alice, bob, order) -> None:
    registry = LikeRegistry(db_session)
    first, second = (alice, bob) if order == "alice_first" else (bob, alice)

    assert registry.record_like(first.id, second.id).match is None
    outcome = registry.record_like(second.id, first.id)

    assert outcome.match is not None
    assert outcome.match.created is True
    assert outcome.match.conversation.is_locked is False
    assert _conversation_count(db_session) == 1


def test_match_unlocks_conversation_opened_by_introduction(db_session, alice, bob) -> None:
    registry = LikeRegistry(db_session)
    registry.record_like(alice.id, bob.id)
    intro = MessageStore(db_session).send_introduction(alice.id, bob.id, "Hi Bob!")
    assert intro.conversation.is_locked is True

    outcome = registry.record_like(bob.id, alice.id)

    assert outcome.match.conversation.id == intro.conversation.id
    assert outcome.match.unlocked is True
    assert intro.conversation.is_locked is False
    assert _conversation_count(db_session) == 1


def test_unlike_after_match_keeps_conversation_open(db_session, alice, bob) -> None:
    registry = LikeRegistry(db_session)
    registry.record_like(alice.id, bob.id)
    registry.record_like(bob.id, alice.id)

    registry.remove_like(alice.id, str(bob.id))

    conversation = ConversationStore(db_session).find(alice.id, bob.id)
    assert conversation.is_locked is False
    assert registry.check_exists(alice.id, bob.id) is False

    # Liking again reports the existing match without a second unlock.
    outcome = registry.record_like(alice.id, bob.id)
    assert outcome.match.conversation.id == conversation.id
    assert outcome.match.is_new is False


def test_remove_missing_like(db_session, alice, bob) -> None:
    with pytest.raises(NotFoundError, match="Like not found"):
        LikeRegistry(db_session).remove_like(alice.id, bob.id)


def test_passes_are_independent_of_likes(db_session, alice, bob) -> None:
    registry = LikeRegistry(db_session)
    registry.record_like(alice.id, bob.id)

    user_pass = registry.record_pass(alice.id, str(bob.id))

    assert user_pass.passed_id == bob.id
    assert registry.check_exists(alice.id, bob.id) is True
    with pytest.raises(ConflictError, match="User already passed"):
        registry.record_pass(alice.id, bob.id)

    registry.remove_pass(alice.id, bob.id)
    assert registry.has_passed(alice.id, bob.id) is False
    with pytest.raises(NotFoundError, match="Pass not found"):
        registry.remove_pass(alice.id, bob.id)


def test_pass_validation(db_session, alice) -> None:
    registry = LikeRegistry(db_session)
    with pytest.raises(ValidationError, match="passedId is required"):
        registry.record_pass(alice.id, None)
    with pytest.raises(ValidationError, match="Cannot pass on yourself"):
        registry.record_pass(alice.id, alice.id)
    with pytest.raises(NotFoundError, match="User not found or not verified"):
        registry.record_pass(alice.id, uuid.uuid4())


def test_list_liked_flags_introductions(db_session, alice, bob, make_user) -> None:
    carol = make_user("Carol")
    registry = LikeRegistry(db_session)
    registry.record_like(alice.id, bob.id)
    registry.record_like(alice.id, carol.id)
    MessageStore(db_session).send_introduction(alice.id, bob.id, "Hello")

    liked = {entry.user.id: entry for entry in registry.list_liked(alice.id)}

    assert set(liked) == {bob.id, carol.id}
    assert liked[bob.id].has_intro is True
    assert liked[carol.id].has_intro is False


def test_list_pending_intro_skips_matches_and_sent_intros(db_session, alice, bob, make_user) -> None:
    carol = make_user("Carol")
    dave = make_user("Dave")
    registry = LikeRegistry(db_session)
    registry.record_like(alice.id, bob.id)
    registry.record_like(alice.id, carol.id)
    registry.record_like(alice.id, dave.id)
    registry.record_like(dave.id, alice.id)
    MessageStore(db_session).send_introduction(alice.id, bob.id, "Hello")

    pending = registry.list_pending_intro(alice.id)

    assert [entry.user.id for entry in pending] == [carol.id]


def test_intro_from_the_other_side_does_not_count_as_mine(db_session, alice, bob) -> None:
    registry = LikeRegistry(db_session)
    registry.record_like(alice.id, bob.id)
    conversation, _ = ConversationStore(db_session).find_or_create(alice.id, bob.id, initial_locked=True)
    db_session.add(Message(conversation_id=conversation.id, sender_id=bob.id, content="hi"))
    db_session.commit()

    (entry,) = registry.list_liked(alice.id)
    assert entry.has_intro is False


def test_concurrent_duplicate_like_conflicts(db_session, alice, bob, monkeypatch) -> None:
    registry = LikeRegistry(db_session)
    registry.record_like(alice.id, bob.id)

    monkeypatch.setattr(LikeRegistry, "check_exists", lambda self, liker_id, liked_id: False)
    with pytest.raises(ConflictError, match="User already liked"):
        registry.record_like(alice.id, bob.id)
    monkeypatch.undo()

    assert registry.check_exists(alice.id, bob.id) is True
    assert db_session.scalar(select(func.count()).select_from(Like)) == 1
    assert registry.record_like(bob.id, alice.id).match is not None
