"""Tests for canonical-pair conversations and their lock state."""

import uuid

import pytest
from sqlalchemy import func, select

from heartline.core.errors import InvalidTransitionError, NotFoundError
from heartline.models import Conversation, ConversationState, Message
from heartline.services.conversation_store import (
    DELETED_USER_NAME,
    HIDDEN_USER_NAME,
    ConversationStore,
    canonical_pair,
)


def test_canonical_pair_orders_ids() -> None:
    low = uuid.UUID(int=1)
    high = uuid.UUID(int=2)
    assert canonical_pair(low, high) == (low, high)
    assert canonical_pair(high, low) == (low, high)


def test_both_orderings_resolve_to_the_same_row(db_session, alice, bob) -> None:
    store = ConversationStore(db_session)
    first, created = store.find_or_create(alice.id, bob.id, initial_locked=True)
    second, created_again = store.find_or_create(bob.id, alice.id, initial_locked=False)
    db_session.commit()

    assert created is True
    assert created_again is False
    assert first.id == second.id
    assert first.user_a_id == min(alice.id, bob.id)
    assert first.is_locked is True
    assert store.find(bob.id, alice.id).id == first.id
    assert db_session.scalar(select(func.count()).select_from(Conversation)) == 1


def test_set_locked_only_moves_pending_to_active(db_session, alice, bob) -> None:
    store = ConversationStore(db_session)
    conversation, _ = store.find_or_create(alice.id, bob.id, initial_locked=True)

    assert store.set_locked(conversation, False) is True
    assert conversation.state == ConversationState.ACTIVE
    assert store.set_locked(conversation, False) is False

    with pytest.raises(InvalidTransitionError):
        store.set_locked(conversation, True)
    assert conversation.is_locked is False


def test_get_unknown_conversation(db_session) -> None:
    with pytest.raises(NotFoundError, match="Conversation not found"):
        ConversationStore(db_session).get(uuid.uuid4())


def test_list_for_user_hides_counterpart_while_locked(db_session, alice, bob, make_user) -> None:
    carol = make_user("Carol")
    store = ConversationStore(db_session)
    locked, _ = store.find_or_create(alice.id, bob.id, initial_locked=True)
    open_, _ = store.find_or_create(alice.id, carol.id, initial_locked=False)
    db_session.add(Message(conversation_id=open_.id, sender_id=carol.id, content="hey"))
    store.touch(open_)
    db_session.commit()

    summaries = store.list_for_user(alice.id)
    by_id = {summary.conversation.id: summary for summary in summaries}

    assert summaries[0].conversation.id == open_.id
    assert by_id[locked.id].other_user == {"name": HIDDEN_USER_NAME, "avatarUrl": None}
    assert by_id[locked.id].last_message is None
    assert by_id[open_.id].other_user == {
        "id": str(carol.id),
        "name": "Carol",
        "avatarUrl": carol.avatar_url,
    }
    assert by_id[open_.id].last_message.content == "hey"


def test_list_for_user_reports_deleted_counterpart(db_session, alice, bob) -> None:
    store = ConversationStore(db_session)
    conversation, _ = store.find_or_create(alice.id, bob.id, initial_locked=False)
    if conversation.user_a_id == bob.id:
        conversation.user_a_id = None
    else:
        conversation.user_b_id = None
    db_session.commit()

    (summary,) = store.list_for_user(alice.id)
    assert summary.other_user == {"name": DELETED_USER_NAME, "avatarUrl": None}
    assert store.list_for_user(bob.id) == []


def test_concurrent_create_reuses_the_winning_row(db_session, alice, bob, monkeypatch) -> None:
    store = ConversationStore(db_session)
    winner, _ = store.find_or_create(alice.id, bob.id, initial_locked=False)
    db_session.commit()

    real_find = ConversationStore.find
    lookups: list[tuple] = []

    def stale_find(self, *args, **kwargs):
        # First lookup misses, as if the other request had not committed yet.
        lookups.append(args)
        if len(lookups) == 1:
            return None
        return real_find(self, *args, **kwargs)

    monkeypatch.setattr(ConversationStore, "find", stale_find)

    conversation, created = store.find_or_create(bob.id, alice.id, initial_locked=True)

    assert created is False
    assert conversation.id == winner.id
    assert conversation.is_locked is False
    assert len(lookups) == 2
    db_session.commit()
    assert db_session.scalar(select(func.count()).select_from(Conversation)) == 1
