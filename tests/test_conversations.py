import random
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from mentorship_hub.core.change_feed import MESSAGES, NOTIFICATIONS
from mentorship_hub.core.conversations import build_conversations
from mentorship_hub.exceptions import NotFoundError, ValidationError
from mentorship_hub.models import Message, MessageKind, Notification
from mentorship_hub.schemas import MessageRecord
from mentorship_hub.services import ConversationView

def at(hour, minute):
    return datetime(2024, 1, 1, hour, minute, tzinfo=timezone.utc)

def msg(id, sender, recipient, created_at, read=False, content="hi"):
    return MessageRecord(
        id=id,
        sender_id=sender,
        recipient_id=recipient,
        content=content,
        read=read,
        created_at=created_at,
    )

ALICE, BOB, CAROL = 1, 2, 3

def test_conversation_latest_and_unread():
    messages = [
        msg(1, ALICE, BOB, at(10, 0), read=True),
        msg(2, BOB, ALICE, at(10, 5), read=False),
        msg(3, ALICE, BOB, at(10, 10), read=False),
    ]
    conversations = build_conversations(ALICE, messages)

    assert len(conversations) == 1
    conversation = conversations[0]
    assert conversation.counterparty_id == BOB
    assert conversation.latest_message.id == 3
    # Alice's own unread message to Bob does not count against her
    assert conversation.unread_count == 1

    bob_view = build_conversations(BOB, messages)
    assert bob_view[0].counterparty_id == ALICE
    assert bob_view[0].unread_count == 1

def test_conversations_sorted_by_latest_message():
    messages = [
        msg(1, ALICE, BOB, at(9, 0)),
        msg(2, CAROL, ALICE, at(11, 0)),
        msg(3, BOB, ALICE, at(10, 0)),
    ]
    conversations = build_conversations(ALICE, messages)
    assert [c.counterparty_id for c in conversations] == [CAROL, BOB]
    assert [c.latest_message.id for c in conversations] == [2, 3]

def test_equal_timestamps_break_ties_by_id():
    messages = [
        msg(7, ALICE, BOB, at(10, 0), content="later id"),
        msg(4, BOB, ALICE, at(10, 0), content="earlier id"),
    ]
    assert build_conversations(ALICE, messages)[0].latest_message.id == 7

def test_result_independent_of_input_order():
    messages = [
        msg(i, ALICE if i % 2 else BOB, BOB if i % 2 else ALICE, at(10, i % 3), read=i % 4 == 0)
        for i in range(1, 13)
    ] + [msg(20, CAROL, ALICE, at(10, 1))]
    expected = build_conversations(ALICE, messages)

    shuffled = list(messages)
    for seed in range(5):
        random.Random(seed).shuffle(shuffled)
        assert build_conversations(ALICE, shuffled) == expected

def test_duplicates_and_unrelated_messages_are_ignored():
    first = msg(1, BOB, ALICE, at(10, 0))
    messages = [first, first, msg(2, BOB, CAROL, at(12, 0))]
    conversations = build_conversations(ALICE, messages)
    assert len(conversations) == 1
    assert conversations[0].unread_count == 1

def test_self_conversation_has_no_unread():
    conversations = build_conversations(ALICE, [msg(1, ALICE, ALICE, at(10, 0))])
    assert conversations[0].counterparty_id == ALICE
    assert conversations[0].unread_count == 0

# --- ConversationService ---

def test_send_message_notifies_recipient(conversations, profiles, db):
    record = conversations.send_message(profiles["alice"], profiles["bob"], "  hello there ")

    assert record.content == "hello there"
    assert record.read is False
    assert record.kind == MessageKind.TEXT

    notes = db.query(Notification).filter(Notification.user_id == profiles["bob"]).all()
    assert len(notes) == 1
    assert notes[0].type == "message"
    assert notes[0].title == "New Message"
    assert notes[0].content == "Alice Student sent you a message"
    assert notes[0].related_id == profiles["alice"]

@pytest.mark.parametrize("kind, title", [
    (MessageKind.CONNECTION_REQUEST, "New Connection Request"),
    (MessageKind.KNOWLEDGE_REQUEST, "Knowledge Sharing Request"),
])
def test_request_kinds_use_their_own_titles(conversations, profiles, db, kind, title):
    conversations.send_message(profiles["bob"], profiles["carol"], "let's talk", kind=kind)
    note = db.query(Notification).filter(Notification.user_id == profiles["carol"]).one()
    assert note.title == title

def test_message_to_self_is_stored_without_notification(conversations, profiles, db):
    record = conversations.send_message(profiles["alice"], profiles["alice"], "note to self")
    assert record.sender_id == record.recipient_id
    assert db.query(Notification).count() == 0

def test_notes_to_self_never_count_as_unread(conversations, profiles, feed):
    alice, bob = profiles["alice"], profiles["bob"]
    view = ConversationView(alice, conversations, feed).open()
    conversations.send_message(alice, alice, "note to self")
    conversations.send_message(bob, alice, "hi")

    listed = {c.counterparty_id: c.unread_count for c in conversations.list_conversations(alice)}
    assert listed == {alice: 0, bob: 1}
    assert conversations.unread_total(alice) == 1
    assert conversations.mark_conversation_read(alice, alice) == 0

    assert view.sync() is True
    assert view.unread_total == conversations.unread_total(alice)
    assert view.conversations == conversations.list_conversations(alice)
    view.close()

def test_sent_message_survives_lost_connection_after_commit(conversations, profiles, db, feed, monkeypatch):
    def lost_connection(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection unexpectedly"))

    inbox = feed.subscribe(NOTIFICATIONS, {"user_id": profiles["bob"]})
    monkeypatch.setattr(db, "refresh", lost_connection)
    record = conversations.send_message(profiles["alice"], profiles["bob"], "hello")
    monkeypatch.undo()

    stored = db.get(Message, record.id)
    db.refresh(stored)
    assert MessageRecord.model_validate(stored) == record
    assert [e.row["title"] for e in inbox.poll()] == ["New Message"]

@pytest.mark.parametrize("content", ["", "  ", "x" * 5001])
def test_send_message_validates_content(conversations, profiles, content):
    with pytest.raises(ValidationError):
        conversations.send_message(profiles["alice"], profiles["bob"], content)

def test_send_message_unknown_recipient(conversations, profiles, db):
    with pytest.raises(NotFoundError):
        conversations.send_message(profiles["alice"], 4242, "anyone there?")
    assert db.query(Notification).count() == 0

def test_list_conversations_and_mark_read(conversations, profiles):
    alice, bob, carol = profiles["alice"], profiles["bob"], profiles["carol"]
    conversations.send_message(alice, bob, "hi bob")
    conversations.send_message(bob, alice, "hi alice")
    conversations.send_message(bob, alice, "are you there?")
    latest = conversations.send_message(carol, alice, "hey, it's carol")

    listing = conversations.list_conversations(alice)
    assert [c.counterparty_id for c in listing] == [carol, bob]
    assert listing[0].latest_message.id == latest.id
    assert {c.counterparty_id: c.unread_count for c in listing} == {carol: 1, bob: 2}
    assert conversations.unread_total(alice) == 3

    assert conversations.mark_conversation_read(alice, bob) == 2
    assert conversations.mark_conversation_read(alice, bob) == 0

    listing = conversations.list_conversations(alice)
    assert {c.counterparty_id: c.unread_count for c in listing} == {carol: 1, bob: 0}
    # Bob's own unread count is untouched by Alice reading her side
    assert conversations.unread_total(bob) == 1

def test_get_thread_is_ascending(conversations, profiles):
    alice, bob = profiles["alice"], profiles["bob"]
    sent = [
        conversations.send_message(alice, bob, "one"),
        conversations.send_message(bob, alice, "two"),
        conversations.send_message(alice, bob, "three"),
    ]
    conversations.send_message(alice, profiles["carol"], "elsewhere")

    thread = conversations.get_thread(alice, bob)
    assert [m.id for m in thread] == [m.id for m in sent]
    assert conversations.get_thread(bob, alice) == thread

def test_messages_and_notifications_are_published(conversations, profiles, feed):
    alice, bob = profiles["alice"], profiles["bob"]
    inbound = feed.subscribe(MESSAGES, {"recipient_id": bob})
    bob_notes = feed.subscribe(NOTIFICATIONS, {"user_id": bob})

    record = conversations.send_message(alice, bob, "ping")
    conversations.mark_conversation_read(bob, alice)

    events = inbound.poll()
    assert [(e.operation, e.row["id"], e.row["read"]) for e in events] == [
        ("insert", record.id, False),
        ("update", record.id, True),
    ]
    assert [e.row["title"] for e in bob_notes.poll()] == ["New Message"]
