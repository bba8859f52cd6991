import pytest

from mentorship_hub.core.change_feed import NOTIFICATIONS
from mentorship_hub.exceptions import AuthorizationError, NotFoundError, ValidationError
from mentorship_hub.models import NotificationType
from mentorship_hub.services import NotificationDispatcher

def send(dispatcher, user_id, title="Hello", type=NotificationType.ANNOUNCEMENT):
    return dispatcher.dispatch(recipient_id=user_id, type=type, title=title, content="body")

def test_dispatch_stores_unread(dispatcher, profiles):
    record = send(dispatcher, profiles["alice"], title="  Welcome  ")
    assert record.read is False
    assert record.title == "Welcome"
    assert record.user_id == profiles["alice"]
    assert dispatcher.unread_count(profiles["alice"]) == 1

def test_unknown_type_is_rejected(dispatcher, profiles):
    with pytest.raises(ValidationError):
        dispatcher.dispatch(profiles["alice"], "carrier-pigeon", "title", "content")

def test_empty_title_is_rejected(dispatcher, profiles):
    with pytest.raises(ValidationError):
        dispatcher.dispatch(profiles["alice"], NotificationType.POST, "   ", "content")

def test_list_is_newest_first(dispatcher, profiles):
    first = send(dispatcher, profiles["alice"], "first")
    second = send(dispatcher, profiles["alice"], "second")
    send(dispatcher, profiles["bob"], "not alice's")

    listed = dispatcher.list_notifications(profiles["alice"])
    assert [n.id for n in listed] == [second.id, first.id]

def test_list_is_capped_at_page_size(db, feed, settings, profiles):
    small = NotificationDispatcher(db, feed, settings.model_copy(update={"NOTIFICATION_PAGE_SIZE": 3}))
    ids = [send(small, profiles["alice"], f"n{i}").id for i in range(5)]
    assert [n.id for n in small.list_notifications(profiles["alice"])] == ids[::-1][:3]

def test_unread_filter(dispatcher, profiles):
    read = send(dispatcher, profiles["alice"], "read me")
    unread = send(dispatcher, profiles["alice"], "leave me")
    dispatcher.mark_read(read.id, profiles["alice"])

    assert [n.id for n in dispatcher.list_notifications(profiles["alice"], "unread")] == [unread.id]
    with pytest.raises(ValidationError):
        dispatcher.list_notifications(profiles["alice"], "archived")

def test_mark_read_is_idempotent(dispatcher, profiles, feed):
    record = send(dispatcher, profiles["alice"])
    sub = feed.subscribe(NOTIFICATIONS, {"user_id": profiles["alice"]})

    assert dispatcher.mark_read(record.id, profiles["alice"]).read is True
    assert dispatcher.mark_read(record.id, profiles["alice"]).read is True
    assert dispatcher.unread_count(profiles["alice"]) == 0
    # Only the real change is pushed
    assert [e.operation for e in sub.poll()] == ["update"]

def test_mark_read_only_by_recipient(dispatcher, profiles):
    record = send(dispatcher, profiles["alice"])
    with pytest.raises(AuthorizationError):
        dispatcher.mark_read(record.id, profiles["bob"])
    with pytest.raises(NotFoundError):
        dispatcher.mark_read(99999, profiles["alice"])

def test_mark_all_read(dispatcher, profiles):
    for i in range(3):
        send(dispatcher, profiles["alice"], f"n{i}")
    send(dispatcher, profiles["bob"])

    assert dispatcher.mark_all_read(profiles["alice"]) == 3
    assert dispatcher.mark_all_read(profiles["alice"]) == 0
    assert dispatcher.unread_count(profiles["alice"]) == 0
    assert dispatcher.unread_count(profiles["bob"]) == 1

def test_delete_only_by_recipient(dispatcher, profiles, feed):
    record = send(dispatcher, profiles["alice"])
    sub = feed.subscribe(NOTIFICATIONS, {"user_id": profiles["alice"]})

    with pytest.raises(AuthorizationError):
        dispatcher.delete(record.id, profiles["bob"])
    dispatcher.delete(record.id, profiles["alice"])

    assert dispatcher.list_notifications(profiles["alice"]) == []
    assert [(e.operation, e.row["id"]) for e in sub.poll()] == [("delete", record.id)]
    with pytest.raises(NotFoundError):
        dispatcher.delete(record.id, profiles["alice"])

def test_push_reaches_only_the_recipient(dispatcher, profiles, feed):
    alice_sub = feed.subscribe(NOTIFICATIONS, {"user_id": profiles["alice"]})
    bob_sub = feed.subscribe(NOTIFICATIONS, {"user_id": profiles["bob"]})

    record = send(dispatcher, profiles["alice"])

    events = alice_sub.poll()
    assert len(events) == 1
    assert events[0].operation == "insert"
    assert events[0].row["id"] == record.id
    assert events[0].row["type"] == "announcement"
    assert bob_sub.poll() == []

def test_dispatch_without_feed_still_persists(db, settings, profiles):
    offline = NotificationDispatcher(db, None, settings)
    record = send(offline, profiles["alice"])
    assert [n.id for n in offline.list_notifications(profiles["alice"])] == [record.id]
