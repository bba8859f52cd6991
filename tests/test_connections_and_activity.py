import pytest

from mentorship_hub.core.access import Audience
from mentorship_hub.core.change_feed import CONNECTIONS
from mentorship_hub.exceptions import AuthorizationError, DuplicateRequestError, NotFoundError, ValidationError
from mentorship_hub.models import Notification
from mentorship_hub.services import ActivityNotifier, AnnouncementService

def test_follow_and_unfollow(connections, profiles, db, feed):
    alice, bob = profiles["alice"], profiles["bob"]
    sub = feed.subscribe(CONNECTIONS, {"following_id": bob})

    record = connections.follow(alice, bob)
    assert connections.is_following(alice, bob)
    assert not connections.is_following(bob, alice)
    assert [c.follower_id for c in connections.list_followers(bob)] == [alice]
    assert [c.following_id for c in connections.list_following(alice)] == [bob]

    note = db.query(Notification).filter(Notification.user_id == bob).one()
    assert note.type == "connection"
    assert note.title == "New Follower"
    assert note.related_id == alice

    connections.unfollow(alice, bob)
    assert not connections.is_following(alice, bob)
    assert [(e.operation, e.row["id"]) for e in sub.poll()] == [("insert", record.id), ("delete", record.id)]

def test_follow_rules(connections, profiles):
    alice, bob = profiles["alice"], profiles["bob"]
    with pytest.raises(ValidationError):
        connections.follow(alice, alice)
    connections.follow(alice, bob)
    with pytest.raises(DuplicateRequestError):
        connections.follow(alice, bob)
    with pytest.raises(NotFoundError):
        connections.follow(alice, 31337)
    with pytest.raises(NotFoundError):
        connections.unfollow(bob, alice)

def test_post_activity_skips_self(dispatcher, directory, profiles):
    notifier = ActivityNotifier(dispatcher, directory)
    alice, bob = profiles["alice"], profiles["bob"]

    assert notifier.post_liked(alice, alice, post_id=7, post_title="My week") is None
    liked = notifier.post_liked(bob, alice, post_id=7, post_title="My week")
    commented = notifier.post_commented(bob, alice, post_id=7, post_title="My week")

    assert liked.title == "Post Liked"
    assert liked.content == 'Bob Alumni liked your post "My week"'
    assert commented.title == "New Comment"
    assert {liked.related_id, commented.related_id} == {7}
    assert dispatcher.unread_count(alice) == 2

@pytest.mark.parametrize("audience, expected", [
    (Audience.EVERYONE, {"alice", "carol", "bob", "dave"}),
    (Audience.STUDENTS_AND_ADMINS, {"alice", "carol"}),
    (Audience.ALUMNI_AND_ADMINS, {"bob", "dave"}),
])
def test_announcement_fan_out(db, dispatcher, directory, profiles, audience, expected):
    service = AnnouncementService(db, dispatcher, directory)
    records = service.announce(profiles["erin"], "Career fair", "Friday in the main hall", audience=audience)

    by_id = {v: k for k, v in profiles.items()}
    assert {by_id[r.user_id] for r in records} == expected
    assert all(r.type.value == "announcement" for r in records)

def test_only_admins_announce(db, dispatcher, directory, profiles):
    service = AnnouncementService(db, dispatcher, directory)
    with pytest.raises(AuthorizationError):
        service.announce(profiles["bob"], "Hi", "all")
    with pytest.raises(ValidationError):
        service.announce(profiles["erin"], "Hi", "all", audience="martians")
    assert db.query(Notification).count() == 0
