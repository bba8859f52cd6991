# mentorship_hub/services/live_views.py
"""
Client-side state kept current by change-feed pushes.

Both views treat push as a shortcut only: they can always be rebuilt with
``refresh()``, and ``sync()`` falls back to a refresh whenever the feed
cannot be trusted (no subscription, a lagged buffer, or a closed handle).
"""
import logging
from typing import Dict, List, Optional

from ..core.change_feed import ChangeEvent, ChangeFeed, Subscription, MESSAGES, NOTIFICATIONS
from ..core.conversations import build_conversations, message_order_key
from ..schemas import Conversation, MessageRecord, NotificationRecord
from .conversation_service import ConversationService
from .notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

class _LiveView:
    entity_kind = ""

    def __init__(self, feed: Optional[ChangeFeed]):
        self.feed = feed
        self._subscriptions: List[Subscription] = []

    def _filters(self) -> List[dict]:
        raise NotImplementedError

    def refresh(self):
        raise NotImplementedError

    def apply(self, event: ChangeEvent):
        raise NotImplementedError

    def open(self):
        if self.feed is not None and not self._subscriptions:
            self._subscriptions = [self.feed.subscribe(self.entity_kind, f) for f in self._filters()]
        self.refresh()
        return self

    def close(self):
        for subscription in self._subscriptions:
            self.feed.unsubscribe(subscription)
        self._subscriptions = []

    def sync(self) -> bool:
        """
        Applies buffered events. Returns False when it had to re-query
        instead (feed missing, closed or lagged).
        """
        if not self._subscriptions or any(s.closed or s.lagged for s in self._subscriptions):
            # Drain first so stale events are not replayed on top of the fresh state
            for subscription in self._subscriptions:
                subscription.poll()
                subscription.clear_lag()
            self.refresh()
            return False
        for subscription in self._subscriptions:
            for event in subscription.poll():
                self.apply(event)
        return True

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.close()

class ConversationView(_LiveView):
    """A viewer's conversation list, held as the raw message set it is derived from."""

    entity_kind = MESSAGES

    def __init__(self, viewer_id: int, service: ConversationService, feed: Optional[ChangeFeed] = None):
        super().__init__(feed)
        self.viewer_id = viewer_id
        self.service = service
        self._messages: Dict[int, MessageRecord] = {}

    def _filters(self) -> List[dict]:
        return [{"sender_id": self.viewer_id}, {"recipient_id": self.viewer_id}]

    def refresh(self):
        self._messages = {m.id: m for m in self.service.list_viewer_messages(self.viewer_id)}

    def apply(self, event: ChangeEvent):
        if event.entity_kind != MESSAGES:
            return
        message = MessageRecord.model_validate(event.row)
        if self.viewer_id not in (message.sender_id, message.recipient_id):
            return
        if event.operation == "delete":
            self._messages.pop(message.id, None)
            return
        known = self._messages.get(message.id)
        if known is not None and known.read and not message.read:
            # read never reverts; an older event must not undo a newer one
            message = message.model_copy(update={"read": True})
        self._messages[message.id] = message

    @property
    def conversations(self) -> List[Conversation]:
        return build_conversations(self.viewer_id, self._messages.values())

    def thread(self, counterparty_id: int) -> List[MessageRecord]:
        messages = [
            m for m in self._messages.values()
            if {m.sender_id, m.recipient_id} == {self.viewer_id, counterparty_id}
        ]
        return sorted(messages, key=message_order_key)

    @property
    def unread_total(self) -> int:
        return sum(c.unread_count for c in self.conversations)

class NotificationInbox(_LiveView):
    """A profile's notification panel."""

    entity_kind = NOTIFICATIONS

    def __init__(self, user_id: int, dispatcher: NotificationDispatcher, feed: Optional[ChangeFeed] = None):
        super().__init__(feed)
        self.user_id = user_id
        self.dispatcher = dispatcher
        self._items: Dict[int, NotificationRecord] = {}

    def _filters(self) -> List[dict]:
        return [{"user_id": self.user_id}]

    def refresh(self):
        self._items = {n.id: n for n in self.dispatcher.list_notifications(self.user_id)}

    def apply(self, event: ChangeEvent):
        if event.entity_kind != NOTIFICATIONS:
            return
        notification = NotificationRecord.model_validate(event.row)
        if notification.user_id != self.user_id:
            return
        if event.operation == "delete":
            self._items.pop(notification.id, None)
            return
        known = self._items.get(notification.id)
        if known is not None and known.read and not notification.read:
            notification = notification.model_copy(update={"read": True})
        self._items[notification.id] = notification

    @property
    def notifications(self) -> List[NotificationRecord]:
        items = sorted(self._items.values(), key=lambda n: (n.created_at, n.id), reverse=True)
        return items[:self.dispatcher.settings.NOTIFICATION_PAGE_SIZE]

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)
