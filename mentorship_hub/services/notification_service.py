# mentorship_hub/services/notification_service.py
import logging
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..constants import ErrorMessages
from ..core.change_feed import ChangeFeed, NOTIFICATIONS
from ..exceptions import AuthorizationError, NotFoundError, ValidationError
from ..models import Notification, NotificationType
from ..schemas import NotificationRecord
from ..utils.validation_utils import store_errors

logger = logging.getLogger(__name__)

NOTIFICATION_FILTERS = ("all", "unread")

class NotificationDispatcher:
    """
    Single point of creation for notifications.

    ``dispatch`` has no actor parameter, so it cannot tell a self-notification
    apart from any other: callers skip the call when the acting profile is the
    recipient. Every committed insert, update and delete is published on the
    change feed under ``user_id`` for live clients; ``list_notifications`` and
    ``unread_count`` always reflect the store and do not depend on the push.
    """

    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None, settings: Optional[Settings] = None):
        self.db = db
        self.feed = feed
        self.settings = settings or get_settings()

    def stage(self, recipient_id: int, type: NotificationType, title: str, content: str, related_id: Optional[int] = None) -> Notification:
        """Adds a notification to the current transaction without committing it."""
        try:
            notification_type = NotificationType(type)
        except ValueError:
            raise ValidationError(f"Unknown notification type: {type}")
        if not title or not title.strip():
            raise ValidationError("Notification title cannot be empty")

        notification = Notification(
            user_id=recipient_id,
            type=notification_type.value,
            title=title.strip(),
            content=content or "",
            related_id=related_id,
            read=False,
        )
        self.db.add(notification)
        return notification

    def snapshot(self, notifications: Iterable[Notification]) -> List[NotificationRecord]:
        """Flushes staged notifications and captures their records inside the open transaction."""
        notifications = list(notifications)
        if not notifications:
            return []
        self.db.flush()
        return [NotificationRecord.model_validate(n) for n in notifications]

    def publish(self, records: Iterable[NotificationRecord]) -> List[NotificationRecord]:
        """Pushes records of committed notifications to live subscribers."""
        records = list(records)
        if self.feed is not None:
            for record in records:
                self.feed.publish(NOTIFICATIONS, "insert", record)
        return records

    def dispatch(self, recipient_id: int, type: NotificationType, title: str, content: str, related_id: Optional[int] = None) -> NotificationRecord:
        """Creates a notification for ``recipient_id`` and pushes it to live subscribers."""
        with store_errors(self.db, "dispatching notification"):
            notification = self.stage(recipient_id, type, title, content, related_id)
            record = self.snapshot([notification])[0]
            self.db.commit()
        self.publish([record])
        logger.info(f"Notification {record.id} ({record.type.value}) dispatched to user {recipient_id}")
        return record

    def get_notification_or_404(self, notification_id: int) -> Notification:
        notification = self.db.get(Notification, notification_id)
        if not notification:
            raise NotFoundError(ErrorMessages.NOTIFICATION_NOT_FOUND)
        return notification

    def _check_owner(self, notification: Notification, actor_id: Optional[int]):
        if actor_id is not None and notification.user_id != actor_id:
            raise AuthorizationError(ErrorMessages.NOT_NOTIFICATION_OWNER)

    def mark_read(self, notification_id: int, actor_id: Optional[int] = None) -> NotificationRecord:
        """Marks one notification read. Already-read notifications are left untouched."""
        with store_errors(self.db, "marking notification read"):
            notification = self.get_notification_or_404(notification_id)
            self._check_owner(notification, actor_id)
            if notification.read:
                return NotificationRecord.model_validate(notification)

            notification.read = True
            self.db.flush()
            record = NotificationRecord.model_validate(notification)
            self.db.commit()
        if self.feed is not None:
            self.feed.publish(NOTIFICATIONS, "update", record)
        return record

    def mark_all_read(self, user_id: int) -> int:
        """Marks every unread notification of ``user_id`` read. Returns how many changed."""
        with store_errors(self.db, "marking all notifications read"):
            unread = self.db.query(Notification).filter(
                Notification.user_id == user_id,
                Notification.read.is_(False)
            ).all()
            if not unread:
                return 0
            for notification in unread:
                notification.read = True
            self.db.flush()
            records = [NotificationRecord.model_validate(n) for n in unread]
            self.db.commit()
        if self.feed is not None:
            for record in records:
                self.feed.publish(NOTIFICATIONS, "update", record)
        logger.info(f"Marked {len(records)} notifications read for user {user_id}")
        return len(records)

    def delete(self, notification_id: int, actor_id: int) -> NotificationRecord:
        """Hard-deletes a notification. Only its recipient may do this."""
        with store_errors(self.db, "deleting notification"):
            notification = self.get_notification_or_404(notification_id)
            if notification.user_id != actor_id:
                raise AuthorizationError(ErrorMessages.NOT_NOTIFICATION_OWNER)
            record = NotificationRecord.model_validate(notification)
            self.db.delete(notification)
            self.db.commit()
        if self.feed is not None:
            self.feed.publish(NOTIFICATIONS, "delete", record)
        logger.info(f"Notification {notification_id} deleted by user {actor_id}")
        return record

    def list_notifications(self, user_id: int, filter: str = "all") -> List[NotificationRecord]:
        """Newest first, capped at the configured page size."""
        if filter not in NOTIFICATION_FILTERS:
            raise ValidationError(f"Unknown notification filter: {filter}")
        with store_errors(self.db, "listing notifications"):
            query = self.db.query(Notification).filter(Notification.user_id == user_id)
            if filter == "unread":
                query = query.filter(Notification.read.is_(False))
            rows = query.order_by(
                Notification.created_at.desc(),
                Notification.id.desc()
            ).limit(self.settings.NOTIFICATION_PAGE_SIZE).all()
            return [NotificationRecord.model_validate(n) for n in rows]

    def unread_count(self, user_id: int) -> int:
        with store_errors(self.db, "counting unread notifications"):
            return self.db.query(Notification).filter(
                Notification.user_id == user_id,
                Notification.read.is_(False)
            ).count()
