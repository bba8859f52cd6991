# mentorship_hub/services/activity_service.py
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from ..constants import ErrorMessages, NotificationTitles
from ..core.access import Audience, role_in_audience
from ..exceptions import AuthorizationError, ValidationError
from ..models import NotificationType, UserRole
from ..schemas import NotificationRecord
from ..utils.validation_utils import store_errors
from .directory_service import DirectoryService
from .notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

class ActivityNotifier:
    """Notification hooks for post likes and comments, called by the feed feature."""

    def __init__(self, dispatcher: NotificationDispatcher, directory: DirectoryService):
        self.dispatcher = dispatcher
        self.directory = directory

    def _actor_name(self, actor_id: int) -> str:
        actor = self.directory.find_profile(actor_id)
        return actor.full_name if actor else "Someone"

    def post_liked(self, actor_id: int, author_id: int, post_id: int, post_title: str) -> Optional[NotificationRecord]:
        if actor_id == author_id:
            return None
        return self.dispatcher.dispatch(
            recipient_id=author_id,
            type=NotificationType.POST,
            title=NotificationTitles.POST_LIKED,
            content=f'{self._actor_name(actor_id)} liked your post "{post_title}"',
            related_id=post_id,
        )

    def post_commented(self, actor_id: int, author_id: int, post_id: int, post_title: str) -> Optional[NotificationRecord]:
        if actor_id == author_id:
            return None
        return self.dispatcher.dispatch(
            recipient_id=author_id,
            type=NotificationType.POST,
            title=NotificationTitles.NEW_COMMENT,
            content=f'{self._actor_name(actor_id)} commented on your post "{post_title}"',
            related_id=post_id,
        )

class AnnouncementService:
    def __init__(self, db: Session, dispatcher: NotificationDispatcher, directory: Optional[DirectoryService] = None):
        self.db = db
        self.dispatcher = dispatcher
        self.directory = directory or DirectoryService(db)

    def announce(self, author_id: int, title: str, content: str, audience: Audience = Audience.EVERYONE, related_id: Optional[int] = None) -> List[NotificationRecord]:
        """Fans an announcement out to every profile in ``audience`` except its author."""
        try:
            audience = Audience(audience)
        except ValueError:
            raise ValidationError(f"Unknown audience: {audience}")

        with store_errors(self.db, "publishing announcement"):
            author = self.directory.get_profile(author_id)
            if author.role != UserRole.ADMIN:
                raise AuthorizationError(ErrorMessages.ADMIN_ONLY)

            recipients = [
                profile for profile in self.directory.list_profiles()
                if profile.id != author_id and role_in_audience(profile.role, audience)
            ]
            staged = [
                self.dispatcher.stage(
                    recipient_id=profile.id,
                    type=NotificationType.ANNOUNCEMENT,
                    title=title,
                    content=content,
                    related_id=related_id,
                )
                for profile in recipients
            ]
            records = self.dispatcher.snapshot(staged)
            self.db.commit()

        self.dispatcher.publish(records)

        logger.info(f"Announcement '{title}' from admin {author_id} sent to {len(records)} profiles ({audience.value})")
        return records
