# mentorship_hub/services/connection_service.py
import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..constants import ErrorMessages, NotificationTitles
from ..core.change_feed import ChangeFeed, CONNECTIONS
from ..exceptions import DuplicateRequestError, NotFoundError, ValidationError
from ..models import Connection, NotificationType
from ..schemas import ConnectionRecord
from ..utils.validation_utils import store_errors
from .directory_service import DirectoryService
from .notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

class ConnectionService:
    """Directed follow edges. No approval step: either endpoint acts alone."""

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[NotificationDispatcher] = None,
        directory: Optional[DirectoryService] = None,
        feed: Optional[ChangeFeed] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.feed = feed
        self.dispatcher = dispatcher or NotificationDispatcher(db, feed, self.settings)
        self.directory = directory or DirectoryService(db)

    def _find(self, follower_id: int, following_id: int) -> Optional[Connection]:
        return self.db.query(Connection).filter(
            Connection.follower_id == follower_id,
            Connection.following_id == following_id
        ).first()

    def follow(self, follower_id: int, following_id: int) -> ConnectionRecord:
        if follower_id == following_id:
            raise ValidationError(ErrorMessages.CANNOT_FOLLOW_SELF)

        with store_errors(self.db, "following profile"):
            follower = self.directory.get_profile(follower_id)
            self.directory.get_profile(following_id)
            if self._find(follower_id, following_id):
                raise DuplicateRequestError(ErrorMessages.ALREADY_FOLLOWING)

            connection = Connection(follower_id=follower_id, following_id=following_id)
            self.db.add(connection)
            try:
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                raise DuplicateRequestError(ErrorMessages.ALREADY_FOLLOWING)

            record = ConnectionRecord.model_validate(connection)
            notifications = self.dispatcher.snapshot([self.dispatcher.stage(
                recipient_id=following_id,
                type=NotificationType.CONNECTION,
                title=NotificationTitles.NEW_FOLLOWER,
                content=f"{follower.full_name} started following you",
                related_id=follower_id,
            )])
            self.db.commit()

        if self.feed is not None:
            self.feed.publish(CONNECTIONS, "insert", record)
        self.dispatcher.publish(notifications)

        logger.info(f"User {follower_id} now follows {following_id}")
        return record

    def unfollow(self, follower_id: int, following_id: int) -> ConnectionRecord:
        with store_errors(self.db, "unfollowing profile"):
            connection = self._find(follower_id, following_id)
            if not connection:
                raise NotFoundError(ErrorMessages.NOT_FOLLOWING)
            record = ConnectionRecord.model_validate(connection)
            self.db.delete(connection)
            self.db.commit()

        if self.feed is not None:
            self.feed.publish(CONNECTIONS, "delete", record)
        logger.info(f"User {follower_id} unfollowed {following_id}")
        return record

    def is_following(self, follower_id: int, following_id: int) -> bool:
        with store_errors(self.db, "checking connection"):
            return self._find(follower_id, following_id) is not None

    def list_followers(self, user_id: int) -> List[ConnectionRecord]:
        with store_errors(self.db, "listing followers"):
            rows = self.db.query(Connection).filter(Connection.following_id == user_id).order_by(
                Connection.created_at.desc(), Connection.id.desc()
            ).all()
            return [ConnectionRecord.model_validate(c) for c in rows]

    def list_following(self, user_id: int) -> List[ConnectionRecord]:
        with store_errors(self.db, "listing following"):
            rows = self.db.query(Connection).filter(Connection.follower_id == user_id).order_by(
                Connection.created_at.desc(), Connection.id.desc()
            ).all()
            return [ConnectionRecord.model_validate(c) for c in rows]
