# mentorship_hub/services/conversation_service.py
import logging
from typing import List, Optional
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..constants import NotificationTitles
from ..core.change_feed import ChangeFeed, MESSAGES
from ..core.conversations import build_conversations
from ..exceptions import ValidationError
from ..models import Message, MessageKind, NotificationType
from ..schemas import Conversation, MessageRecord
from ..utils.validation_utils import ValidationUtils, store_errors
from .directory_service import DirectoryService
from .notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

KIND_TITLES = {
    MessageKind.TEXT: NotificationTitles.NEW_MESSAGE,
    MessageKind.CONNECTION_REQUEST: NotificationTitles.CONNECTION_REQUEST,
    MessageKind.KNOWLEDGE_REQUEST: NotificationTitles.KNOWLEDGE_REQUEST,
}

KIND_DESCRIPTIONS = {
    MessageKind.TEXT: "sent you a message",
    MessageKind.CONNECTION_REQUEST: "wants to connect with you",
    MessageKind.KNOWLEDGE_REQUEST: "sent you a knowledge sharing request",
}

class ConversationService:
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

    def send_message(self, sender_id: int, recipient_id: int, content: str, kind: MessageKind = MessageKind.TEXT) -> MessageRecord:
        """Appends an unread message and notifies the recipient (unless writing to oneself)."""
        text = ValidationUtils.validate_text(content, self.settings.CHAT_MESSAGE_MAX_LENGTH)
        try:
            kind = MessageKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown message kind: {kind}")

        with store_errors(self.db, "sending message"):
            sender = self.directory.get_profile(sender_id)
            self.directory.get_profile(recipient_id)

            message = Message(
                sender_id=sender_id,
                recipient_id=recipient_id,
                content=text,
                kind=kind.value,
                read=False,
            )
            self.db.add(message)
            self.db.flush()
            record = MessageRecord.model_validate(message)
            notifications = []
            if sender_id != recipient_id:
                notifications = self.dispatcher.snapshot([self.dispatcher.stage(
                    recipient_id=recipient_id,
                    type=NotificationType.MESSAGE,
                    title=KIND_TITLES[kind],
                    content=f"{sender.full_name} {KIND_DESCRIPTIONS[kind]}",
                    related_id=sender_id,
                )])
            self.db.commit()

        if self.feed is not None:
            self.feed.publish(MESSAGES, "insert", record)
        self.dispatcher.publish(notifications)
        logger.info(f"Message {record.id} ({kind.value}) sent from {sender_id} to {recipient_id}")
        return record

    def list_viewer_messages(self, viewer_id: int) -> List[MessageRecord]:
        """Every message the viewer sent or received."""
        with store_errors(self.db, "loading messages"):
            rows = self.db.query(Message).filter(
                or_(Message.sender_id == viewer_id, Message.recipient_id == viewer_id)
            ).order_by(Message.created_at.asc(), Message.id.asc()).all()
            return [MessageRecord.model_validate(m) for m in rows]

    def list_conversations(self, viewer_id: int) -> List[Conversation]:
        return build_conversations(viewer_id, self.list_viewer_messages(viewer_id))

    def get_thread(self, viewer_id: int, counterparty_id: int) -> List[MessageRecord]:
        """Messages between the two profiles, oldest first."""
        with store_errors(self.db, "loading thread"):
            rows = self.db.query(Message).filter(
                or_(
                    and_(Message.sender_id == viewer_id, Message.recipient_id == counterparty_id),
                    and_(Message.sender_id == counterparty_id, Message.recipient_id == viewer_id),
                )
            ).order_by(Message.created_at.asc(), Message.id.asc()).all()
            return [MessageRecord.model_validate(m) for m in rows]

    def mark_conversation_read(self, viewer_id: int, counterparty_id: int) -> int:
        """
        Marks the counterparty's unread messages to the viewer as read and
        returns how many changed. With nothing unread this is a no-op, and
        so is the viewer's conversation with themself.
        """
        if viewer_id == counterparty_id:
            return 0
        with store_errors(self.db, "marking conversation read"):
            unread = self.db.query(Message).filter(
                Message.sender_id == counterparty_id,
                Message.recipient_id == viewer_id,
                Message.read.is_(False)
            ).all()
            if not unread:
                return 0
            for message in unread:
                message.read = True
            self.db.flush()
            records = [MessageRecord.model_validate(m) for m in unread]
            self.db.commit()

        if self.feed is not None:
            for record in records:
                self.feed.publish(MESSAGES, "update", record)
        logger.info(f"User {viewer_id} read {len(records)} messages from {counterparty_id}")
        return len(records)

    def unread_total(self, viewer_id: int) -> int:
        """Unread messages addressed to the viewer by other profiles."""
        with store_errors(self.db, "counting unread messages"):
            return self.db.query(Message).filter(
                Message.recipient_id == viewer_id,
                Message.sender_id != viewer_id,
                Message.read.is_(False)
            ).count()
