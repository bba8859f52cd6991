# mentorship_hub/models.py
from enum import Enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Sequence, Index, UniqueConstraint, CheckConstraint, text

from .database import Base

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class UserRole(str, Enum):
    STUDENT = "student"
    ALUMNI = "alumni"
    ADMIN = "admin"

class MentorshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected" # Mentor declines a pending request
    COMPLETED = "completed" # Either party concludes an accepted mentorship

OPEN_STATUSES = (MentorshipStatus.PENDING, MentorshipStatus.ACCEPTED)

class MessageKind(str, Enum):
    TEXT = "text"
    CONNECTION_REQUEST = "connection_request"
    KNOWLEDGE_REQUEST = "knowledge_request"

class NotificationType(str, Enum):
    MESSAGE = "message"
    MENTORSHIP = "mentorship"
    ANNOUNCEMENT = "announcement"
    POST = "post"
    CONNECTION = "connection"

# Directory table. Owned by the profile service; this core only reads it.
class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, Sequence('profile_id_seq'), primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.STUDENT.value)
    headline = Column(String, nullable=True)
    is_open_to_mentor = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<Profile(id={self.id}, full_name='{self.full_name}', role='{self.role}')>"

class MentorshipRequest(Base):
    __tablename__ = "mentorship_requests"
    __table_args__ = (
        # At most one open request per pair; enforced by the store so concurrent
        # creators cannot both pass the duplicate check.
        Index(
            "uix_open_mentorship_request",
            "student_id",
            "mentor_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'accepted')"),
            sqlite_where=text("status IN ('pending', 'accepted')"),
        ),
    )

    id = Column(Integer, Sequence('mentorship_request_id_seq'), primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    mentor_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    status = Column(String, default=MentorshipStatus.PENDING.value, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<MentorshipRequest(id={self.id}, student_id={self.student_id}, mentor_id={self.mentor_id}, status='{self.status}')>"

class Connection(Base):
    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uix_connection_pair"),
        CheckConstraint("follower_id != following_id", name="ck_connection_not_self"),
    )

    id = Column(Integer, Sequence('connection_id_seq'), primary_key=True, index=True)
    follower_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Connection(follower_id={self.follower_id}, following_id={self.following_id})>"

class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, Sequence('message_id_seq'), primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    kind = Column(String, nullable=False, default=MessageKind.TEXT.value)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Message(id={self.id}, sender_id={self.sender_id}, recipient_id={self.recipient_id}, read={self.read})>"

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, Sequence('notification_id_seq'), primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    related_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, type='{self.type}', read={self.read})>"
