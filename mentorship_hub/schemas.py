from datetime import datetime, timezone
from typing import Annotated, List, Optional, Literal
from pydantic import AfterValidator, BaseModel, Field
from .models import MentorshipStatus, MessageKind, NotificationType, UserRole

def _as_utc(value: datetime) -> datetime:
    # Some backends (sqlite) hand back naive datetimes; they are stored as UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value

UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]

RECORD_CONFIG = {
    "from_attributes": True,
}

# --- Records (one per stored entity, validated at the store boundary) ---

class ProfileRecord(BaseModel):
    id: int
    email: str
    full_name: str
    role: UserRole
    headline: Optional[str] = None
    is_open_to_mentor: bool = False

    model_config = RECORD_CONFIG

class MentorshipRequestRecord(BaseModel):
    id: int
    student_id: int
    mentor_id: int
    message: str
    status: MentorshipStatus
    created_at: UTCDateTime
    updated_at: UTCDateTime

    model_config = RECORD_CONFIG

class ConnectionRecord(BaseModel):
    id: int
    follower_id: int
    following_id: int
    created_at: UTCDateTime

    model_config = RECORD_CONFIG

class MessageRecord(BaseModel):
    id: int
    sender_id: int
    recipient_id: int
    content: str
    kind: MessageKind = MessageKind.TEXT
    read: bool
    created_at: UTCDateTime

    model_config = RECORD_CONFIG

class NotificationRecord(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    content: str
    read: bool
    related_id: Optional[int] = None
    created_at: UTCDateTime

    model_config = RECORD_CONFIG

# --- Derived views ---

class Conversation(BaseModel):
    viewer_id: int
    counterparty_id: int
    latest_message: MessageRecord
    unread_count: int = 0

# --- Input Models ---

class MentorshipRequestCreate(BaseModel):
    # Length rules live in MentorshipService so every caller gets the same errors
    mentor_id: int
    message: str

class MessageCreate(BaseModel):
    recipient_id: int
    content: str
    kind: MessageKind = MessageKind.TEXT

class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    audience: Literal["everyone", "students_and_admins", "alumni_and_admins"] = "everyone"
    related_id: Optional[int] = None

# --- Output Models ---

class MarkReadResponse(BaseModel):
    updated: int

class UnreadCountResponse(BaseModel):
    unread: int

class AnnouncementResponse(BaseModel):
    recipients: int
    notification_ids: List[int]
