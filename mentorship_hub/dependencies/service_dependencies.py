# mentorship_hub/dependencies/service_dependencies.py
from typing import Iterator
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from ..config import Settings
from ..core.change_feed import ChangeFeed
from ..services.directory_service import DirectoryService
from ..services.notification_service import NotificationDispatcher
from ..services.mentorship_service import MentorshipService
from ..services.conversation_service import ConversationService
from ..services.connection_service import ConnectionService
from ..services.activity_service import AnnouncementService

def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings

def get_change_feed(request: Request) -> ChangeFeed:
    return request.app.state.change_feed

def get_db(request: Request) -> Iterator[Session]:
    """Provides a database session for a request and closes it afterwards."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

def get_directory_service(db: Session = Depends(get_db)) -> DirectoryService:
    return DirectoryService(db)

def get_notification_dispatcher(
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
    settings: Settings = Depends(get_settings_dep),
) -> NotificationDispatcher:
    return NotificationDispatcher(db, feed, settings)

def get_mentorship_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    feed: ChangeFeed = Depends(get_change_feed),
    settings: Settings = Depends(get_settings_dep),
) -> MentorshipService:
    return MentorshipService(db, dispatcher=dispatcher, feed=feed, settings=settings)

def get_conversation_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    feed: ChangeFeed = Depends(get_change_feed),
    settings: Settings = Depends(get_settings_dep),
) -> ConversationService:
    return ConversationService(db, dispatcher=dispatcher, feed=feed, settings=settings)

def get_connection_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    feed: ChangeFeed = Depends(get_change_feed),
    settings: Settings = Depends(get_settings_dep),
) -> ConnectionService:
    return ConnectionService(db, dispatcher=dispatcher, feed=feed, settings=settings)

def get_announcement_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> AnnouncementService:
    return AnnouncementService(db, dispatcher)
