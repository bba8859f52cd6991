# mentorship_hub/services/__init__.py
from .directory_service import DirectoryService
from .notification_service import NotificationDispatcher
from .mentorship_service import MentorshipService
from .conversation_service import ConversationService
from .connection_service import ConnectionService
from .activity_service import ActivityNotifier, AnnouncementService
from .live_views import ConversationView, NotificationInbox

__all__ = [
    "DirectoryService",
    "NotificationDispatcher",
    "MentorshipService",
    "ConversationService",
    "ConnectionService",
    "ActivityNotifier",
    "AnnouncementService",
    "ConversationView",
    "NotificationInbox",
]
