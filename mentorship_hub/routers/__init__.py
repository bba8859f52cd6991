# mentorship_hub/routers/__init__.py
from . import mentorship_router
from . import message_router
from . import notification_router
from . import connection_router
from . import ws_router

__all__ = [
    "mentorship_router",
    "message_router",
    "notification_router",
    "connection_router",
    "ws_router",
]
