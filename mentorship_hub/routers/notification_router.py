# mentorship_hub/routers/notification_router.py
from fastapi import APIRouter, Depends, Query, Response
from typing import List, Literal

from ..services import NotificationDispatcher
from ..dependencies.auth_dependencies import get_current_profile
from ..dependencies.service_dependencies import get_notification_dispatcher
from ..schemas import MarkReadResponse, NotificationRecord, ProfileRecord, UnreadCountResponse
from ..exceptions import BusinessLogicError
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/notifications", tags=["notifications"])

@router.get("", response_model=List[NotificationRecord])
async def list_notifications(
    filter: Literal["all", "unread"] = Query("all"),
    current_profile: ProfileRecord = Depends(get_current_profile),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    """Latest notifications of the current profile"""
    try:
        return dispatcher.list_notifications(current_profile.id, filter)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_profile: ProfileRecord = Depends(get_current_profile),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    try:
        return UnreadCountResponse(unread=dispatcher.unread_count(current_profile.id))
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.put("/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    current_profile: ProfileRecord = Depends(get_current_profile),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    try:
        return MarkReadResponse(updated=dispatcher.mark_all_read(current_profile.id))
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.put("/{notification_id}/read", response_model=NotificationRecord)
async def mark_read(
    notification_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    try:
        return dispatcher.mark_read(notification_id, actor_id=current_profile.id)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    try:
        dispatcher.delete(notification_id, current_profile.id)
        return Response(status_code=204)
    except BusinessLogicError as e:
        raise to_http_exception(e)
