# mentorship_hub/routers/connection_router.py
from fastapi import APIRouter, Depends, Response
from typing import List

from ..services import AnnouncementService, ConnectionService
from ..dependencies.auth_dependencies import get_current_profile
from ..dependencies.service_dependencies import get_announcement_service, get_connection_service
from ..schemas import AnnouncementCreate, AnnouncementResponse, ConnectionRecord, ProfileRecord
from ..exceptions import BusinessLogicError
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api", tags=["connections"])

@router.post("/connections/{user_id}", response_model=ConnectionRecord, status_code=201)
async def follow(
    user_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Follow another profile"""
    try:
        return connection_service.follow(current_profile.id, user_id)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.delete("/connections/{user_id}", status_code=204)
async def unfollow(
    user_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    try:
        connection_service.unfollow(current_profile.id, user_id)
        return Response(status_code=204)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.get("/connections/{user_id}/followers", response_model=List[ConnectionRecord])
async def list_followers(
    user_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    try:
        return connection_service.list_followers(user_id)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.get("/connections/{user_id}/following", response_model=List[ConnectionRecord])
async def list_following(
    user_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    try:
        return connection_service.list_following(user_id)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.post("/announcements", response_model=AnnouncementResponse, status_code=201)
async def announce(
    payload: AnnouncementCreate,
    current_profile: ProfileRecord = Depends(get_current_profile),
    announcement_service: AnnouncementService = Depends(get_announcement_service)
):
    """Notify every profile in the audience (admins only)"""
    try:
        records = announcement_service.announce(
            current_profile.id, payload.title, payload.content, payload.audience, payload.related_id
        )
        return AnnouncementResponse(recipients=len(records), notification_ids=[r.id for r in records])
    except BusinessLogicError as e:
        raise to_http_exception(e)
