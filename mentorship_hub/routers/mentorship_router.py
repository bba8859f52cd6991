# mentorship_hub/routers/mentorship_router.py
from fastapi import APIRouter, Depends, Query
from typing import Optional, List, Literal

from ..services import MentorshipService
from ..dependencies.auth_dependencies import get_current_profile
from ..dependencies.service_dependencies import get_mentorship_service
from ..schemas import MentorshipRequestCreate, MentorshipRequestRecord, ProfileRecord
from ..models import MentorshipStatus
from ..exceptions import BusinessLogicError
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/mentorship", tags=["mentorship"])

@router.post("/requests", response_model=MentorshipRequestRecord, status_code=201)
async def request_mentorship(
    payload: MentorshipRequestCreate,
    current_profile: ProfileRecord = Depends(get_current_profile),
    mentorship_service: MentorshipService = Depends(get_mentorship_service)
):
    """Create a mentorship request as the current student"""
    try:
        return mentorship_service.request_mentorship(current_profile.id, payload.mentor_id, payload.message)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.get("/requests", response_model=List[MentorshipRequestRecord])
async def list_requests(
    direction: Literal["sent", "received"] = Query("received"),
    status: Optional[MentorshipStatus] = Query(None),
    current_profile: ProfileRecord = Depends(get_current_profile),
    mentorship_service: MentorshipService = Depends(get_mentorship_service)
):
    """List sent or received requests for the current profile"""
    try:
        return mentorship_service.list_requests(current_profile.id, direction, status)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.get("/requests/{request_id}", response_model=MentorshipRequestRecord)
async def get_request(
    request_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    mentorship_service: MentorshipService = Depends(get_mentorship_service)
):
    try:
        return mentorship_service.get_request(request_id, current_profile.id)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.put("/requests/{request_id}/accept", response_model=MentorshipRequestRecord)
async def accept_request(
    request_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    mentorship_service: MentorshipService = Depends(get_mentorship_service)
):
    """Accept a pending mentorship request"""
    try:
        return mentorship_service.respond_to_request(request_id, current_profile.id, "accept")
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.put("/requests/{request_id}/reject", response_model=MentorshipRequestRecord)
async def reject_request(
    request_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    mentorship_service: MentorshipService = Depends(get_mentorship_service)
):
    """Reject a pending mentorship request"""
    try:
        return mentorship_service.respond_to_request(request_id, current_profile.id, "reject")
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.put("/requests/{request_id}/complete", response_model=MentorshipRequestRecord)
async def complete_request(
    request_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    mentorship_service: MentorshipService = Depends(get_mentorship_service)
):
    """Complete an accepted mentorship (student or mentor)"""
    try:
        return mentorship_service.complete_mentorship(request_id, current_profile.id)
    except BusinessLogicError as e:
        raise to_http_exception(e)
