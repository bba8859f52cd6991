# mentorship_hub/routers/message_router.py
from fastapi import APIRouter, Depends
from typing import List

from ..services import ConversationService
from ..dependencies.auth_dependencies import get_current_profile
from ..dependencies.service_dependencies import get_conversation_service
from ..schemas import Conversation, MarkReadResponse, MessageCreate, MessageRecord, ProfileRecord, UnreadCountResponse
from ..exceptions import BusinessLogicError
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/messages", tags=["messages"])

@router.post("", response_model=MessageRecord, status_code=201)
async def send_message(
    payload: MessageCreate,
    current_profile: ProfileRecord = Depends(get_current_profile),
    conversation_service: ConversationService = Depends(get_conversation_service)
):
    try:
        return conversation_service.send_message(current_profile.id, payload.recipient_id, payload.content, payload.kind)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.get("/conversations", response_model=List[Conversation])
async def list_conversations(
    current_profile: ProfileRecord = Depends(get_current_profile),
    conversation_service: ConversationService = Depends(get_conversation_service)
):
    """Conversations of the current profile, most recent first"""
    try:
        return conversation_service.list_conversations(current_profile.id)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_profile: ProfileRecord = Depends(get_current_profile),
    conversation_service: ConversationService = Depends(get_conversation_service)
):
    try:
        return UnreadCountResponse(unread=conversation_service.unread_total(current_profile.id))
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.get("/{peer_id}", response_model=List[MessageRecord])
async def get_thread(
    peer_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    conversation_service: ConversationService = Depends(get_conversation_service)
):
    try:
        return conversation_service.get_thread(current_profile.id, peer_id)
    except BusinessLogicError as e:
        raise to_http_exception(e)

@router.put("/{peer_id}/read", response_model=MarkReadResponse)
async def mark_conversation_read(
    peer_id: int,
    current_profile: ProfileRecord = Depends(get_current_profile),
    conversation_service: ConversationService = Depends(get_conversation_service)
):
    try:
        return MarkReadResponse(updated=conversation_service.mark_conversation_read(current_profile.id, peer_id))
    except BusinessLogicError as e:
        raise to_http_exception(e)
