"""Meeting router - FastAPI endpoints for meetings, post-call decisions and meeting chat"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_client
from ...database import get_db
from ...models import User
from .schemas import (
    ClientDecisionRequest,
    MeetingCreate,
    MeetingResponse,
    MeetingStatusUpdate,
    MessageCreate,
    MessageResponse,
    NotesUpdate,
)
from .service import MeetingService, to_meeting_response, to_message_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings", tags=["Meetings"])


def get_meeting_service(db: Session = Depends(get_db)) -> MeetingService:
    """Dependency injection for MeetingService"""
    return MeetingService(db)


# ============================================================================
# CORE OPERATIONS
# ============================================================================


@router.get("", response_model=list[MeetingResponse])
async def get_meetings(
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    """Meetings for the current user, most recent first"""
    return [to_meeting_response(m) for m in service.get_meetings(current_user)]


@router.post("", response_model=MeetingResponse, status_code=201)
async def create_meeting(
    data: MeetingCreate,
    current_user: User = Depends(require_client),
    service: MeetingService = Depends(get_meeting_service),
):
    meeting = await service.create_meeting(data, current_user)
    return to_meeting_response(meeting)


@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting(
    meeting_id: int,
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    return to_meeting_response(service.get_meeting(meeting_id, current_user))


@router.patch("/{meeting_id}", response_model=MeetingResponse)
async def update_meeting_status(
    meeting_id: int,
    data: MeetingStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    """Confirm, cancel or complete a meeting"""
    meeting = await service.update_status(meeting_id, data.status, current_user)
    return to_meeting_response(meeting)


# ============================================================================
# COMPLETION & CLIENT DECISION
# ============================================================================


@router.post("/{meeting_id}/complete")
async def complete_meeting(
    meeting_id: int,
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    meeting = await service.complete_meeting(meeting_id, current_user)
    return {
        "success": True,
        "status": meeting.status,
        "clientDecisionUrl": f"/client-decision/{meeting.id}",
    }


@router.get("/{meeting_id}/completion")
async def check_meeting_completion(
    meeting_id: int,
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    """Auto-complete the meeting if its scheduled end has passed"""
    return await service.check_auto_complete(meeting_id, current_user)


@router.post("/{meeting_id}/complete-discovery")
async def complete_discovery_call(
    meeting_id: int,
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    return await service.complete_discovery(meeting_id, current_user)


@router.post("/{meeting_id}/client-decision")
async def submit_client_decision(
    meeting_id: int,
    data: ClientDecisionRequest,
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    return await service.record_client_decision(meeting_id, data, current_user)


# ============================================================================
# NOTES & CHAT
# ============================================================================


@router.patch("/{meeting_id}/notes", response_model=MeetingResponse)
async def update_meeting_notes(
    meeting_id: int,
    data: NotesUpdate,
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    return to_meeting_response(service.update_notes(meeting_id, data.notes, current_user))


@router.get("/{meeting_id}/messages", response_model=list[MessageResponse])
async def get_meeting_messages(
    meeting_id: int,
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    return [to_message_response(m) for m in service.get_messages(meeting_id, current_user)]


@router.post("/{meeting_id}/messages", response_model=MessageResponse, status_code=201)
async def post_meeting_message(
    meeting_id: int,
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: MeetingService = Depends(get_meeting_service),
):
    return to_message_response(service.post_message(meeting_id, data.content, current_user))
