"""
Meeting Reminder Routes
Manual triggers for the one-hour reminder sweep the worker runs on a schedule
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..domain.meetings.repository import MeetingRepository
from ..domain.meetings.schemas import MeetingResponse
from ..domain.meetings.service import to_meeting_response
from ..models import User
from ..services.meeting_reminders import get_upcoming_meetings, send_due_reminders, send_meeting_reminder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meeting-reminders", tags=["Meeting Reminders"])


class ReminderRequest(BaseModel):
    action: Literal["send_now", "schedule_all"]
    meetingId: Optional[int] = None


@router.post("")
async def trigger_reminders(
    data: ReminderRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if data.action == "send_now":
        if data.meetingId is None:
            raise HTTPException(status_code=400, detail="meetingId is required for send_now")
        meeting = MeetingRepository.get_meeting_by_id(db, data.meetingId)
        if not meeting:
            raise HTTPException(status_code=404, detail="Meeting not found")
        if not meeting.is_participant(current_user.id):
            raise HTTPException(status_code=403, detail="Access denied")
        sent = await send_meeting_reminder(db, meeting)
        if not sent:
            raise HTTPException(status_code=400, detail="Cannot send a reminder for a cancelled meeting")
        return {"success": True, "message": "Reminder sent"}

    summary = await send_due_reminders(db)
    logger.info(f"⏰ Reminder sweep triggered by user {current_user.id}: {summary}")
    return {"success": True, "message": f"Sent {summary['sent']} reminders", **summary}


@router.get("", response_model=list[MeetingResponse])
async def get_upcoming(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Confirmed meetings starting in the next 24 hours for the caller"""
    meetings = get_upcoming_meetings(db)
    return [to_meeting_response(m) for m in meetings if m.is_participant(current_user.id)]
