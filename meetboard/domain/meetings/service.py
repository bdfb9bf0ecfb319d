"""Meeting service - Business logic for booking, confirming and deciding on meetings"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...models_meeting import Meeting, Message
from ...models_project import Project
from ...services.notification_service import (
    create_notification,
    notify_client_decision,
    notify_client_decision_requested,
    notify_meeting_cancelled,
    notify_meeting_confirmed,
    notify_meeting_request,
)
from ...utils.sanitization import clean_message_content
from ..freelancers.repository import FreelancerRepository
from . import lifecycle
from .repository import MeetingRepository
from .schemas import ClientDecisionRequest, MeetingCreate, MeetingResponse, MessageResponse

logger = logging.getLogger(__name__)


def to_meeting_response(meeting: Meeting, now: Optional[datetime] = None) -> MeetingResponse:
    now = now or datetime.utcnow()
    visible = lifecycle.is_link_visible(meeting, now)
    return MeetingResponse(
        id=meeting.id,
        title=meeting.title,
        description=meeting.description,
        scheduledAt=meeting.scheduled_at,
        duration=meeting.duration,
        status=meeting.status,
        type=meeting.type,
        clientDecision=meeting.client_decision,
        meetingUrl=meeting.meeting_url if visible else None,
        linkAvailable=visible,
        linkAvailableAt=lifecycle.link_available_at(meeting),
        minutesUntilLink=lifecycle.minutes_until_link(meeting, now),
        isLive=lifecycle.is_meeting_live(meeting, now),
        notes=meeting.notes,
        clientId=meeting.client_id,
        clientName=meeting.client.name if meeting.client else None,
        freelancerId=meeting.freelancer_id,
        freelancerName=meeting.freelancer.name if meeting.freelancer else None,
        projectId=meeting.project_id,
        createdAt=meeting.created_at,
    )


def to_message_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        content=message.content,
        senderId=message.sender_id,
        senderName=message.sender.name if message.sender else None,
        createdAt=message.created_at,
    )


class MeetingService:
    """Service layer for meeting business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MeetingRepository()

    def _apply_transition(self, meeting: Meeting, target: str) -> None:
        try:
            lifecycle.transition(meeting, target)
        except lifecycle.InvalidTransitionError as e:
            logger.warning(f"⚠️ Meeting {meeting.id}: {e}")
            raise HTTPException(status_code=400, detail=str(e)) from e

    def get_meetings(self, user: User) -> list[Meeting]:
        return self.repo.get_meetings_for_user(self.db, user)

    def get_meeting(self, meeting_id: int, user: User) -> Meeting:
        """Get a meeting the user participates in"""
        meeting = self.repo.get_meeting_by_id(self.db, meeting_id)
        if not meeting:
            raise HTTPException(status_code=404, detail="Meeting not found")
        if not meeting.is_participant(user.id):
            raise HTTPException(status_code=403, detail="Access denied")
        return meeting

    async def create_meeting(self, data: MeetingCreate, client: User) -> Meeting:
        """Client requests a meeting; it stays PENDING until the freelancer confirms"""
        freelancer = FreelancerRepository.get_freelancer_user(self.db, data.freelancerId)
        if not freelancer:
            raise HTTPException(status_code=404, detail="Freelancer not found")

        meeting = self.repo.create_meeting(
            self.db,
            client_id=client.id,
            freelancer_id=freelancer.id,
            title=data.title,
            description=data.description,
            scheduled_at=data.scheduledAt,
            duration=data.duration,
            status=lifecycle.PENDING,
            type=lifecycle.TYPE_REGULAR,
        )
        meeting.meeting_url = lifecycle.generate_meeting_link(meeting.id)
        self.db.commit()
        logger.info(f"📅 Meeting {meeting.id} requested by client {client.id} with freelancer {freelancer.id}")

        await notify_meeting_request(self.db, meeting)
        return meeting

    async def update_status(self, meeting_id: int, status: str, user: User) -> Meeting:
        if status not in lifecycle.MANUAL_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid status")

        meeting = self.get_meeting(meeting_id, user)
        if status == lifecycle.CONFIRMED and user.id != meeting.freelancer_id:
            raise HTTPException(status_code=403, detail="Only the freelancer can confirm a meeting")

        self._apply_transition(meeting, status)
        self.db.commit()
        self.db.refresh(meeting)
        logger.info(f"🔄 Meeting {meeting.id} -> {status} by user {user.id}")

        if status == lifecycle.CONFIRMED:
            await notify_meeting_confirmed(self.db, meeting)
        elif status == lifecycle.CANCELLED:
            await notify_meeting_cancelled(self.db, meeting, user)
        return meeting

    async def _await_client_decision(self, meeting: Meeting) -> None:
        self._apply_transition(meeting, lifecycle.AWAITING_CLIENT_DECISION)
        meeting.client_decision = lifecycle.DECISION_PENDING
        self.db.commit()
        self.db.refresh(meeting)
        await notify_client_decision_requested(self.db, meeting)

    async def complete_meeting(self, meeting_id: int, user: User) -> Meeting:
        meeting = self.get_meeting(meeting_id, user)
        if meeting.status != lifecycle.CONFIRMED:
            raise HTTPException(status_code=400, detail="Only confirmed meetings can be completed")
        await self._await_client_decision(meeting)
        logger.info(f"✅ Meeting {meeting.id} completed, awaiting client decision")
        return meeting

    async def check_auto_complete(self, meeting_id: int, user: User, now: Optional[datetime] = None) -> dict:
        """Move an overdue confirmed meeting to AWAITING_CLIENT_DECISION"""
        now = now or datetime.utcnow()
        meeting = self.get_meeting(meeting_id, user)
        if lifecycle.is_overdue(meeting, now):
            await self._await_client_decision(meeting)
            logger.info(f"⏱️ Meeting {meeting.id} auto-completed")
            return {
                "autoCompleted": True,
                "status": meeting.status,
                "clientDecisionUrl": f"/client-decision/{meeting.id}",
            }
        return {
            "autoCompleted": False,
            "status": meeting.status,
            "timeRemaining": lifecycle.seconds_until_end(meeting, now),
        }

    async def complete_discovery(self, meeting_id: int, user: User, now: Optional[datetime] = None) -> dict:
        now = now or datetime.utcnow()
        meeting = self.repo.get_meeting_by_id(self.db, meeting_id)
        if not meeting:
            raise HTTPException(status_code=404, detail="Meeting not found")
        if meeting.type != lifecycle.TYPE_DISCOVERY:
            raise HTTPException(status_code=400, detail="Only discovery calls can be completed this way")
        if not meeting.is_participant(user.id):
            raise HTTPException(status_code=403, detail="Access denied")
        if not lifecycle.can_complete_discovery(meeting, now):
            raise HTTPException(status_code=400, detail="Meeting cannot be completed yet")

        await self._await_client_decision(meeting)
        redirect_url = f"/client-decision/{meeting.id}" if user.id == meeting.client_id else "/dashboard/meetings"
        return {"success": True, "status": meeting.status, "redirectUrl": redirect_url}

    async def record_client_decision(self, meeting_id: int, data: ClientDecisionRequest, user: User) -> dict:
        """Client approves or rejects the freelancer after the call"""
        decision = lifecycle.normalize_decision(data.decision)
        if not decision:
            raise HTTPException(status_code=400, detail="Decision must be 'approve' or 'reject'")

        meeting = self.repo.get_meeting_by_id(self.db, meeting_id)
        if not meeting:
            raise HTTPException(status_code=404, detail="Meeting not found")
        if user.id != meeting.client_id:
            raise HTTPException(status_code=403, detail="Only the client can decide on this meeting")
        if meeting.status not in lifecycle.DECISION_READY_STATUSES:
            raise HTTPException(status_code=400, detail="Meeting is not ready for client decision")

        approved = decision == lifecycle.DECISION_APPROVED
        self._apply_transition(
            meeting, lifecycle.CLIENT_APPROVED if approved else lifecycle.CLIENT_REJECTED
        )
        meeting.client_decision = decision
        if data.feedback and data.feedback.strip():
            meeting.notes = f"{meeting.notes or ''}\n\nClient Feedback: {data.feedback.strip()}".lstrip()

        project = None
        if approved:
            project = Project(
                client_id=meeting.client_id,
                freelancer_id=meeting.freelancer_id,
                title=f"{meeting.title} - Project",
                description=meeting.description or f"Project created from meeting: {meeting.title}",
                total_amount=0,
                status="CLIENT_APPROVED",
                start_date=datetime.utcnow(),
            )
            self.db.add(project)
            self.db.flush()
            meeting.project_id = project.id

        self.db.commit()
        logger.info(f"🗳️ Client {user.id} {decision} meeting {meeting.id}")

        await notify_client_decision(self.db, meeting, approved)

        if approved:
            return {
                "success": True,
                "decision": decision,
                "message": "Freelancer approved. Your meetboard is ready.",
                "projectId": project.id,
                "redirectUrl": f"/dashboard/projects/{project.id}",
            }
        return {
            "success": True,
            "decision": decision,
            "message": "Thanks for the feedback. You can browse other freelancers.",
            "projectId": None,
            "redirectUrl": "/dashboard/freelancers",
        }

    def update_notes(self, meeting_id: int, notes: str, user: User) -> Meeting:
        meeting = self.get_meeting(meeting_id, user)
        meeting.notes = notes
        self.db.commit()
        self.db.refresh(meeting)
        return meeting

    def get_messages(self, meeting_id: int, user: User) -> list[Message]:
        self.get_meeting(meeting_id, user)
        return self.repo.get_messages(self.db, meeting_id)

    def post_message(self, meeting_id: int, content: str, user: User) -> Message:
        meeting = self.get_meeting(meeting_id, user)
        try:
            cleaned = clean_message_content(content)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        if not cleaned:
            raise HTTPException(status_code=400, detail="Message content is required")

        message = self.repo.create_message(self.db, meeting.id, user.id, cleaned)
        create_notification(
            self.db,
            meeting.other_party_id(user.id),
            "New Message",
            f'{user.name or "Someone"} sent a message in "{meeting.title}"',
            "meeting_message",
        )
        self.db.commit()
        return message

    async def auto_complete_overdue(self, now: Optional[datetime] = None) -> int:
        """Sweep every overdue confirmed meeting into AWAITING_CLIENT_DECISION"""
        now = now or datetime.utcnow()
        completed = 0
        for meeting in self.repo.get_confirmed_started_before(self.db, now):
            if lifecycle.is_overdue(meeting, now):
                await self._await_client_decision(meeting)
                completed += 1
        if completed:
            logger.info(f"⏱️ Auto-completed {completed} overdue meetings")
        return completed
