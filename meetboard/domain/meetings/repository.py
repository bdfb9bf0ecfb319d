"""Meeting repository - Database operations for meetings and their chat"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import User
from ...models_meeting import Meeting, Message
from . import lifecycle


class MeetingRepository:
    """Repository for meeting database operations"""

    @staticmethod
    def get_meetings_for_user(db: Session, user: User) -> list[Meeting]:
        """Clients see meetings they booked, freelancers meetings booked with them"""
        column = Meeting.client_id if user.is_client else Meeting.freelancer_id
        return (
            db.query(Meeting)
            .filter(column == user.id)
            .order_by(Meeting.scheduled_at.desc(), Meeting.id.desc())
            .all()
        )

    @staticmethod
    def get_meeting_by_id(db: Session, meeting_id: int) -> Optional[Meeting]:
        return db.query(Meeting).filter(Meeting.id == meeting_id).first()

    @staticmethod
    def get_meeting_by_cal_uid(db: Session, booking_uid: str) -> Optional[Meeting]:
        return db.query(Meeting).filter(Meeting.cal_booking_uid == booking_uid).first()

    @staticmethod
    def create_meeting(db: Session, **meeting_data) -> Meeting:
        meeting = Meeting(**meeting_data)
        db.add(meeting)
        db.commit()
        db.refresh(meeting)
        return meeting

    @staticmethod
    def get_confirmed_starting_between(db: Session, start: datetime, end: datetime) -> list[Meeting]:
        return (
            db.query(Meeting)
            .filter(
                Meeting.status == lifecycle.CONFIRMED,
                Meeting.duration > 0,
                Meeting.scheduled_at >= start,
                Meeting.scheduled_at < end,
            )
            .order_by(Meeting.scheduled_at.asc())
            .all()
        )

    @staticmethod
    def get_confirmed_started_before(db: Session, now: datetime) -> list[Meeting]:
        """Candidates for auto-complete; callers apply lifecycle.is_overdue"""
        return (
            db.query(Meeting)
            .filter(
                Meeting.status == lifecycle.CONFIRMED,
                Meeting.duration > 0,
                Meeting.scheduled_at < now,
            )
            .all()
        )

    @staticmethod
    def get_messages(db: Session, meeting_id: int) -> list[Message]:
        return (
            db.query(Message)
            .filter(Message.meeting_id == meeting_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
            .all()
        )

    @staticmethod
    def create_message(db: Session, meeting_id: int, sender_id: int, content: str) -> Message:
        message = Message(meeting_id=meeting_id, sender_id=sender_id, content=content)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message
