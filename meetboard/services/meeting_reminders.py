"""
Meeting reminders
Sends the one-hour reminder to both participants. reminder_sent_at makes the
sweep safe to run repeatedly and across worker restarts.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.meetings import lifecycle
from ..domain.meetings.repository import MeetingRepository
from ..models_meeting import Meeting
from .notification_service import notify_meeting_reminder

logger = logging.getLogger(__name__)


async def send_meeting_reminder(db: Session, meeting: Meeting, now: Optional[datetime] = None) -> bool:
    """Send the reminder for one meeting; returns False when it was skipped"""
    if meeting.status == lifecycle.CANCELLED:
        logger.info(f"⏭️ Meeting {meeting.id} is cancelled - reminder skipped")
        return False

    await notify_meeting_reminder(db, meeting)
    meeting.reminder_sent_at = now or datetime.utcnow()
    db.commit()
    logger.info(f"⏰ Reminder sent for meeting {meeting.id}")
    return True


def claim_reminder(db: Session, meeting_id: int, now: datetime) -> bool:
    """
    Mark the reminder as sent before notifying. The conditional UPDATE lets
    exactly one of several overlapping sweeps win the meeting.
    """
    claimed = (
        db.query(Meeting)
        .filter(Meeting.id == meeting_id, Meeting.reminder_sent_at.is_(None))
        .update({Meeting.reminder_sent_at: now}, synchronize_session=False)
    )
    db.commit()
    return claimed == 1


def release_reminder_claim(db: Session, meeting_id: int, claimed_at: datetime) -> None:
    """Undo a claim whose notification failed so the next sweep retries it"""
    db.query(Meeting).filter(Meeting.id == meeting_id, Meeting.reminder_sent_at == claimed_at).update(
        {Meeting.reminder_sent_at: None}, synchronize_session=False
    )
    db.commit()


async def send_due_reminders(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Remind every confirmed meeting starting within the next hour that has
    not been reminded yet.

    Returns:
        dict: checked and sent counts
    """
    now = now or datetime.utcnow()
    candidates = MeetingRepository.get_confirmed_starting_between(db, now, now + lifecycle.REMINDER_LEAD_TIME)

    summary = {"checked": len(candidates), "sent": 0}
    for meeting in candidates:
        if not lifecycle.is_reminder_due(meeting, now):
            continue
        meeting_id = meeting.id
        if not claim_reminder(db, meeting_id, now):
            logger.info(f"ℹ️ Reminder for meeting {meeting_id} already claimed by another sweep")
            continue
        try:
            await notify_meeting_reminder(db, meeting)
            summary["sent"] += 1
            logger.info(f"⏰ Reminder sent for meeting {meeting_id}")
        except Exception as e:
            db.rollback()
            release_reminder_claim(db, meeting_id, now)
            logger.error(f"❌ Failed to send reminder for meeting {meeting_id}: {str(e)}")

    if summary["sent"]:
        logger.info(f"⏰ Reminder sweep complete: {summary}")
    return summary


def get_upcoming_meetings(db: Session, now: Optional[datetime] = None, hours: int = 24) -> list[Meeting]:
    now = now or datetime.utcnow()
    return MeetingRepository.get_confirmed_starting_between(db, now, now + timedelta(hours=hours))
