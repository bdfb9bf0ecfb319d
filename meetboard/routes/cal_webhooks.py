"""
Cal.com Webhook Routes
Turns Cal.com bookings into meetings between a client and a freelancer
"""

import json
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ..config import CAL_WEBHOOK_SECRET, DISCOVERY_ROOM_BASE_URL
from ..database import get_db
from ..domain.freelancers.repository import FreelancerRepository
from ..domain.meetings import lifecycle
from ..domain.meetings.repository import MeetingRepository
from ..models import ROLE_CLIENT, User
from ..rate_limiter import create_rate_limiter
from ..services.notification_service import notify_meeting_confirmed, notify_meeting_request, send_notification
from ..utils.datetimes import parse_iso_datetime
from ..webhook_security import verify_cal_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks/cal", tags=["cal-webhooks"])

# Rate limiter for webhooks - 100 requests per minute
rate_limit_webhook = create_rate_limiter(
    limit=100,
    window_seconds=60,
    key_prefix="webhook_cal",
    use_ip=False,  # Global limit for all webhooks
)


@router.post("")
async def handle_cal_webhook(
    request: Request, db: Session = Depends(get_db), _: None = Depends(rate_limit_webhook)
):
    """
    Handle Cal.com webhook events - Rate limited to 100 requests per minute
    Supported events: BOOKING_CREATED, BOOKING_RESCHEDULED, BOOKING_CANCELLED
    """
    _, body = await verify_cal_webhook(request, CAL_WEBHOOK_SECRET, raise_on_failure=True)

    try:
        payload = json.loads(body.decode() or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from e
    if not isinstance(payload, dict):
        logger.warning(f"🚫 Cal.com webhook body is a JSON {type(payload).__name__}, expected an object")
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    event_type = payload.get("triggerEvent")
    booking = payload.get("payload") or {}
    logger.info(f"📥 Received Cal.com webhook: {event_type}")

    try:
        if event_type == "BOOKING_CREATED":
            result = await handle_booking_created(booking, db)
        elif event_type == "BOOKING_RESCHEDULED":
            result = await handle_booking_rescheduled(booking, db)
        elif event_type == "BOOKING_CANCELLED":
            result = handle_booking_cancelled(booking, db)
        else:
            logger.debug(f"Unhandled Cal.com event type: {event_type}")
            result = {}
    except Exception as e:
        db.rollback()
        logger.exception(f"❌ Cal.com webhook processing failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Webhook processing failed") from e

    return {"received": True, "event": event_type, **result}


def _booking_times(booking: dict) -> tuple[Optional[datetime], int]:
    start = parse_iso_datetime(booking.get("startTime"))
    end = parse_iso_datetime(booking.get("endTime"))
    if not start:
        return None, 0
    duration = int((end - start).total_seconds() // 60) if end else booking.get("length") or 30
    return start, duration


def _find_or_create_client(db: Session, email: str, name: Optional[str]) -> User:
    client = db.query(User).filter(User.email == email).first()
    if client:
        return client
    logger.info(f"🆕 Creating client account for Cal.com attendee {email}")
    client = User(email=email, name=name or "Cal.com Client", role=ROLE_CLIENT)
    db.add(client)
    db.flush()
    return client


async def handle_booking_created(booking: dict, db: Session) -> dict:
    """Create the meeting for a new booking; discovery calls are confirmed immediately"""
    uid = booking.get("uid")
    if uid and MeetingRepository.get_meeting_by_cal_uid(db, uid):
        logger.info(f"ℹ️ Cal.com booking {uid} already processed")
        return {"duplicate": True}

    organizer = booking.get("organizer") or {}
    profile = FreelancerRepository.find_profile_for_booking(db, organizer.get("email"), organizer.get("username"))
    if not profile:
        logger.warning(f"⚠️ No freelancer matches Cal.com organizer {organizer.get('email')}")
        return {"error": "Freelancer not found"}

    attendees = booking.get("attendees") or []
    attendee = attendees[0] if attendees else {}
    if not attendee.get("email"):
        logger.warning(f"⚠️ Cal.com booking {uid} has no attendee email")
        return {}

    start, duration = _booking_times(booking)
    if not start:
        logger.warning(f"⚠️ Cal.com booking {uid} has no start time")
        return {}

    client = _find_or_create_client(db, attendee["email"], attendee.get("name"))
    title = booking.get("title") or "Discovery Call"
    is_discovery = lifecycle.is_discovery_booking(title, duration)
    metadata = booking.get("metadata") or {}

    meeting = MeetingRepository.create_meeting(
        db,
        client_id=client.id,
        freelancer_id=profile.user_id,
        title=title,
        description=booking.get("description") or (booking.get("type") and f"Cal.com booking: {booking['type']}"),
        scheduled_at=start,
        duration=duration,
        status=lifecycle.CONFIRMED if is_discovery else lifecycle.PENDING,
        type=lifecycle.TYPE_DISCOVERY if is_discovery else lifecycle.TYPE_REGULAR,
        meeting_url=metadata.get("videoCallUrl") or f"{DISCOVERY_ROOM_BASE_URL}-{uid}",
        cal_booking_uid=uid,
    )
    logger.info(
        f"📅 Cal.com booking {uid} -> meeting {meeting.id} ({meeting.type}, {meeting.status})"
    )

    if is_discovery:
        await notify_meeting_confirmed(db, meeting)
        await send_notification(
            db,
            meeting.freelancer,
            title="Discovery Call Booked",
            message=f'{client.name or client.email} booked "{title}"',
            notification_type="meeting_confirmed",
        )
    else:
        await notify_meeting_request(db, meeting)

    return {"meetingId": meeting.id}


async def handle_booking_rescheduled(booking: dict, db: Session) -> dict:
    """Cal.com issues a new uid on reschedule and references the old one"""
    old_uid = booking.get("rescheduleUid") or booking.get("fromReschedule")
    meeting = None
    if old_uid:
        meeting = MeetingRepository.get_meeting_by_cal_uid(db, old_uid)
    if not meeting and booking.get("uid"):
        meeting = MeetingRepository.get_meeting_by_cal_uid(db, booking["uid"])
    if not meeting:
        # Unknown original booking: treat it as a fresh one
        return await handle_booking_created(booking, db)

    start, duration = _booking_times(booking)
    if not start or meeting.status == lifecycle.CANCELLED:
        return {"meetingId": meeting.id}

    meeting.scheduled_at = start
    meeting.duration = duration
    meeting.reminder_sent_at = None
    if booking.get("uid"):
        meeting.cal_booking_uid = booking["uid"]
    db.commit()
    logger.info(f"🔁 Meeting {meeting.id} rescheduled to {start.isoformat()}")

    for user in (meeting.client, meeting.freelancer):
        await send_notification(
            db,
            user,
            title="Meeting Rescheduled",
            message=f'"{meeting.title}" moved to {start.strftime("%b %d, %Y %H:%M")} UTC',
            notification_type="meeting_rescheduled",
        )
    return {"meetingId": meeting.id}


def handle_booking_cancelled(booking: dict, db: Session) -> dict:
    uid = booking.get("uid")
    meeting = MeetingRepository.get_meeting_by_cal_uid(db, uid) if uid else None
    if not meeting:
        logger.warning(f"⚠️ Cancelled Cal.com booking {uid} has no meeting")
        return {}

    if not lifecycle.can_transition(meeting.status, lifecycle.CANCELLED):
        logger.info(f"ℹ️ Meeting {meeting.id} is {meeting.status}; ignoring cancellation")
        return {"meetingId": meeting.id}

    lifecycle.transition(meeting, lifecycle.CANCELLED)
    db.commit()
    logger.info(f"🚫 Meeting {meeting.id} cancelled via Cal.com")
    return {"meetingId": meeting.id}
