"""
Unified Notification Service
Every workflow event creates an in-app notification and, where a template
exists, a best-effort email. Email failures never fail the originating request.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..email_service import (
    is_email_configured,
    send_client_decision_email,
    send_meeting_confirmed_email,
    send_meeting_reminder_email,
    send_meeting_request_email,
    send_payment_released_email,
)
from ..models import Notification, User

logger = logging.getLogger(__name__)


def create_notification(db: Session, user_id: int, title: str, message: str, notification_type: str) -> Notification:
    """Stage an in-app notification; the caller commits"""
    notification = Notification(user_id=user_id, title=title, message=message, type=notification_type)
    db.add(notification)
    return notification


async def send_notification(
    db: Session,
    user: User,
    title: str,
    message: str,
    notification_type: str,
    email_func: Optional[Callable] = None,
    email_kwargs: Optional[dict] = None,
) -> dict:
    """
    Unified notification sender for in-app and email channels

    Args:
        db: Database session
        user: Recipient
        title: Notification title
        message: Notification body
        notification_type: Type of notification (meeting_request, payment_released, ...)
        email_func: Optional email coroutine to call
        email_kwargs: Kwargs for email function

    Returns:
        Dict with in_app, email_sent and email_error
    """
    result = {"in_app": False, "email_sent": False, "email_error": None}

    create_notification(db, user.id, title, message, notification_type)
    db.commit()
    result["in_app"] = True

    if not email_func:
        return result
    if not user.email:
        logger.debug(f"⚠️ No email address for {notification_type} notification to user {user.id}")
        return result
    if not is_email_configured():
        logger.debug(f"ℹ️ Email not configured - skipping {notification_type} email")
        return result

    try:
        await email_func(to=user.email, **(email_kwargs or {}))
        result["email_sent"] = True
        logger.info(f"✅ {notification_type} email sent to {user.email}")
    except Exception as e:
        result["email_error"] = str(e)
        logger.error(f"❌ Failed to send {notification_type} email to {user.email}: {e}")

    return result


def _display_name(user: Optional[User], fallback: str) -> str:
    if user is None:
        return fallback
    return user.name or user.email or fallback


# ============================================
# Meeting events
# ============================================


async def notify_meeting_request(db: Session, meeting) -> dict:
    client_name = _display_name(meeting.client, "A client")
    return await send_notification(
        db,
        meeting.freelancer,
        title="New Meeting Request",
        message=f'{client_name} has requested a meeting: "{meeting.title}"',
        notification_type="meeting_request",
        email_func=send_meeting_request_email,
        email_kwargs={
            "freelancer_name": _display_name(meeting.freelancer, "there"),
            "client_name": client_name,
            "meeting": meeting,
        },
    )


async def notify_meeting_confirmed(db: Session, meeting) -> dict:
    freelancer_name = _display_name(meeting.freelancer, "Your freelancer")
    return await send_notification(
        db,
        meeting.client,
        title="Meeting Confirmed",
        message=f'{freelancer_name} has confirmed your meeting: "{meeting.title}"',
        notification_type="meeting_confirmed",
        email_func=send_meeting_confirmed_email,
        email_kwargs={
            "client_name": _display_name(meeting.client, "there"),
            "freelancer_name": freelancer_name,
            "meeting": meeting,
        },
    )


async def notify_meeting_cancelled(db: Session, meeting, cancelled_by: User) -> dict:
    recipient = meeting.freelancer if cancelled_by.id == meeting.client_id else meeting.client
    return await send_notification(
        db,
        recipient,
        title="Meeting Cancelled",
        message=f'{_display_name(cancelled_by, "The other participant")} has cancelled the meeting: "{meeting.title}"',
        notification_type="meeting_cancelled",
    )


async def notify_client_decision_requested(db: Session, meeting) -> dict:
    freelancer_name = _display_name(meeting.freelancer, "your freelancer")
    return await send_notification(
        db,
        meeting.client,
        title="How did your call go?",
        message=f'Your meeting "{meeting.title}" has ended. Decide whether to continue with {freelancer_name}.',
        notification_type="client_decision_requested",
        email_func=send_client_decision_email,
        email_kwargs={
            "client_name": _display_name(meeting.client, "there"),
            "freelancer_name": freelancer_name,
            "meeting": meeting,
        },
    )


async def notify_client_decision(db: Session, meeting, approved: bool) -> dict:
    client_name = _display_name(meeting.client, "The client")
    if approved:
        title = "Client Approved You!"
        message = f'{client_name} approved working with you after "{meeting.title}". Your meetboard is ready.'
    else:
        title = "Client Decision"
        message = f'{client_name} decided not to continue after "{meeting.title}".'
    return await send_notification(
        db,
        meeting.freelancer,
        title=title,
        message=message,
        notification_type="client_approval" if approved else "client_feedback",
    )


async def notify_meeting_reminder(db: Session, meeting) -> None:
    """One-hour reminder to both participants"""
    pairs = ((meeting.client, meeting.freelancer), (meeting.freelancer, meeting.client))
    for recipient, other in pairs:
        await send_notification(
            db,
            recipient,
            title="Meeting Reminder - 1 Hour",
            message=f'Your meeting "{meeting.title}" with {_display_name(other, "your contact")} starts in 1 hour.',
            notification_type="meeting_reminder",
            email_func=send_meeting_reminder_email,
            email_kwargs={
                "recipient_name": _display_name(recipient, "there"),
                "other_party_name": _display_name(other, "your contact"),
                "meeting": meeting,
            },
        )


# ============================================
# Payment events
# ============================================


async def notify_payment_released(db: Session, payment) -> dict:
    project_title = payment.project.title if payment.project else "your project"
    return await send_notification(
        db,
        payment.freelancer,
        title="Payment Released!",
        message=f'${payment.amount:,.2f} has been released for "{project_title}"',
        notification_type="payment_released",
        email_func=send_payment_released_email,
        email_kwargs={
            "freelancer_name": _display_name(payment.freelancer, "there"),
            "project_title": project_title,
            "amount": payment.amount,
        },
    )
