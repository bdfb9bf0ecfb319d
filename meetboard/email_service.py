"""
Email Service using Resend
Templates are MJML, compiled to HTML before sending
"""

import logging
from datetime import datetime
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import (
    client_decision_request_template,
    meeting_confirmed_template,
    meeting_reminder_template,
    meeting_request_template,
    payment_released_template,
)
from .utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email cannot be compiled or delivered"""


def is_email_configured() -> bool:
    return bool(RESEND_API_KEY)


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e

    # mjml_to_html returns a dict-like result with 'html' and 'errors'
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        return result.get("html", "")
    return getattr(result, "html", str(result))


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Resend response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


def _format_date(value: datetime) -> str:
    return value.strftime("%A, %B %d, %Y")


def _format_time(value: datetime) -> str:
    return value.strftime("%I:%M %p")


# ============================================
# Pre-built emails for meeting and payment events
# ============================================


async def send_meeting_request_email(to: str, freelancer_name: str, client_name: str, meeting) -> dict:
    mjml_content = meeting_request_template(
        freelancer_name=sanitize_string(freelancer_name),
        client_name=sanitize_string(client_name),
        meeting_title=sanitize_string(meeting.title),
        scheduled_date=_format_date(meeting.scheduled_at),
        scheduled_time=_format_time(meeting.scheduled_at),
        duration=meeting.duration,
        dashboard_url=f"{FRONTEND_URL}/dashboard/meetings",
    )
    return await send_email(to=to, subject=f"New meeting request: {meeting.title}", mjml_content=mjml_content)


async def send_meeting_confirmed_email(to: str, client_name: str, freelancer_name: str, meeting) -> dict:
    mjml_content = meeting_confirmed_template(
        client_name=sanitize_string(client_name),
        freelancer_name=sanitize_string(freelancer_name),
        meeting_title=sanitize_string(meeting.title),
        scheduled_date=_format_date(meeting.scheduled_at),
        scheduled_time=_format_time(meeting.scheduled_at),
        duration=meeting.duration,
        meeting_page_url=f"{FRONTEND_URL}/dashboard/meetings/{meeting.id}",
    )
    return await send_email(to=to, subject=f"Meeting confirmed: {meeting.title}", mjml_content=mjml_content)


async def send_meeting_reminder_email(to: str, recipient_name: str, other_party_name: str, meeting) -> dict:
    mjml_content = meeting_reminder_template(
        recipient_name=sanitize_string(recipient_name),
        other_party_name=sanitize_string(other_party_name),
        meeting_title=sanitize_string(meeting.title),
        scheduled_time=_format_time(meeting.scheduled_at),
        meeting_url=meeting.meeting_url or f"{FRONTEND_URL}/dashboard/meetings/{meeting.id}",
    )
    return await send_email(to=to, subject=f"Starting in 1 hour: {meeting.title}", mjml_content=mjml_content)


async def send_client_decision_email(to: str, client_name: str, freelancer_name: str, meeting) -> dict:
    mjml_content = client_decision_request_template(
        client_name=sanitize_string(client_name),
        freelancer_name=sanitize_string(freelancer_name),
        meeting_title=sanitize_string(meeting.title),
        decision_url=f"{FRONTEND_URL}/client-decision/{meeting.id}",
    )
    return await send_email(to=to, subject="How did your call go?", mjml_content=mjml_content)


async def send_payment_released_email(to: str, freelancer_name: str, project_title: str, amount: float) -> dict:
    mjml_content = payment_released_template(
        freelancer_name=sanitize_string(freelancer_name),
        project_title=sanitize_string(project_title),
        amount=f"${amount:,.2f}",
        dashboard_url=f"{FRONTEND_URL}/dashboard/payments",
    )
    return await send_email(to=to, subject=f"Payment released: {project_title}", mjml_content=mjml_content)
