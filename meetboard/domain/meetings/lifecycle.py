"""
Meeting lifecycle rules.

Every status change goes through transition() so the allowed paths live in
one table:

    PENDING -> CONFIRMED -> AWAITING_CLIENT_DECISION -> CLIENT_APPROVED / CLIENT_REJECTED

with COMPLETED as a manual stop between CONFIRMED and the client's decision,
and CANCELLED reachable until the meeting has been held. Timing rules (link
visibility, reminders, auto-complete) are pure functions of the meeting and
the current time so the API and the worker agree on them.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from ...config import FRONTEND_URL

PENDING = "PENDING"
CONFIRMED = "CONFIRMED"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"
AWAITING_CLIENT_DECISION = "AWAITING_CLIENT_DECISION"
CLIENT_APPROVED = "CLIENT_APPROVED"
CLIENT_REJECTED = "CLIENT_REJECTED"

ALL_STATUSES = (
    PENDING,
    CONFIRMED,
    COMPLETED,
    CANCELLED,
    AWAITING_CLIENT_DECISION,
    CLIENT_APPROVED,
    CLIENT_REJECTED,
)

# Statuses a participant may set directly through PATCH /meetings/{id}
MANUAL_STATUSES = (PENDING, CONFIRMED, COMPLETED, CANCELLED)

TRANSITIONS = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({COMPLETED, AWAITING_CLIENT_DECISION, CANCELLED}),
    COMPLETED: frozenset({AWAITING_CLIENT_DECISION, CLIENT_APPROVED, CLIENT_REJECTED}),
    AWAITING_CLIENT_DECISION: frozenset({CLIENT_APPROVED, CLIENT_REJECTED}),
    CANCELLED: frozenset(),
    CLIENT_APPROVED: frozenset(),
    CLIENT_REJECTED: frozenset(),
}

DECISION_READY_STATUSES = (AWAITING_CLIENT_DECISION, COMPLETED)
HELD_STATUSES = (COMPLETED, AWAITING_CLIENT_DECISION, CLIENT_APPROVED, CLIENT_REJECTED)

TYPE_DISCOVERY = "DISCOVERY"
TYPE_REGULAR = "REGULAR"
TYPE_COLLABORATION = "COLLABORATION"

DECISION_PENDING = "PENDING"
DECISION_APPROVED = "APPROVED"
DECISION_REJECTED = "REJECTED"

LINK_LEAD_TIME = timedelta(hours=1)
REMINDER_LEAD_TIME = timedelta(hours=1)
LIVE_WINDOW = timedelta(minutes=30)
DISCOVERY_EARLY_FINISH = timedelta(minutes=5)
MAX_DISCOVERY_MINUTES = 30


class InvalidTransitionError(ValueError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change meeting status from {current} to {target}")


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def transition(meeting, target: str) -> None:
    """Move meeting to target status or raise InvalidTransitionError"""
    if not can_transition(meeting.status, target):
        raise InvalidTransitionError(meeting.status, target)
    meeting.status = target


def generate_meeting_link(meeting_id: int) -> str:
    return f"{FRONTEND_URL}/meeting-room/{meeting_id}"


def meeting_end(meeting) -> datetime:
    return meeting.scheduled_at + timedelta(minutes=meeting.duration or 0)


def link_available_at(meeting) -> datetime:
    return meeting.scheduled_at - LINK_LEAD_TIME


def is_link_visible(meeting, now: datetime) -> bool:
    """The join link is revealed from one hour before start, for confirmed or held meetings"""
    if meeting.status in (PENDING, CANCELLED):
        return False
    return now >= link_available_at(meeting)


def minutes_until_link(meeting, now: datetime) -> int:
    remaining = (link_available_at(meeting) - now).total_seconds()
    return max(0, math.ceil(remaining / 60))


def is_meeting_live(meeting, now: datetime) -> bool:
    """Started less than 30 minutes ago"""
    return meeting.scheduled_at <= now < meeting.scheduled_at + LIVE_WINDOW


def is_overdue(meeting, now: datetime) -> bool:
    """A confirmed meeting whose end time has passed and should await the client's decision"""
    return meeting.status == CONFIRMED and (meeting.duration or 0) > 0 and now > meeting_end(meeting)


def seconds_until_end(meeting, now: datetime) -> int:
    return max(0, int((meeting_end(meeting) - now).total_seconds()))


def can_complete_discovery(meeting, now: datetime) -> bool:
    """Discovery calls may be wrapped up five minutes before their scheduled end"""
    earliest = meeting.scheduled_at + timedelta(minutes=meeting.duration or 0) - DISCOVERY_EARLY_FINISH
    return now >= earliest


def is_discovery_booking(title: Optional[str], duration_minutes: int) -> bool:
    """Short intro bookings are discovery calls: titled as such, or exactly 15 minutes"""
    if duration_minutes > MAX_DISCOVERY_MINUTES:
        return False
    lowered = (title or "").lower()
    return "discovery" in lowered or "consultation" in lowered or duration_minutes == 15


def is_reminder_due(meeting, now: datetime) -> bool:
    if meeting.status != CONFIRMED or (meeting.duration or 0) <= 0 or meeting.reminder_sent_at:
        return False
    return meeting.scheduled_at - REMINDER_LEAD_TIME <= now < meeting.scheduled_at


def normalize_decision(decision: str) -> Optional[str]:
    """Map approve/approved/reject/rejected (any case) to APPROVED/REJECTED"""
    value = (decision or "").strip().lower()
    if value in ("approve", "approved"):
        return DECISION_APPROVED
    if value in ("reject", "rejected"):
        return DECISION_REJECTED
    return None
