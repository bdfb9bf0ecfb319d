"""
Dashboard Routes
Role-specific summary counts and freelancer analytics
"""

import builtins
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import get_current_user, require_freelancer
from ..database import get_db
from ..domain.meetings import lifecycle
from ..models import FreelancerProfile, Review, User
from ..models_meeting import Meeting
from ..models_project import Payment

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])

# Released escrow counts as paid out alongside direct payments
PAID_STATUSES = ("COMPLETED", "RELEASED")
RANGE_MONTHS = {"3months": 3, "6months": 6, "1year": 12}


def _month_start(now: datetime, months_back: int) -> datetime:
    """First day of the month months_back before now; negative values go forward"""
    index = now.year * 12 + (now.month - 1) - months_back
    return datetime(index // 12, index % 12 + 1, 1)


def _paid_total(db: Session, *filters) -> float:
    total = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.status.in_(PAID_STATUSES), *filters)
        .scalar()
    )
    return float(total or 0)


def _rating_summary(db: Session, user_id: int) -> tuple[float, int]:
    avg, count = (
        db.query(func.avg(Review.rating), func.count(Review.id)).filter(Review.reviewee_id == user_id).one()
    )
    return (round(float(avg), 1) if avg else 0.0), int(count or 0)


@router.get("/dashboard/stats")
async def get_dashboard_stats(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    now = datetime.utcnow()
    owner_column = Meeting.freelancer_id if current_user.is_freelancer else Meeting.client_id

    meetings = db.query(Meeting).filter(owner_column == current_user.id)
    total_meetings = meetings.count()
    upcoming_meetings = meetings.filter(
        Meeting.status.in_((lifecycle.PENDING, lifecycle.CONFIRMED)), Meeting.scheduled_at >= now
    ).count()
    completed_meetings = meetings.filter(Meeting.status.in_(lifecycle.HELD_STATUSES)).count()

    stats = {
        "totalMeetings": total_meetings,
        "upcomingMeetings": upcoming_meetings,
        "completedMeetings": completed_meetings,
    }

    if current_user.is_freelancer:
        average_rating, total_reviews = _rating_summary(db, current_user.id)
        stats.update(
            totalEarnings=_paid_total(db, Payment.freelancer_id == current_user.id),
            averageRating=average_rating,
            totalReviews=total_reviews,
        )
    else:
        stats.update(
            totalSpent=_paid_total(db, Payment.client_id == current_user.id),
            activeFreelancers=db.query(FreelancerProfile).filter(FreelancerProfile.is_active.is_(True)).count(),
        )

    return {"stats": stats}


@router.get("/analytics")
async def get_analytics(
    range: Optional[str] = Query("6months"),
    current_user: User = Depends(require_freelancer),
    db: Session = Depends(get_db),
):
    """Freelancer analytics for the last 3, 6 or 12 months"""
    months_back = RANGE_MONTHS.get(range, 6)
    now = datetime.utcnow()
    freelancer_id = current_user.id
    this_month = _month_start(now, 0)

    total_meetings = db.query(Meeting).filter(Meeting.freelancer_id == freelancer_id).count()
    monthly_meetings = (
        db.query(Meeting).filter(Meeting.freelancer_id == freelancer_id, Meeting.created_at >= this_month).count()
    )
    average_rating, total_reviews = _rating_summary(db, freelancer_id)

    durations = [
        m.duration
        for m in db.query(Meeting).filter(
            Meeting.freelancer_id == freelancer_id, Meeting.status.in_(lifecycle.HELD_STATUSES)
        )
    ]
    average_session = round(sum(durations) / len(durations)) if durations else 0

    top_rows = (
        db.query(Meeting.client_id, func.count(Meeting.id).label("meetings"))
        .filter(Meeting.freelancer_id == freelancer_id)
        .group_by(Meeting.client_id)
        .order_by(func.count(Meeting.id).desc())
        .limit(5)
        .all()
    )
    top_clients = []
    for client_id, meetings_count in top_rows:
        client = db.query(User).filter(User.id == client_id).first()
        top_clients.append(
            {
                "name": (client.name if client else None) or "Unknown",
                "meetingsCount": meetings_count,
                "totalSpent": _paid_total(
                    db, Payment.client_id == client_id, Payment.freelancer_id == freelancer_id
                ),
            }
        )

    monthly_stats = []
    for i in builtins.range(months_back - 1, -1, -1):
        start = _month_start(now, i)
        end = _month_start(now, i - 1)
        monthly_stats.append(
            {
                "month": start.strftime("%b %Y"),
                "earnings": _paid_total(
                    db,
                    Payment.freelancer_id == freelancer_id,
                    Payment.created_at >= start,
                    Payment.created_at < end,
                ),
                "meetings": db.query(Meeting)
                .filter(
                    Meeting.freelancer_id == freelancer_id,
                    Meeting.created_at >= start,
                    Meeting.created_at < end,
                )
                .count(),
            }
        )

    recent_reviews = (
        db.query(Review)
        .filter(Review.reviewee_id == freelancer_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(5)
        .all()
    )

    analytics = {
        "totalEarnings": _paid_total(db, Payment.freelancer_id == freelancer_id),
        "monthlyEarnings": _paid_total(
            db, Payment.freelancer_id == freelancer_id, Payment.created_at >= this_month
        ),
        "totalMeetings": total_meetings,
        "monthlyMeetings": monthly_meetings,
        "averageRating": average_rating,
        "totalReviews": total_reviews,
        "averageSessionDuration": average_session,
        "topClients": top_clients,
        "monthlyStats": monthly_stats,
        "recentReviews": [
            {
                "rating": r.rating,
                "comment": r.comment,
                "clientName": (r.reviewer.name if r.reviewer else None) or "Anonymous",
                "createdAt": r.created_at.isoformat() if r.created_at else None,
            }
            for r in recent_reviews
        ],
    }
    return {"analytics": analytics}
