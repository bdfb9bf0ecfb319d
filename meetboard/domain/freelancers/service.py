"""Freelancer service - Profiles, public listings, reviews and client approve/reject decisions"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import get_public_profile_cached, invalidate_public_profile_cache, set_public_profile_cached
from ...models import FreelancerDecision, FreelancerProfile, Review, User
from ...models_meeting import Meeting
from ...services.notification_service import send_notification
from ...utils.sanitization import sanitize_string
from ..meetings import lifecycle
from .repository import FreelancerRepository
from .schemas import (
    FreelancerDecisionRequest,
    FreelancerProfileResponse,
    FreelancerProfileUpsert,
    ReviewCreate,
    ReviewResponse,
)

logger = logging.getLogger(__name__)


def to_profile_response(profile: FreelancerProfile) -> FreelancerProfileResponse:
    return FreelancerProfileResponse(
        id=profile.id,
        userId=profile.user_id,
        name=profile.user.name if profile.user else None,
        imageUrl=profile.user.image_url if profile.user else None,
        title=profile.title,
        description=profile.description,
        hourlyRate=profile.hourly_rate,
        skills=profile.skills or [],
        experience=profile.experience,
        portfolio=profile.portfolio or [],
        integrations=profile.integrations or [],
        availability=profile.availability,
        calLink=profile.cal_link,
        isActive=profile.is_active,
        createdAt=profile.created_at,
    )


def to_review_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=review.id,
        rating=review.rating,
        comment=review.comment,
        reviewerId=review.reviewer_id,
        reviewerName=review.reviewer.name if review.reviewer else None,
        createdAt=review.created_at,
    )


class FreelancerService:
    """Service layer for freelancer business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = FreelancerRepository()

    def get_profiles(self) -> list[FreelancerProfile]:
        return self.repo.get_active_profiles(self.db)

    def get_profile(self, user_id: int) -> FreelancerProfile:
        profile = self.repo.get_profile_by_user_id(self.db, user_id, active_only=True)
        if not profile:
            raise HTTPException(status_code=404, detail="Freelancer not found")
        return profile

    def get_public_profile(self, user_id: int) -> dict:
        """Profile plus the latest reviews, served from cache when warm"""
        cached = get_public_profile_cached(user_id)
        if cached is not None:
            return cached

        profile = self.get_profile(user_id)
        average, total = self.repo.get_rating_summary(self.db, user_id)
        reviews = self.repo.get_recent_reviews(self.db, user_id, limit=10)

        result = to_profile_response(profile).model_dump(mode="json")
        result["reviews"] = [to_review_response(r).model_dump(mode="json") for r in reviews]
        result["averageRating"] = round(average, 1)
        result["totalReviews"] = total

        set_public_profile_cached(user_id, result)
        return result

    def get_own_profile(self, user: User) -> FreelancerProfile:
        profile = self.repo.get_profile_by_user_id(self.db, user.id)
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return profile

    def upsert_profile(self, user: User, data: FreelancerProfileUpsert) -> FreelancerProfile:
        profile = self.repo.get_profile_by_user_id(self.db, user.id)
        if not profile:
            logger.info(f"🆕 Creating freelancer profile for user {user.id}")
            profile = FreelancerProfile(user_id=user.id)

        profile.title = data.title.strip()
        profile.description = data.description.strip()
        profile.hourly_rate = data.hourlyRate
        profile.skills = data.skills
        profile.experience = data.experience
        profile.portfolio = data.portfolio
        profile.integrations = data.integrations
        profile.availability = data.availability
        profile.cal_username = data.calUsername
        profile.cal_link = data.calLink
        profile.is_active = data.isActive

        profile = self.repo.save_profile(self.db, profile)
        invalidate_public_profile_cache(user.id)
        return profile

    async def create_review(self, freelancer_id: int, data: ReviewCreate, reviewer: User) -> Review:
        """Clients may review a freelancer once they have actually met"""
        freelancer = self.repo.get_freelancer_user(self.db, freelancer_id)
        if not freelancer:
            raise HTTPException(status_code=404, detail="Freelancer not found")

        has_met = (
            self.db.query(Meeting.id)
            .filter(
                Meeting.client_id == reviewer.id,
                Meeting.freelancer_id == freelancer.id,
                Meeting.status.in_(lifecycle.HELD_STATUSES),
            )
            .first()
        )
        if not has_met:
            raise HTTPException(status_code=403, detail="You can only review freelancers you have met with")

        review = self.repo.create_review(
            self.db,
            reviewer_id=reviewer.id,
            reviewee_id=freelancer.id,
            meeting_id=data.meetingId,
            project_id=data.projectId,
            rating=data.rating,
            comment=sanitize_string(data.comment.strip()) if data.comment else None,
        )
        invalidate_public_profile_cache(freelancer.id)

        await send_notification(
            self.db,
            freelancer,
            title="New Review",
            message=f"{reviewer.name or 'A client'} left you a {data.rating}-star review",
            notification_type="new_review",
        )
        return review

    async def record_decision(self, data: FreelancerDecisionRequest, client: User) -> dict:
        decision = (data.decision or "").strip().lower()
        if decision not in ("approve", "reject"):
            raise HTTPException(status_code=400, detail="Decision must be 'approve' or 'reject'")
        feedback = (data.feedback or "").strip()
        if decision == "reject" and not feedback:
            raise HTTPException(status_code=400, detail="Feedback is required when rejecting a freelancer")

        freelancer = self.repo.get_freelancer_user(self.db, data.freelancerId)
        if not freelancer:
            raise HTTPException(status_code=404, detail="Freelancer not found")

        record = self.repo.get_decision(self.db, client.id, freelancer.id)
        if not record:
            record = FreelancerDecision(client_id=client.id, freelancer_id=freelancer.id)
            self.db.add(record)
        record.decision = decision
        record.feedback = feedback or None
        record.project_details = data.projectDetails

        board = None
        if decision == "approve":
            details = data.projectDetails or {}
            board = Meeting(
                client_id=client.id,
                freelancer_id=freelancer.id,
                title=f"Collaboration with {freelancer.name or 'Freelancer'}",
                description="Meeting board for ongoing collaboration",
                scheduled_at=datetime.utcnow(),
                duration=0,
                status=lifecycle.CONFIRMED,
                type=lifecycle.TYPE_COLLABORATION,
                notes=f"Budget: {details.get('budget', 'Not specified')}\nTimeline: {details.get('timeline', 'Not specified')}",
            )
            self.db.add(board)
            self.db.flush()
            board.meeting_url = lifecycle.generate_meeting_link(board.id)
            record.meeting_id = board.id

        self.db.commit()
        logger.info(f"🗳️ Client {client.id} decided '{decision}' on freelancer {freelancer.id}")

        if board is not None:
            await send_notification(
                self.db,
                freelancer,
                title="Client Approved You!",
                message=f"{client.name or 'A client'} wants to work with you. Your meeting board is ready.",
                notification_type="client_approval",
            )
            await send_notification(
                self.db,
                client,
                title="Meeting Board Ready!",
                message=f"Your meeting board with {freelancer.name or 'your freelancer'} is ready.",
                notification_type="meeting_board_ready",
            )
            return {
                "success": True,
                "decision": decision,
                "meetingId": board.id,
                "redirectUrl": f"/dashboard/meetings/{board.id}",
            }

        await send_notification(
            self.db,
            freelancer,
            title="Client Feedback",
            message=f"{client.name or 'A client'} decided not to proceed. Feedback: {feedback}",
            notification_type="client_feedback",
        )
        return {"success": True, "decision": decision, "meetingId": None, "redirectUrl": "/dashboard/freelancers"}
