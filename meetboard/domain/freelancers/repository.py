"""Freelancer repository - Database operations for profiles, reviews and client decisions"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import ROLE_FREELANCER, FreelancerDecision, FreelancerProfile, Review, User


class FreelancerRepository:
    """Repository for freelancer database operations"""

    @staticmethod
    def get_freelancer_user(db: Session, user_id: int) -> Optional[User]:
        """A user only counts as a freelancer when their role says so"""
        return db.query(User).filter(User.id == user_id, User.role == ROLE_FREELANCER).first()

    @staticmethod
    def get_active_profiles(db: Session) -> list[FreelancerProfile]:
        return (
            db.query(FreelancerProfile)
            .options(joinedload(FreelancerProfile.user))
            .filter(FreelancerProfile.is_active.is_(True))
            .order_by(FreelancerProfile.created_at.desc(), FreelancerProfile.id.desc())
            .all()
        )

    @staticmethod
    def get_profile_by_user_id(db: Session, user_id: int, active_only: bool = False) -> Optional[FreelancerProfile]:
        query = db.query(FreelancerProfile).filter(FreelancerProfile.user_id == user_id)
        if active_only:
            query = query.filter(FreelancerProfile.is_active.is_(True))
        return query.first()

    @staticmethod
    def find_profile_for_booking(db: Session, organizer_email: Optional[str], organizer_username: Optional[str]) -> Optional[FreelancerProfile]:
        """Match a Cal.com organizer to a freelancer by account email, then by Cal.com username"""
        if organizer_email:
            profile = (
                db.query(FreelancerProfile)
                .join(User, FreelancerProfile.user_id == User.id)
                .filter(User.email == organizer_email, User.role == ROLE_FREELANCER)
                .first()
            )
            if profile:
                return profile
        if organizer_username:
            return (
                db.query(FreelancerProfile)
                .filter(
                    (FreelancerProfile.cal_username == organizer_username)
                    | (FreelancerProfile.cal_link.contains(organizer_username))
                )
                .first()
            )
        return None

    @staticmethod
    def save_profile(db: Session, profile: FreelancerProfile) -> FreelancerProfile:
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    @staticmethod
    def get_recent_reviews(db: Session, reviewee_id: int, limit: int = 10) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.reviewer))
            .filter(Review.reviewee_id == reviewee_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_rating_summary(db: Session, reviewee_id: int) -> tuple[float, int]:
        """(average rating, review count) with 0 average when unreviewed"""
        avg, count = (
            db.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.reviewee_id == reviewee_id)
            .one()
        )
        return float(avg or 0), int(count or 0)

    @staticmethod
    def create_review(db: Session, **review_data) -> Review:
        review = Review(**review_data)
        db.add(review)
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def get_decision(db: Session, client_id: int, freelancer_id: int) -> Optional[FreelancerDecision]:
        return (
            db.query(FreelancerDecision)
            .filter(
                FreelancerDecision.client_id == client_id,
                FreelancerDecision.freelancer_id == freelancer_id,
            )
            .first()
        )
