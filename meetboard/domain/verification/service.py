"""Verification service - identity/contact checks and the derived trust level"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User, UserVerification
from ...services.notification_service import send_notification
from .schemas import VerificationStatusResponse

logger = logging.getLogger(__name__)

TOTAL_CHECKS = 5


def trust_level(score: int) -> str:
    if score >= 4:
        return "HIGHLY_TRUSTED"
    if score == 3:
        return "VERIFIED"
    if score == 2:
        return "PARTIALLY_VERIFIED"
    return "UNVERIFIED"


def verification_score(record: UserVerification) -> int:
    checks = (
        record.id_verification == "VERIFIED",
        record.email_verified,
        record.phone_verified,
        record.portfolio_verified,
        record.background_check == "VERIFIED",
    )
    return sum(1 for passed in checks if passed)


def is_fully_verified(record: UserVerification) -> bool:
    """ID, email, phone and portfolio; the background check only raises the score"""
    return (
        record.id_verification == "VERIFIED"
        and record.email_verified
        and record.phone_verified
        and record.portfolio_verified
    )


def to_status_response(record: UserVerification) -> VerificationStatusResponse:
    score = verification_score(record)
    return VerificationStatusResponse(
        idVerification=record.id_verification,
        emailVerified=record.email_verified,
        phoneVerified=record.phone_verified,
        portfolioVerified=record.portfolio_verified,
        backgroundCheck=record.background_check,
        verifiedAt=record.verified_at,
        score=score,
        totalChecks=TOTAL_CHECKS,
        progressPercentage=score / TOTAL_CHECKS * 100,
        isFullyVerified=is_fully_verified(record),
        trustLevel=trust_level(score),
    )


class VerificationService:
    def __init__(self, db: Session):
        self.db = db

    def get_or_create(self, user: User) -> UserVerification:
        record = self.db.query(UserVerification).filter(UserVerification.user_id == user.id).first()
        if not record:
            record = UserVerification(
                user_id=user.id,
                id_verification="UNVERIFIED",
                email_verified=False,
                phone_verified=False,
                portfolio_verified=False,
                background_check="UNVERIFIED",
            )
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        return record

    async def submit(self, verification_type: str, user: User) -> UserVerification:
        record = self.get_or_create(user)

        if verification_type == "id_verification":
            # ID documents are reviewed out of band; the submission only queues them
            record.id_verification = "PENDING"
        elif verification_type == "email_verification":
            record.email_verified = True
        elif verification_type == "phone_verification":
            record.phone_verified = True
        elif verification_type == "portfolio_verification":
            record.portfolio_verified = True
        else:
            raise HTTPException(status_code=400, detail="Invalid verification type")

        newly_verified = is_fully_verified(record) and record.verified_at is None
        if newly_verified:
            record.verified_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"🪪 User {user.id} submitted {verification_type}")

        if newly_verified:
            await send_notification(
                self.db,
                user,
                title="Verification Complete!",
                message="Your account is fully verified. Clients will see your verified badge.",
                notification_type="verification_complete",
            )
        return record
