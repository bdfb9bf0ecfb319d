"""Verification domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class VerificationSubmit(BaseModel):
    verificationType: str


class VerificationStatusResponse(BaseModel):
    idVerification: str
    emailVerified: bool
    phoneVerified: bool
    portfolioVerified: bool
    backgroundCheck: str
    verifiedAt: Optional[datetime] = None
    score: int
    totalChecks: int
    progressPercentage: float
    isFullyVerified: bool
    trustLevel: str
