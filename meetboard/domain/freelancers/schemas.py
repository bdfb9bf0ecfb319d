"""Freelancer domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class FreelancerProfileUpsert(BaseModel):
    """Schema for creating or replacing the current freelancer's profile"""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    hourlyRate: float = Field(..., gt=0)
    skills: list[str] = []
    experience: Optional[str] = None
    portfolio: list[Any] = []
    integrations: list[str] = []
    availability: Optional[str] = None
    calUsername: Optional[str] = None
    calLink: Optional[str] = None
    isActive: bool = True


class FreelancerProfileResponse(BaseModel):
    id: int
    userId: int
    name: Optional[str] = None
    imageUrl: Optional[str] = None
    title: str
    description: str
    hourlyRate: float
    skills: list[str] = []
    experience: Optional[str] = None
    portfolio: list[Any] = []
    integrations: list[str] = []
    availability: Optional[str] = None
    calLink: Optional[str] = None
    isActive: bool
    createdAt: Optional[datetime] = None


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=5000)
    meetingId: Optional[int] = None
    projectId: Optional[int] = None


class ReviewResponse(BaseModel):
    id: int
    rating: int
    comment: Optional[str] = None
    reviewerId: int
    reviewerName: Optional[str] = None
    createdAt: Optional[datetime] = None


class FreelancerDecisionRequest(BaseModel):
    """A client's verdict after a discovery call"""

    freelancerId: int
    decision: str
    feedback: Optional[str] = None
    projectDetails: Optional[dict[str, Any]] = None
