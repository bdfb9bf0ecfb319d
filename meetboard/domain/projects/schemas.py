"""Project domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...utils.datetimes import to_naive_utc


class MilestoneCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    amount: float = Field(..., gt=0)
    dueDate: Optional[datetime] = None

    @field_validator("dueDate")
    @classmethod
    def normalize_due_date(cls, v):
        return to_naive_utc(v)


class ProjectCreate(BaseModel):
    """Schema for a client proposing a milestone-based project"""

    freelancerId: int
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    totalAmount: float = Field(..., gt=0)
    milestones: list[MilestoneCreate] = []


class ProjectStatusUpdate(BaseModel):
    status: str


class MilestoneStatusUpdate(BaseModel):
    status: str


class ProjectMessageCreate(BaseModel):
    content: str


class MilestoneResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    amount: float
    dueDate: Optional[datetime] = None
    status: str


class ProjectResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    totalAmount: float
    currency: str
    status: str
    clientId: int
    clientName: Optional[str] = None
    freelancerId: int
    freelancerName: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    milestones: list[MilestoneResponse] = []
    progress: float = 0
    completedMilestones: int = 0
    totalMilestones: int = 0
    totalEarned: float = 0
    totalPaid: float = 0
    totalEscrowed: Optional[float] = None
    totalReleased: Optional[float] = None
