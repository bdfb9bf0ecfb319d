"""Meeting domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...utils.datetimes import to_naive_utc


class MeetingCreate(BaseModel):
    """Schema for a client requesting a meeting with a freelancer"""

    freelancerId: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    scheduledAt: datetime
    duration: int = Field(60, ge=1, le=480)  # minutes

    @field_validator("scheduledAt")
    @classmethod
    def normalize_scheduled_at(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v


class MeetingStatusUpdate(BaseModel):
    status: str


class ClientDecisionRequest(BaseModel):
    decision: str
    feedback: Optional[str] = None


class NotesUpdate(BaseModel):
    notes: str = Field("", max_length=20000)


class MessageCreate(BaseModel):
    content: str


class MeetingResponse(BaseModel):
    """Meeting as seen by a participant. meetingUrl stays null until the link is visible."""

    id: int
    title: str
    description: Optional[str] = None
    scheduledAt: datetime
    duration: int
    status: str
    type: str
    clientDecision: Optional[str] = None
    meetingUrl: Optional[str] = None
    linkAvailable: bool
    linkAvailableAt: datetime
    minutesUntilLink: int
    isLive: bool
    notes: Optional[str] = None
    clientId: int
    clientName: Optional[str] = None
    freelancerId: int
    freelancerName: Optional[str] = None
    projectId: Optional[int] = None
    createdAt: Optional[datetime] = None


class MessageResponse(BaseModel):
    id: int
    content: str
    senderId: int
    senderName: Optional[str] = None
    createdAt: Optional[datetime] = None
