"""Dispute domain schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class DisputeCreate(BaseModel):
    projectId: int
    reason: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    evidence: Optional[Any] = None


class DisputeResponse(BaseModel):
    id: int
    projectId: int
    projectTitle: Optional[str] = None
    paymentId: Optional[int] = None
    raisedById: Optional[int] = None
    reason: str
    description: Optional[str] = None
    evidence: Optional[Any] = None
    amount: Optional[float] = None
    status: str
    createdAt: Optional[datetime] = None
    resolvedAt: Optional[datetime] = None
