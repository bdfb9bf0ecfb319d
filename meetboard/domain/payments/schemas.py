"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ManualPaymentCreate(BaseModel):
    """Record an off-platform payment for a meeting"""

    meetingId: int
    amount: float = Field(..., gt=0)
    description: Optional[str] = None


class CheckoutRequest(BaseModel):
    """Start a Stripe or PayPal checkout for a project (optionally one milestone)"""

    projectId: int
    amount: float = Field(..., gt=0)
    milestoneId: Optional[int] = None
    description: Optional[str] = None


class PayPalCaptureRequest(BaseModel):
    orderId: str = Field(..., min_length=1)


class EscrowCreate(BaseModel):
    projectId: int
    milestoneId: int
    amount: float = Field(..., gt=0)
    paymentMethodId: str = Field(..., min_length=1)
    description: Optional[str] = None


class EscrowRelease(BaseModel):
    paymentId: int
    milestoneId: Optional[int] = None
    feedback: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    amount: float
    currency: str
    status: str
    paymentMethod: Optional[str] = None
    description: Optional[str] = None
    projectId: Optional[int] = None
    milestoneId: Optional[int] = None
    meetingId: Optional[int] = None
    clientId: int
    freelancerId: int
    escrowedAt: Optional[datetime] = None
    releasedAt: Optional[datetime] = None
    paidAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
