import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import ROLES, User
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


class UserUpdate(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None
    role: Optional[str] = None
    onboardingCompleted: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        role = v.upper()
        if role not in ROLES:
            raise ValueError(f"role must be one of {', '.join(ROLES)}")
        return role


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str
    image: Optional[str] = None
    onboardingCompleted: bool
    hasFreelancerProfile: bool = False
    createdAt: Optional[datetime] = None


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        image=user.image_url,
        onboardingCompleted=bool(user.onboarding_completed),
        hasFreelancerProfile=user.freelancer_profile is not None,
        createdAt=user.created_at,
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return to_user_response(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the signed-in user; the role is fixed once onboarding is complete"""
    if data.role and data.role != current_user.role:
        if current_user.onboarding_completed:
            raise HTTPException(status_code=400, detail="Role cannot be changed after onboarding")
        logger.info(f"🔄 User {current_user.id} role {current_user.role} -> {data.role}")
        current_user.role = data.role

    if data.name is not None:
        current_user.name = sanitize_string(data.name)
    if data.image is not None:
        if data.image.startswith("data:"):
            raise HTTPException(status_code=400, detail="Inline image data is not supported")
        current_user.image_url = data.image or None
    if data.onboardingCompleted is not None:
        current_user.onboarding_completed = data.onboardingCompleted

    db.commit()
    db.refresh(current_user)
    return to_user_response(current_user)
