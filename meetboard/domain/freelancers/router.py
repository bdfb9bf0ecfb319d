"""Freelancer router - directory, profiles, reviews and client decisions"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_client, require_freelancer
from ...database import get_db
from ...models import User
from .schemas import (
    FreelancerDecisionRequest,
    FreelancerProfileResponse,
    FreelancerProfileUpsert,
    ReviewCreate,
    ReviewResponse,
)
from .service import FreelancerService, to_profile_response, to_review_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/freelancers", tags=["Freelancers"])
decisions_router = APIRouter(prefix="/freelancer-decisions", tags=["Freelancers"])


def get_freelancer_service(db: Session = Depends(get_db)) -> FreelancerService:
    """Dependency injection for FreelancerService"""
    return FreelancerService(db)


@router.get("", response_model=list[FreelancerProfileResponse])
async def list_freelancers(
    current_user: User = Depends(get_current_user),
    service: FreelancerService = Depends(get_freelancer_service),
):
    return [to_profile_response(p) for p in service.get_profiles()]


# /me routes are declared before /{user_id} so "me" is never parsed as an id
@router.get("/me/profile", response_model=FreelancerProfileResponse)
async def get_my_profile(
    current_user: User = Depends(require_freelancer),
    service: FreelancerService = Depends(get_freelancer_service),
):
    return to_profile_response(service.get_own_profile(current_user))


@router.post("/me/profile", response_model=FreelancerProfileResponse)
async def upsert_my_profile(
    data: FreelancerProfileUpsert,
    current_user: User = Depends(require_freelancer),
    service: FreelancerService = Depends(get_freelancer_service),
):
    return to_profile_response(service.upsert_profile(current_user, data))


@router.get("/{user_id}", response_model=FreelancerProfileResponse)
async def get_freelancer(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: FreelancerService = Depends(get_freelancer_service),
):
    return to_profile_response(service.get_profile(user_id))


@router.get("/{user_id}/public")
async def get_public_freelancer_profile(
    user_id: int,
    service: FreelancerService = Depends(get_freelancer_service),
):
    """Public profile page - no authentication required"""
    return service.get_public_profile(user_id)


@router.post("/{user_id}/reviews", response_model=ReviewResponse, status_code=201)
async def create_review(
    user_id: int,
    data: ReviewCreate,
    current_user: User = Depends(require_client),
    service: FreelancerService = Depends(get_freelancer_service),
):
    review = await service.create_review(user_id, data, current_user)
    return to_review_response(review)


@decisions_router.post("")
async def submit_freelancer_decision(
    data: FreelancerDecisionRequest,
    current_user: User = Depends(require_client),
    service: FreelancerService = Depends(get_freelancer_service),
):
    return await service.record_decision(data, current_user)
