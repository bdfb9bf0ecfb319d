"""Dispute router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import DisputeCreate, DisputeResponse
from .service import DisputeService, to_dispute_response

router = APIRouter(prefix="/disputes", tags=["Disputes"])


def get_dispute_service(db: Session = Depends(get_db)) -> DisputeService:
    return DisputeService(db)


@router.get("", response_model=list[DisputeResponse])
async def get_disputes(
    current_user: User = Depends(get_current_user),
    service: DisputeService = Depends(get_dispute_service),
):
    return [to_dispute_response(d) for d in service.get_disputes(current_user)]


@router.post("", response_model=DisputeResponse, status_code=201)
async def create_dispute(
    data: DisputeCreate,
    current_user: User = Depends(get_current_user),
    service: DisputeService = Depends(get_dispute_service),
):
    dispute = await service.create_dispute(data, current_user)
    return to_dispute_response(dispute)
