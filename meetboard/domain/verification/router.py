"""Verification router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import VerificationStatusResponse, VerificationSubmit
from .service import VerificationService, to_status_response

router = APIRouter(prefix="/verification", tags=["Verification"])


def get_verification_service(db: Session = Depends(get_db)) -> VerificationService:
    return VerificationService(db)


@router.get("/status", response_model=VerificationStatusResponse)
async def get_verification_status(
    current_user: User = Depends(get_current_user),
    service: VerificationService = Depends(get_verification_service),
):
    return to_status_response(service.get_or_create(current_user))


@router.post("/submit")
async def submit_verification(
    data: VerificationSubmit,
    current_user: User = Depends(get_current_user),
    service: VerificationService = Depends(get_verification_service),
):
    record = await service.submit(data.verificationType, current_user)
    label = data.verificationType.replace("_", " ", 1)
    return {
        "success": True,
        "message": f"{label} submitted successfully",
        "verification": to_status_response(record).model_dump(mode="json"),
    }
