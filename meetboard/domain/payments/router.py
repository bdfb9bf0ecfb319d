"""Payment router - payment history, Stripe/PayPal checkout and escrow"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_client
from ...database import get_db
from ...models import User
from .schemas import (
    CheckoutRequest,
    EscrowCreate,
    EscrowRelease,
    ManualPaymentCreate,
    PaymentResponse,
    PayPalCaptureRequest,
)
from .service import PaymentService, to_payment_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])
escrow_router = APIRouter(prefix="/escrow", tags=["Escrow"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.get("", response_model=list[PaymentResponse])
async def get_payments(
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return [to_payment_response(p) for p in service.get_payments(current_user)]


@router.post("", response_model=PaymentResponse, status_code=201)
async def create_meeting_payment(
    data: ManualPaymentCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return to_payment_response(service.create_manual_payment(data, current_user))


@router.post("/stripe/create-payment-intent")
async def create_stripe_payment_intent(
    data: CheckoutRequest,
    current_user: User = Depends(require_client),
    service: PaymentService = Depends(get_payment_service),
):
    return service.create_stripe_payment_intent(data, current_user)


@router.post("/paypal/create-order")
async def create_paypal_order(
    data: CheckoutRequest,
    current_user: User = Depends(require_client),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.create_paypal_order(data, current_user)


@router.post("/paypal/capture-order", response_model=PaymentResponse)
async def capture_paypal_order(
    data: PayPalCaptureRequest,
    current_user: User = Depends(require_client),
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.capture_paypal_order(data.orderId, current_user)
    return to_payment_response(payment)


# ============================================================================
# ESCROW
# ============================================================================


@escrow_router.post("/create", status_code=201)
async def create_escrow_payment(
    data: EscrowCreate,
    current_user: User = Depends(require_client),
    service: PaymentService = Depends(get_payment_service),
):
    """Hold milestone funds until the client approves the delivered work"""
    payment, client_secret = await service.create_escrow(data, current_user)
    if payment.status != "ESCROWED":
        return {
            "success": True,
            "payment": to_payment_response(payment).model_dump(mode="json"),
            "escrowStatus": "REQUIRES_ACTION",
            "clientSecret": client_secret,
            "message": "Complete card authentication to place the escrow hold",
        }
    return {
        "success": True,
        "payment": to_payment_response(payment).model_dump(mode="json"),
        "escrowStatus": "HELD",
        "message": "Funds held in escrow until milestone approval",
    }


@escrow_router.post("/release")
async def release_escrow_payment(
    data: EscrowRelease,
    current_user: User = Depends(require_client),
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.release_escrow(data, current_user)
    return {
        "success": True,
        "payment": to_payment_response(payment).model_dump(mode="json"),
        "message": "Payment released to freelancer",
    }
