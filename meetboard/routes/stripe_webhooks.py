"""
Stripe Webhook Handler
Mirrors payment intent and dispute events into payments, projects and notifications
"""

import json
import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ..config import STRIPE_WEBHOOK_SECRET
from ..database import get_db
from ..domain.payments.service import PaymentService
from ..services import stripe_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks/stripe", tags=["webhooks"])


@router.post("")
async def handle_stripe_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Handle Stripe webhook events

    Events handled:
    - payment_intent.amount_capturable_updated - escrow authorized
    - payment_intent.succeeded / payment_failed / canceled
    - charge.dispute.created - project moves to DISPUTED
    """
    body = await request.body()
    signature = request.headers.get("stripe-signature")

    if not signature:
        logger.warning("🚫 Stripe webhook missing Stripe-Signature header")
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    if not STRIPE_WEBHOOK_SECRET:
        logger.error("❌ STRIPE_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    try:
        stripe_service.construct_webhook_event(body, signature, STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning(f"🚫 Stripe webhook verification failed: {e}")
        raise HTTPException(status_code=400, detail="Invalid webhook signature") from e

    event = json.loads(body.decode())
    logger.info(f"📥 Received Stripe webhook: {event.get('type')} ({event.get('id')})")

    try:
        await PaymentService(db).handle_stripe_event(event)
    except Exception as e:
        db.rollback()
        logger.exception(f"❌ Stripe webhook processing failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Webhook processing failed") from e

    return {"received": True}
