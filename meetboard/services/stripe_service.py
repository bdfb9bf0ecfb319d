"""
Stripe Service
PaymentIntents for direct payments and manual-capture escrow holds
"""

import logging
from typing import Optional

import stripe

from ..config import STRIPE_SECRET_KEY

logger = logging.getLogger(__name__)

stripe.api_key = STRIPE_SECRET_KEY


class StripeServiceError(Exception):
    """Raised when Stripe rejects or fails a request"""


def is_configured() -> bool:
    return bool(stripe.api_key)


def to_minor_units(amount: float) -> int:
    """Dollars to cents"""
    return int(round(amount * 100))


def create_payment_intent(
    amount: float,
    metadata: dict,
    description: str,
    currency: str = "usd",
    receipt_email: Optional[str] = None,
):
    """PaymentIntent confirmed client-side with the returned client_secret"""
    try:
        intent = stripe.PaymentIntent.create(
            amount=to_minor_units(amount),
            currency=currency,
            metadata={k: str(v) for k, v in metadata.items()},
            description=description,
            receipt_email=receipt_email,
            automatic_payment_methods={"enabled": True},
        )
        logger.info(f"✅ Stripe PaymentIntent created: {intent.id}")
        return intent
    except stripe.StripeError as e:
        logger.error(f"❌ Stripe PaymentIntent creation failed: {e}")
        raise StripeServiceError(str(e)) from e


def create_escrow_intent(amount: float, payment_method_id: str, metadata: dict, description: str, currency: str = "usd"):
    """
    Authorize and hold funds without capturing them.
    Funds move only when capture_payment_intent is called on release.
    """
    try:
        intent = stripe.PaymentIntent.create(
            amount=to_minor_units(amount),
            currency=currency,
            payment_method=payment_method_id,
            capture_method="manual",
            confirm=True,
            automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
            metadata={k: str(v) for k, v in metadata.items()},
            description=description,
        )
        logger.info(f"🔒 Stripe escrow hold created: {intent.id} ({intent.status})")
        return intent
    except stripe.StripeError as e:
        logger.error(f"❌ Stripe escrow hold failed: {e}")
        raise StripeServiceError(str(e)) from e


def capture_payment_intent(payment_intent_id: str):
    try:
        intent = stripe.PaymentIntent.capture(payment_intent_id)
        logger.info(f"💸 Stripe PaymentIntent captured: {payment_intent_id}")
        return intent
    except stripe.StripeError as e:
        logger.error(f"❌ Stripe capture failed for {payment_intent_id}: {e}")
        raise StripeServiceError(str(e)) from e


def construct_webhook_event(payload: bytes, signature: str, secret: str):
    """Verify the Stripe-Signature header; raises ValueError or stripe.SignatureVerificationError"""
    return stripe.Webhook.construct_event(payload, signature, secret)
