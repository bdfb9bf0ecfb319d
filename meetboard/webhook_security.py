"""
Webhook Security Module

Signature verification shared by the inbound webhook receivers.
Comparisons are constant-time and the raw body is returned so the caller
parses exactly the bytes that were verified.
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

CAL_SIGNATURE_HEADER = "X-Cal-Signature-256"


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Empty values never match.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_cal_signature(secret: str, payload: bytes, signature: Optional[str]) -> bool:
    """Cal.com signs the raw body with HMAC-SHA256 and sends the hex digest"""
    if not signature:
        return False
    expected = compute_hmac_sha256(secret, payload)
    return constant_time_compare(expected, signature.strip().lower())


async def verify_cal_webhook(
    request: Request, secret: Optional[str], raise_on_failure: bool = True
) -> tuple[bool, bytes]:
    """
    Verify a Cal.com webhook delivery.

    Args:
        request: FastAPI request object
        secret: Webhook secret configured on the Cal.com webhook
        raise_on_failure: If True, raises HTTPException(401) on failure

    Returns:
        Tuple of (is_valid, raw_body)
    """
    body = await request.body()

    if not secret:
        logger.warning("⚠️ CAL_WEBHOOK_SECRET not set - skipping signature verification")
        return True, body

    signature = request.headers.get(CAL_SIGNATURE_HEADER)
    if not signature:
        logger.warning("🚫 Cal.com webhook missing signature header")
        if raise_on_failure:
            raise HTTPException(status_code=401, detail="Missing webhook signature")
        return False, body

    if not verify_cal_signature(secret, body, signature):
        logger.warning("🚫 Cal.com webhook signature mismatch")
        if raise_on_failure:
            raise HTTPException(status_code=401, detail="Invalid webhook signature")
        return False, body

    logger.debug("✅ Cal.com webhook signature verified")
    return True, body
