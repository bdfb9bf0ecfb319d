"""
PayPal Orders Service
Client-credentials OAuth plus the v2 Orders API, called with httpx
"""

import logging
from typing import Optional

import httpx

from ..config import PAYPAL_CLIENT_ID, PAYPAL_CLIENT_SECRET, PAYPAL_MODE

logger = logging.getLogger(__name__)

if PAYPAL_MODE == "live":
    PAYPAL_API_BASE = "https://api.paypal.com"
else:
    PAYPAL_API_BASE = "https://api.sandbox.paypal.com"


class PayPalServiceError(Exception):
    """Raised when PayPal rejects or fails a request"""


def is_configured() -> bool:
    return bool(PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET)


def _json_body(response: httpx.Response) -> dict:
    """PayPal error pages (5xx from the edge) are not always JSON"""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


async def get_access_token() -> str:
    try:
        async with httpx.AsyncClient(timeout=30.0) as http_client:
            response = await http_client.post(
                f"{PAYPAL_API_BASE}/v1/oauth2/token",
                auth=(PAYPAL_CLIENT_ID, PAYPAL_CLIENT_SECRET),
                headers={"Accept": "application/json"},
                data={"grant_type": "client_credentials"},
            )
    except httpx.HTTPError as e:
        logger.error(f"❌ PayPal token request failed: {e}")
        raise PayPalServiceError("Unable to reach PayPal") from e

    if response.status_code != 200:
        logger.error(f"❌ PayPal token request rejected: {response.status_code} {response.text}")
        raise PayPalServiceError("PayPal authentication failed")
    access_token = _json_body(response).get("access_token")
    if not access_token:
        logger.error("❌ PayPal token response had no access_token")
        raise PayPalServiceError("PayPal authentication failed")
    return access_token


async def create_order(
    amount: float,
    description: str,
    custom_id: str,
    return_url: str,
    cancel_url: str,
    currency: str = "USD",
) -> dict:
    """
    Create a CAPTURE-intent order.

    Returns:
        Dict with the order id and the buyer approval URL
    """
    access_token = await get_access_token()
    order_body = {
        "intent": "CAPTURE",
        "purchase_units": [
            {
                "amount": {"currency_code": currency, "value": f"{amount:.2f}"},
                "description": description[:127],
                "custom_id": custom_id,
            }
        ],
        "application_context": {
            "return_url": return_url,
            "cancel_url": cancel_url,
            "brand_name": "MeetBoard",
            "user_action": "PAY_NOW",
        },
    }

    try:
        async with httpx.AsyncClient(timeout=30.0) as http_client:
            response = await http_client.post(
                f"{PAYPAL_API_BASE}/v2/checkout/orders",
                headers={"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"},
                json=order_body,
            )
    except httpx.HTTPError as e:
        logger.error(f"❌ PayPal order request failed: {e}")
        raise PayPalServiceError("Unable to reach PayPal") from e

    order = _json_body(response)
    if response.status_code not in (200, 201) or not order.get("id"):
        logger.error(f"❌ PayPal order creation failed: {response.status_code} {response.text[:200]}")
        raise PayPalServiceError("Failed to create PayPal order")

    approval_url: Optional[str] = next(
        (link["href"] for link in order.get("links", []) if link.get("rel") in ("approve", "payer-action")),
        None,
    )
    logger.info(f"✅ PayPal order created: {order['id']}")
    return {"id": order["id"], "status": order.get("status"), "approvalUrl": approval_url}


async def capture_order(order_id: str) -> dict:
    access_token = await get_access_token()
    try:
        async with httpx.AsyncClient(timeout=30.0) as http_client:
            response = await http_client.post(
                f"{PAYPAL_API_BASE}/v2/checkout/orders/{order_id}/capture",
                headers={"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"},
            )
    except httpx.HTTPError as e:
        logger.error(f"❌ PayPal capture request failed: {e}")
        raise PayPalServiceError("Unable to reach PayPal") from e

    if response.status_code not in (200, 201):
        logger.error(f"❌ PayPal capture failed for {order_id}: {response.status_code} {response.text}")
        raise PayPalServiceError("Failed to capture PayPal order")
    result = _json_body(response)
    if not result:
        logger.error(f"❌ PayPal capture for {order_id} returned an unreadable body")
        raise PayPalServiceError("Failed to capture PayPal order")
    logger.info(f"💸 PayPal order {order_id} captured: {result.get('status')}")
    return result
