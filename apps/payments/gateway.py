"""
Cashfree-compatible payment gateway client

Without PAYMENT_GATEWAY_APP_ID/SECRET every order falls back to a
simulated checkout link that sends the customer straight to the
frontend callback page.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from urllib.parse import urlencode, urljoin

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = frozenset({"SUCCESS", "PAID", "confirmed"})


class PaymentError(Exception):
    """Raised when the gateway rejects a request or cannot be reached."""

    pass


@dataclass
class Customer:
    id: str
    name: str
    email: str
    phone: str


@dataclass
class CallbackPayload:
    """Normalized gateway or simulated callback."""
    order_id: str
    status: str
    reference_id: str
    mode: str

    @property
    def is_success(self) -> bool:
        return self.status in SUCCESS_STATUSES


def is_configured() -> bool:
    return bool(settings.PAYMENT_GATEWAY_APP_ID and settings.PAYMENT_GATEWAY_SECRET)


def build_order_id(booking_id) -> str:
    """``ORD`` + first 8 chars of the booking id + last 6 digits of a ms timestamp."""
    return f"ORD{str(booking_id)[:8]}{str(int(time.time() * 1000))[-6:]}"


def simulated_payment_link(origin: str, booking_id) -> str:
    query = urlencode({"bookingId": str(booking_id), "status": "SUCCESS", "simulated": "true"})
    return f"{origin.rstrip('/')}/payment-callback?{query}"


def create_order(
    *,
    order_id: str,
    amount: Decimal,
    currency: str,
    customer: Customer,
    return_url: str,
    note: str = "",
) -> dict:
    """
    Create an order on the gateway

    Returns:
        dict: {"order_id", "payment_link", "cf_order_id"}

    Raises:
        PaymentError: gateway not configured, unreachable or rejected the order
    """
    if not is_configured():
        raise PaymentError("Payment gateway credentials are not configured")

    payload = {
        "order_id": order_id,
        "order_amount": float(amount),
        "order_currency": currency,
        "customer_details": {
            "customer_id": customer.id,
            "customer_name": customer.name,
            "customer_email": customer.email or "customer@example.com",
            "customer_phone": customer.phone or "9999999999",
        },
        "order_meta": {"return_url": return_url, "notify_url": None},
        "order_note": note,
    }
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "x-client-id": settings.PAYMENT_GATEWAY_APP_ID,
        "x-client-secret": settings.PAYMENT_GATEWAY_SECRET,
        "x-api-version": settings.PAYMENT_GATEWAY_API_VERSION,
    }

    try:
        response = requests.post(
            urljoin(settings.PAYMENT_GATEWAY_BASE_URL, "orders"),
            json=payload,
            headers=headers,
            timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
        )
        response.raise_for_status()
        result = response.json()
    except requests.RequestException as e:
        logger.error(f"Gateway order {order_id} failed: {e}")
        raise PaymentError(f"Gateway request failed: {e}") from e
    except ValueError as e:
        raise PaymentError("Gateway returned an invalid response") from e

    logger.info(f"Gateway order created: {order_id}")
    return {
        "order_id": result.get("order_id", order_id),
        "payment_link": result.get("payment_link", ""),
        "cf_order_id": result.get("cf_order_id"),
    }


def parse_callback(payload: dict) -> CallbackPayload:
    """
    Accept both callback shapes

    Simulated: orderId, status, referenceId, paymentMode
    Gateway:   order_id, order_status | txStatus, cf_payment_id | transaction_id, payment_method

    Raises:
        PaymentError: neither shape, or the order id is empty
    """
    if not isinstance(payload, dict):
        raise PaymentError("Invalid webhook payload")

    if "orderId" in payload:
        order_id = payload.get("orderId")
        status = payload.get("status")
        reference_id = payload.get("referenceId") or f"REF_{int(time.time() * 1000)}"
        mode = payload.get("paymentMode") or "SIMULATED"
    elif "order_id" in payload:
        order_id = payload.get("order_id")
        status = payload.get("order_status") or payload.get("txStatus")
        reference_id = payload.get("cf_payment_id") or payload.get("transaction_id") or ""
        mode = payload.get("payment_method") or "CASHFREE"
    else:
        raise PaymentError("Invalid webhook payload")

    if not order_id:
        raise PaymentError("Missing order ID in payload")

    return CallbackPayload(
        order_id=str(order_id),
        status=str(status or ""),
        reference_id=str(reference_id),
        mode=str(mode),
    )


def sign(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: str | None) -> bool | None:
    """
    HMAC-SHA256 (hex) of the raw body with PAYMENT_WEBHOOK_SECRET

    Returns None when no secret is configured (nothing to verify).
    """
    secret = settings.PAYMENT_WEBHOOK_SECRET
    if not secret:
        return None
    if not signature:
        return False
    return hmac.compare_digest(sign(body, secret), signature.strip())
