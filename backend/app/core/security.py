# app/core/security.py
"""
Security module for license keys and payment event authentication.
Handles license key generation/format checks and Stripe webhook signature verification.
"""
import json
import re
import secrets
from dataclasses import dataclass
from typing import Optional

import stripe

from app.core.errors import SignatureError

# 3 random bytes per segment -> 6 uppercase hex characters, 72 bits per key
KEY_SEGMENT_BYTES = 3
KEY_SEGMENTS = 3

LICENSE_KEY_RE = re.compile(r"^[A-Z0-9]+(?:-[0-9A-F]{6}){3}$")

CHECKOUT_COMPLETED = "checkout.session.completed"


def generate_license_key(prefix: str = "TLDR") -> str:
    """
    Generate a plaintext license key in the format TLDR-AB12CD-34EF56-7890AB.

    Each segment comes from ``secrets`` (CSPRNG). The store is not consulted:
    the unique constraint on ``licenses.key`` rejects the rare collision.

    Args:
        prefix: Leading segment identifying the product

    Returns:
        License key string
    """
    parts = [secrets.token_hex(KEY_SEGMENT_BYTES).upper() for _ in range(KEY_SEGMENTS)]
    return "-".join([prefix.upper(), *parts])


def is_well_formed_key(key: str) -> bool:
    """True if ``key`` has the PREFIX-XXXXXX-XXXXXX-XXXXXX shape."""
    return bool(key) and LICENSE_KEY_RE.match(key) is not None


@dataclass(frozen=True)
class VerifiedPaymentEvent:
    """
    A payment event whose signature has been checked.

    Only ``verify_stripe_signature`` builds these, so anything typed as a
    VerifiedPaymentEvent came through signature verification.
    """
    type: str
    transaction_reference: Optional[str]
    customer_email: Optional[str]
    event_id: Optional[str] = None

    @property
    def is_checkout_completed(self) -> bool:
        return self.type == CHECKOUT_COMPLETED


def _extract_email(session: dict) -> Optional[str]:
    details = session.get("customer_details") or {}
    email = details.get("email") if isinstance(details, dict) else None
    email = (email or session.get("customer_email") or "").strip().lower()
    return email or None


def verify_stripe_signature(
    payload: bytes | str,
    signature_header: Optional[str],
    secret: Optional[str],
    tolerance: Optional[int] = 300,
) -> VerifiedPaymentEvent:
    """
    Authenticate a raw Stripe webhook body and parse it.

    Args:
        payload: Raw request body exactly as received
        signature_header: Value of the ``Stripe-Signature`` header
        secret: Endpoint signing secret (whsec_...)
        tolerance: Maximum age of the signed timestamp in seconds

    Returns:
        VerifiedPaymentEvent

    Raises:
        SignatureError: Missing header/secret, bad signature, stale timestamp or unparseable body
    """
    if not secret:
        raise SignatureError("Webhook secret not configured")
    if not signature_header:
        raise SignatureError("Missing Stripe signature header")

    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SignatureError("Webhook body is not UTF-8") from e

    try:
        stripe.WebhookSignature.verify_header(payload, signature_header, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise SignatureError("Invalid Stripe signature") from e

    try:
        event = json.loads(payload)
    except ValueError as e:
        raise SignatureError("Webhook body is not valid JSON") from e
    if not isinstance(event, dict):
        raise SignatureError("Webhook body is not an event object")

    session = (event.get("data") or {}).get("object") or {}
    reference = (session.get("id") or "").strip() or None

    return VerifiedPaymentEvent(
        type=event.get("type", ""),
        transaction_reference=reference,
        customer_email=_extract_email(session),
        event_id=event.get("id"),
    )
