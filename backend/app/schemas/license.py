# app/schemas/license.py
"""
Pydantic schemas for license verification, payment webhooks and health.
"""
from pydantic import BaseModel
from typing import Dict

class VerifyOut(BaseModel):
    """
    Response model for license verification.
    Deliberately minimal: never says why a key is invalid.
    """
    valid: bool

class WebhookAck(BaseModel):
    """Acknowledgement returned to the payment event source."""
    received: bool = True
    issued: bool = False  # A new license was created for this event
    duplicate: bool = False  # Event was already handled earlier
    ignored: bool = False  # Event type does not trigger issuance

class HealthOut(BaseModel):
    """Service status; ``env`` reports which collaborators are configured, never their values."""
    status: str = "ok"
    service: str
    env: Dict[str, bool]
