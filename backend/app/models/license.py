# app/models/license.py
"""
Database model for issued licenses.
One row per completed purchase; the key grants access to the summariser.
"""
import uuid
from tortoise import fields, models


class License(models.Model):
    """
    License database model.

    - key: Plain text license key (TLDR-XXXXXX-XXXXXX-XXXXXX), unique
    - email: Purchaser email from the payment event (may be null)
    - stripe_session_id: Checkout session id; unique so one purchase issues at most one key
    - active: False once revoked; verification treats inactive keys as unknown
    - created_at: Issuance time

    There is no update path apart from flipping ``active``.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    key = fields.CharField(max_length=64, unique=True, index=True)
    email = fields.CharField(max_length=256, null=True)
    stripe_session_id = fields.CharField(max_length=255, unique=True, index=True, null=True)
    active = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "licenses"

    @property
    def key_preview(self) -> str:
        """Masked key for logs and admin views, e.g. TLDR-******-******-3F9C0A."""
        return mask_license_key(self.key)


def mask_license_key(key: str) -> str:
    parts = (key or "").split("-")
    if len(parts) < 3:
        return "****"
    hidden = ["*" * len(p) for p in parts[1:-1]]
    return "-".join([parts[0], *hidden, parts[-1]])
