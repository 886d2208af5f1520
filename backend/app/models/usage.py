# app/models/usage.py
from tortoise import fields, models


class UsageRecord(models.Model):
    """
    Append-only log of successful summarisations.

    ``license_key`` is the key value, not a foreign key: usage history is kept
    even after the license is deactivated.
    """
    id = fields.BigIntField(pk=True)
    license_key = fields.CharField(max_length=64, index=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "usage"
