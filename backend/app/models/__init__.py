# app/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- License: Issued license key, one per completed purchase
- UsageRecord: One row per successful summarisation
"""
from .license import License, mask_license_key
from .usage import UsageRecord
