"""
Services Module

Licensing and summarisation core plus adapters for external collaborators:
- Record store (Tortoise ORM)
- License verification and issuance
- AI relay (OpenRouter)
- License delivery email (Resend)
"""

from .record_store import RecordStore
from .license_verifier import (
    LicenseVerifier,
    VerificationResult,
    VerificationStatus,
)
from .ai_relay import OpenRouterRelay
from .notifier import EmailNotifier
from .issuance import IssuanceHandler, IssuanceResult
from .summariser import (
    SummarisationGateway,
    parse_summary,
    strip_code_fences,
)

__all__ = [
    "RecordStore",
    "LicenseVerifier",
    "VerificationResult",
    "VerificationStatus",
    "OpenRouterRelay",
    "EmailNotifier",
    "IssuanceHandler",
    "IssuanceResult",
    "SummarisationGateway",
    "parse_summary",
    "strip_code_fences",
]
