"""
License Verifier

Answers "may this key be used right now?". Unknown, revoked and
store-failure cases all look the same to the caller (fail closed); only the
logs tell them apart.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from app.core.errors import PersistenceError
from app.core.security import is_well_formed_key
from app.models.license import License, mask_license_key
from app.services.record_store import RecordStore

logger = logging.getLogger("uvicorn.error")


class VerificationStatus(str, enum.Enum):
    VALID = "valid"
    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class VerificationResult:
    status: VerificationStatus
    license: Optional[License] = None

    @property
    def valid(self) -> bool:
        return self.status is VerificationStatus.VALID


class LicenseVerifier:
    """Side-effect-free lookup of active licenses."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def check(self, key: Optional[str]) -> VerificationResult:
        """
        Look up an active license and report why it did or did not match.

        Args:
            key: Key as entered by the user

        Returns:
            VerificationResult with status VALID, NOT_FOUND or STORE_ERROR
        """
        key = (key or "").strip()
        # Malformed input can never match an issued key; skip the round trip
        if not is_well_formed_key(key):
            return VerificationResult(VerificationStatus.NOT_FOUND)

        try:
            lic = await self.store.find_active_license(key)
        except PersistenceError as e:
            logger.error("[verify] store error while checking %s: %s", mask_license_key(key), e)
            return VerificationResult(VerificationStatus.STORE_ERROR)

        if lic is None:
            return VerificationResult(VerificationStatus.NOT_FOUND)
        return VerificationResult(VerificationStatus.VALID, lic)

    async def verify(self, key: Optional[str]) -> Optional[License]:
        """Return the active License for ``key`` or None."""
        result = await self.check(key)
        return result.license
