"""
Record Store

Thin async adapter over the Tortoise models. Callers only ever see
PersistenceError / DuplicateRecordError, never ORM or driver exceptions.
"""
from typing import Optional

import asyncpg
from tortoise.exceptions import BaseORMException, IntegrityError

from app.core.errors import DuplicateRecordError, PersistenceError
from app.models.license import License
from app.models.usage import UsageRecord

# Tortoise only translates query-level failures; lost or refused connections
# surface as raw driver / socket errors
STORE_ERRORS = (
    BaseORMException,
    OSError,
    asyncpg.exceptions.PostgresError,
    asyncpg.exceptions.InterfaceError,
)


class RecordStore:
    """Keyed access to the ``licenses`` and ``usage`` tables."""

    async def find_active_license(self, key: str) -> Optional[License]:
        """Exactly one row where key matches AND active is true, else None."""
        try:
            return await License.get_or_none(key=key, active=True)
        except STORE_ERRORS as e:
            raise PersistenceError(f"license lookup failed: {e!r}") from e

    async def find_license_by_reference(self, reference: str) -> Optional[License]:
        try:
            return await License.filter(stripe_session_id=reference).first()
        except STORE_ERRORS as e:
            raise PersistenceError(f"license lookup by reference failed: {e!r}") from e

    async def insert_license(self, key: str, email: Optional[str], reference: Optional[str]) -> License:
        """
        Insert a new active license.

        Raises:
            DuplicateRecordError: key or payment reference already present (never overwrites)
            PersistenceError: any other store failure
        """
        try:
            return await License.create(
                key=key,
                email=email,
                stripe_session_id=reference,
                active=True,
            )
        except IntegrityError as e:
            raise DuplicateRecordError(str(e)) from e
        except STORE_ERRORS as e:
            raise PersistenceError(f"license insert failed: {e!r}") from e

    async def insert_usage(self, license_key: str) -> UsageRecord:
        try:
            return await UsageRecord.create(license_key=license_key)
        except STORE_ERRORS as e:
            raise PersistenceError(f"usage insert failed: {e!r}") from e

    async def set_license_active(self, key: str, active: bool) -> bool:
        """Revoke or reinstate a license. Returns False if the key does not exist."""
        try:
            updated = await License.filter(key=key).update(active=active)
        except STORE_ERRORS as e:
            raise PersistenceError(f"license update failed: {e!r}") from e
        return updated > 0
