"""
Issuance Handler

Turns a verified checkout-completed event into exactly one License.

Payment providers deliver events at least once, so issuance is idempotent per
transaction reference: a redelivered event finds the existing license and is
acknowledged without creating another. Two deliveries racing past the lookup
are settled by the unique constraint on ``licenses.stripe_session_id``.

Delivery of the key (email) runs detached; its failure is logged and never
changes the issuance outcome.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Set

from app.core.errors import DuplicateEvent, DuplicateRecordError, PersistenceError, ValidationError
from app.core.security import VerifiedPaymentEvent, generate_license_key
from app.models.license import License
from app.services.notifier import EmailNotifier
from app.services.record_store import RecordStore

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class IssuanceResult:
    """Outcome reported back to the payment event source."""
    license: Optional[License]
    issued: bool = False
    duplicate: bool = False
    ignored: bool = False


class IssuanceHandler:
    """Creates licenses for completed payments and dispatches their delivery."""

    def __init__(
        self,
        store: RecordStore,
        notifier: EmailNotifier,
        key_factory: Callable[[], str] = generate_license_key,
        max_key_attempts: int = 10,
    ):
        self.store = store
        self.notifier = notifier
        self.key_factory = key_factory
        self.max_key_attempts = max_key_attempts
        self._deliveries: Set[asyncio.Task] = set()

    async def on_payment_completed(self, event: VerifiedPaymentEvent) -> IssuanceResult:
        """
        Handle one verified payment event.

        Args:
            event: Event that already passed signature verification

        Returns:
            IssuanceResult: issued (new license), duplicate (already handled) or ignored (other event type)

        Raises:
            ValidationError: Checkout event without a transaction reference
            PersistenceError: Store failure; the event source should retry
        """
        if not event.is_checkout_completed:
            return IssuanceResult(license=None, ignored=True)

        reference = event.transaction_reference
        if not reference:
            raise ValidationError("Missing checkout session id")

        try:
            lic = await self._issue(reference, event.customer_email)
        except DuplicateEvent:
            existing = await self.store.find_license_by_reference(reference)
            logger.info("[issuance] Session %s already has license %s, skipping",
                        reference, existing.key_preview if existing else "?")
            return IssuanceResult(license=existing, duplicate=True)

        logger.info("[issuance] New license %s for %s (session %s)",
                    lic.key_preview, lic.email or "<no email>", reference)
        self._dispatch_delivery(lic)
        return IssuanceResult(license=lic, issued=True)

    async def _issue(self, reference: str, email: Optional[str]) -> License:
        if await self.store.find_license_by_reference(reference):
            raise DuplicateEvent()

        for _ in range(self.max_key_attempts):
            key = self.key_factory()
            try:
                return await self.store.insert_license(key=key, email=email, reference=reference)
            except DuplicateRecordError:
                # Either a concurrent delivery won the reference, or the key collided
                if await self.store.find_license_by_reference(reference):
                    raise DuplicateEvent()
                logger.warning("[issuance] License key collision, regenerating")

        raise PersistenceError("Could not generate a unique license key")

    def _dispatch_delivery(self, lic: License) -> None:
        task = asyncio.create_task(self._deliver(lic))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)

    async def _deliver(self, lic: License) -> None:
        try:
            await self.notifier.send_license_key(lic.email, lic.key)
        except Exception:
            # License is already valid; delivery failure is an operational signal only
            logger.exception("[issuance] License email for %s failed", lic.key_preview)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown, tests)."""
        if self._deliveries:
            await asyncio.gather(*list(self._deliveries))
