"""
Unit tests for services.issuance module.
Tests idempotent license issuance and best-effort delivery.
"""
import asyncio
import itertools

import pytest

from app.core.errors import PersistenceError, ValidationError
from app.core.security import CHECKOUT_COMPLETED, VerifiedPaymentEvent
from app.models.license import License
from app.services.issuance import IssuanceHandler
from app.services.license_verifier import LicenseVerifier
from app.services.record_store import RecordStore

pytestmark = pytest.mark.asyncio


def _event(reference="cs_test_1", email="buyer@example.com", event_type=CHECKOUT_COMPLETED):
    return VerifiedPaymentEvent(type=event_type, transaction_reference=reference, customer_email=email)


async def test_completed_payment_issues_active_license(db, services, fake_notifier):
    result = await services.issuance.on_payment_completed(_event())
    await services.issuance.drain()

    assert result.issued is True
    assert result.duplicate is False
    lic = await License.get(stripe_session_id="cs_test_1")
    assert lic.active is True
    assert lic.email == "buyer@example.com"
    assert lic.key.startswith("TLDR-")
    assert fake_notifier.sent == [("buyer@example.com", lic.key)]


async def test_redelivery_does_not_issue_twice(db, services, fake_notifier):
    first = await services.issuance.on_payment_completed(_event())
    second = await services.issuance.on_payment_completed(_event())
    await services.issuance.drain()

    assert first.issued is True
    assert second.issued is False
    assert second.duplicate is True
    assert second.license.key == first.license.key
    assert await License.filter(stripe_session_id="cs_test_1").count() == 1
    assert len(fake_notifier.sent) == 1


async def test_concurrent_redelivery_creates_one_license(db, services):
    results = await asyncio.gather(
        services.issuance.on_payment_completed(_event()),
        services.issuance.on_payment_completed(_event()),
        services.issuance.on_payment_completed(_event()),
    )
    await services.issuance.drain()

    assert sum(r.issued for r in results) == 1
    assert sum(r.duplicate for r in results) == 2
    assert await License.all().count() == 1


async def test_missing_email_still_issues(db, services, fake_notifier):
    result = await services.issuance.on_payment_completed(_event(email=None))
    await services.issuance.drain()

    assert result.issued is True
    assert result.license.email is None


async def test_delivery_failure_does_not_fail_issuance(db, services, fake_notifier):
    fake_notifier.fail = True

    result = await services.issuance.on_payment_completed(_event())
    await services.issuance.drain()

    assert result.issued is True
    verifier = LicenseVerifier(services.store)
    assert (await verifier.check(result.license.key)).valid is True


async def test_other_event_types_are_ignored(db, services):
    result = await services.issuance.on_payment_completed(_event(event_type="invoice.paid"))
    assert result.ignored is True
    assert await License.all().count() == 0


async def test_checkout_without_reference_is_rejected(db, services):
    with pytest.raises(ValidationError):
        await services.issuance.on_payment_completed(_event(reference=None))
    assert await License.all().count() == 0


async def test_key_collision_is_retried(db, fake_notifier, create_license):
    taken = await create_license(reference="cs_old")
    keys = itertools.chain([taken.key], ["TLDR-AAAAAA-BBBBBB-CCCCCC"])
    handler = IssuanceHandler(RecordStore(), fake_notifier, key_factory=lambda: next(keys))

    result = await handler.on_payment_completed(_event(reference="cs_new"))
    await handler.drain()

    assert result.issued is True
    assert result.license.key == "TLDR-AAAAAA-BBBBBB-CCCCCC"


async def test_persistent_collisions_raise_persistence_error(db, fake_notifier, create_license):
    taken = await create_license(reference="cs_old")
    handler = IssuanceHandler(RecordStore(), fake_notifier, key_factory=lambda: taken.key, max_key_attempts=3)

    with pytest.raises(PersistenceError):
        await handler.on_payment_completed(_event(reference="cs_new"))
    assert await License.all().count() == 1


async def test_store_failure_is_reported_for_retry(db, services, monkeypatch):
    async def broken_insert(key, email, reference):
        raise PersistenceError("connection reset")

    monkeypatch.setattr(services.store, "insert_license", broken_insert)

    with pytest.raises(PersistenceError):
        await services.issuance.on_payment_completed(_event())
