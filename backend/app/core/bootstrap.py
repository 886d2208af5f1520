# app/core/bootstrap.py
"""
Bootstrap module for application initialization.
Builds the service graph once at startup and reports missing collaborator configuration.
"""
import logging
from dataclasses import dataclass
from functools import partial
from typing import Optional

from app.config import Settings
from app.core.security import generate_license_key
from app.services.ai_relay import OpenRouterRelay
from app.services.issuance import IssuanceHandler
from app.services.license_verifier import LicenseVerifier
from app.services.notifier import EmailNotifier
from app.services.record_store import RecordStore
from app.services.summariser import SummarisationGateway

logger = logging.getLogger("uvicorn.error")


@dataclass
class Services:
    """Collaborator handles shared by all requests (no per-request mutable state)."""
    settings: Settings
    store: RecordStore
    verifier: LicenseVerifier
    relay: OpenRouterRelay
    notifier: EmailNotifier
    issuance: IssuanceHandler
    gateway: SummarisationGateway


def build_services(
    settings: Settings,
    store: Optional[RecordStore] = None,
    relay: Optional[OpenRouterRelay] = None,
    notifier: Optional[EmailNotifier] = None,
) -> Services:
    """
    Construct every component with its collaborators injected.

    Args:
        settings: Application settings
        store / relay / notifier: Optional replacements (tests pass fakes here)

    Returns:
        Services bundle, stored on ``app.state.services``
    """
    store = store or RecordStore()
    relay = relay or OpenRouterRelay(settings)
    notifier = notifier or EmailNotifier(settings)
    verifier = LicenseVerifier(store)

    return Services(
        settings=settings,
        store=store,
        verifier=verifier,
        relay=relay,
        notifier=notifier,
        issuance=IssuanceHandler(
            store,
            notifier,
            key_factory=partial(generate_license_key, settings.license_key_prefix),
        ),
        gateway=SummarisationGateway(verifier, relay, store, max_chars=settings.summary_max_chars),
    )


def report_missing_configuration(settings: Settings) -> None:
    """Log one warning per collaborator whose configuration is absent. Never fatal."""
    for name, present in settings.collaborator_status().items():
        if not present:
            logger.warning("[bootstrap] %s is not configured; related endpoints will fail", name)
