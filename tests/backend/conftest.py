import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from app.config import Settings
from app.core import db as db_module
from app.core.bootstrap import build_services
from app.core.security import generate_license_key
from app.main import app
from app.models.license import License


TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

WEBHOOK_SECRET = "whsec_test_secret"


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


class FakeRelay:
    """Stands in for OpenRouter; records every message list it receives."""

    name = "fake-relay"

    def __init__(self, reply: str = '{"headline": "h", "bullets": ["a", "b", "c"], "readTime": "1 min read"}'):
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[list[dict]] = []

    def is_available(self) -> bool:
        return True

    async def complete(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeNotifier:
    """Records deliveries; set ``fail`` to make every send raise."""

    def __init__(self):
        self.sent: list[tuple[str | None, str]] = []
        self.fail = False

    def is_available(self) -> bool:
        return True

    async def send_license_key(self, to_email, license_key):
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append((to_email, license_key))
        return True


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url=TEST_DB_URL,
        openrouter_api_key="or-test",
        stripe_secret_key="sk_test",
        stripe_webhook_secret=WEBHOOK_SECRET,
        resend_api_key=None,
        summary_max_chars=6000,
        license_key_prefix="TLDR",
    )


@pytest.fixture
def fake_relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def services(test_settings, fake_relay, fake_notifier):
    """Service bundle wired to fakes, installed on the app for the duration of a test."""
    original = app.state.services
    bundle = build_services(test_settings, relay=fake_relay, notifier=fake_notifier)
    app.state.services = bundle
    yield bundle
    app.state.services = original


@pytest_asyncio.fixture
async def db():
    """Fresh database without an HTTP client (service-level tests)."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(services):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    await _init_test_db()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await services.issuance.drain()
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_license():
    """
    Factory fixture to insert licenses directly via ORM.
    """

    async def _create_license(active: bool = True, email: str | None = "buyer@example.com", reference: str | None = None) -> License:
        return await License.create(
            key=generate_license_key(),
            email=email,
            stripe_session_id=reference,
            active=active,
        )

    return _create_license


