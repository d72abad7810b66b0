"""
Pytest configuration and shared test helpers.

No test talks to Supabase, Stripe or Resend: repositories are AsyncMocks,
the Stripe SDK is patched per call and HTTP goes through httpx.MockTransport.
"""
import os

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-test-key")

from types import SimpleNamespace  # noqa: E402
from typing import Any, List  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.auth import AuthenticatedUser  # noqa: E402
from app.main import app  # noqa: E402


class FakeQuery:
    """Records a Supabase query-builder chain and returns a canned response"""

    def __init__(self, table_name: str, data: Any = None, count: int = None):
        self.table_name = table_name
        self.calls: List[tuple] = []
        self.data = data if data is not None else []
        self.count = count

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return method

    def execute(self):
        self.calls.append(("execute", (), {}))
        return SimpleNamespace(data=self.data, count=self.count)

    def called(self, name: str) -> List[tuple]:
        return [(args, kwargs) for call_name, args, kwargs in self.calls if call_name == name]


class FakeSupabase:
    """Hands out one FakeQuery per table call"""

    def __init__(self, data: Any = None, count: int = None):
        self.data = data
        self.count = count
        self.queries: List[FakeQuery] = []

    def table(self, name: str) -> FakeQuery:
        query = FakeQuery(name, self.data, self.count)
        self.queries.append(query)
        return query

    @property
    def last(self) -> FakeQuery:
        return self.queries[-1]


def make_repos() -> MagicMock:
    """RepositoryFactory stand-in whose repositories have async methods"""
    repos = MagicMock()
    for name in ("tenants", "users", "subscriptions", "referral_codes", "referrals"):
        repo = getattr(repos, name)
        for method in (
            "find_by_id", "find_one", "find_by_filters", "create", "update", "upsert", "count",
            "find_by_stripe_customer_id", "link_stripe_customer", "find_by_auth_user_id",
            "find_active_for_tenant", "find_by_stripe_subscription_id", "upsert_from_stripe",
            "update_by_stripe_subscription_id", "find_by_code", "find_for_customer",
        ):
            setattr(repo, method, AsyncMock(return_value=None))
    return repos


@pytest.fixture(autouse=True)
def stripe_env(monkeypatch):
    """Test-mode Stripe with no price maps unless a test sets one"""
    monkeypatch.setenv("STRIPE_MODE", "test")
    for name in (
        "STRIPE_PRICE_MAP", "STRIPE_PRICE_MAP_TEST", "STRIPE_PRICE_MAP_LIVE",
        "STRIPE_SECRET_KEY", "STRIPE_SECRET_KEY_TEST", "STRIPE_SECRET_KEY_LIVE",
        "STRIPE_WEBHOOK_SECRET", "STRIPE_WEBHOOK_SECRET_TEST", "STRIPE_WEBHOOK_SECRET_LIVE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def client():
    """TestClient for the main app; dependency overrides are cleared afterwards"""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_user() -> AuthenticatedUser:
    return AuthenticatedUser(
        id="auth-user-1",
        email="chief@station9.org",
        user_metadata={},
        access_token="access-token-1",
    )


@pytest.fixture
def repos() -> MagicMock:
    return make_repos()


@pytest.fixture
def make_supabase():
    """Factory for FakeSupabase clients with a canned response"""
    return FakeSupabase
