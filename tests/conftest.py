"""Pytest configuration and fixtures."""

import hashlib
import hmac
import itertools
import os
import time
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_stripe_secret_key")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_webhook_secret")
os.environ.setdefault("STRIPE_PUBLISHABLE_KEY", "pk_test_stripe_publishable_key")
os.environ.setdefault("ADMIN_PASSWORD", "test-admin-password")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("CLIENT_URL", "http://localhost:5173")

TEST_ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
TEST_WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]


def _clear_caches() -> None:
    from storefront.core.config import get_settings
    from storefront.core.database import reset_engine
    from storefront.services.auth_service import get_admin_password_hash
    from storefront.services.settings_service import invalidate_credentials_cache

    get_settings.cache_clear()
    reset_engine()
    invalidate_credentials_cache()
    get_admin_password_hash.cache_clear()


@pytest.fixture(autouse=True)
def test_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[str, None, None]:
    """Point the application at a fresh SQLite file with seeded packages.

    Yields:
        str: The database URL in use.
    """
    from storefront.core.database import init_db
    from storefront.services.catalog_service import seed_default_packages

    url = f"sqlite:///{tmp_path / 'orders.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setattr("storefront.core.rate_limiter._rate_limiter", None)
    _clear_caches()

    init_db()
    seed_default_packages()

    yield url

    _clear_caches()


@pytest.fixture
def reload_settings() -> Callable[[], None]:
    """Provide a function that re-reads settings after env changes."""
    return _clear_caches


@pytest.fixture
def mock_stripe() -> Generator[MagicMock, None, None]:
    """Provide a mocked Stripe module for the payment gateway.

    Each created session gets a unique id. Retrieved sessions are unpaid
    unless a test reconfigures them.

    Yields:
        MagicMock: Mocked stripe module.
    """
    mock = MagicMock()
    counter = itertools.count(1)

    def create_session(**kwargs: Any) -> MagicMock:
        n = next(counter)
        session = MagicMock()
        session.id = f"cs_test_{n}"
        session.url = f"https://checkout.stripe.com/c/pay/cs_test_{n}"
        return session

    mock.checkout.Session.create.side_effect = create_session

    retrieved = MagicMock()
    retrieved.payment_status = "unpaid"
    retrieved.payment_intent = None
    mock.checkout.Session.retrieve.return_value = retrieved

    with patch("storefront.services.payment_gateway.get_stripe", return_value=mock):
        yield mock


@pytest.fixture
def sign_webhook() -> Callable[..., str]:
    """Provide a function building a Stripe-Signature header for a payload."""

    def _sign(payload: bytes, secret: str = TEST_WEBHOOK_SECRET, timestamp: int | None = None) -> str:
        ts = int(time.time()) if timestamp is None else timestamp
        signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
        signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
        return f"t={ts},v1={signature}"

    return _sign


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Yields:
        TestClient: FastAPI test client.
    """
    from storefront.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Provide an Authorization header carrying a valid admin token."""
    from storefront.api.middleware.auth import encode_admin_token

    token, _ = encode_admin_token()
    return {"Authorization": f"Bearer {token}"}
