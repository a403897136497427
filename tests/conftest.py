"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("AUTH_STORE_BACKEND", "memory")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
import pytest_asyncio
from eth_account import Account
from fastapi.testclient import TestClient

from tests.helpers import TEST_SECRET_KEY, ManualClock
from walletauth.services.auth import (
    InMemoryIdentityStore,
    InMemoryNonceStore,
    JWTSessionIssuer,
    SignMessageBuilder,
    WalletAuthService,
)


@pytest.fixture
def clock():
    """Manual clock starting at a fixed time."""
    return ManualClock()


@pytest.fixture
def account():
    """Fresh secp256k1 test account."""
    return Account.create()


@pytest.fixture
def other_account():
    """Second test account for mismatch cases."""
    return Account.create()


@pytest.fixture
def message_builder():
    """Message builder shared by issuance and verification."""
    return SignMessageBuilder(
        app_name="eduverify",
        statement="Sign this message to verify wallet ownership.",
    )


@pytest.fixture
def nonce_store():
    """In-memory nonce store."""
    return InMemoryNonceStore()


@pytest.fixture
def identity_store():
    """In-memory identity store."""
    return InMemoryIdentityStore()


@pytest.fixture
def session_issuer():
    """JWT session issuer on the wall clock (jose checks exp against it)."""
    return JWTSessionIssuer(secret_key=TEST_SECRET_KEY, access_token_expire_minutes=30)


@pytest.fixture
def wallet_auth(nonce_store, identity_store, session_issuer, message_builder, clock):
    """Wallet auth service on in-memory stores and a manual clock."""
    return WalletAuthService.from_components(
        nonce_store=nonce_store,
        identity_store=identity_store,
        session_issuer=session_issuer,
        message_builder=message_builder,
        nonce_ttl_seconds=300,
        clock=clock,
    )


@pytest.fixture
def app():
    """Create FastAPI application for testing."""
    from walletauth.main import create_app

    return create_app()


@pytest.fixture
def api_wallet_auth():
    """Wallet auth service used behind the HTTP API (wall clock)."""
    from walletauth.services.auth import get_session_issuer

    return WalletAuthService.from_components(
        nonce_store=InMemoryNonceStore(),
        identity_store=InMemoryIdentityStore(),
        session_issuer=get_session_issuer(),
        message_builder=SignMessageBuilder(
            app_name="eduverify",
            statement="Sign this message to verify wallet ownership.",
        ),
    )


@pytest.fixture
def client(app, api_wallet_auth):
    """Create test client with an isolated in-memory service."""
    from walletauth.services.auth import get_wallet_auth_service

    app.dependency_overrides[get_wallet_auth_service] = lambda: api_wallet_auth
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def settings():
    """Create settings instance for testing."""
    from walletauth.core.config import Settings

    return Settings(environment="testing")


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh SQLite database file."""
    from walletauth.infrastructure.database import (
        create_async_db_engine,
        create_session_factory,
        init_models,
    )

    engine = create_async_db_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'walletauth.db'}", echo=False
    )
    await init_models(engine)
    try:
        yield create_session_factory(engine)
    finally:
        await engine.dispose()
