"""Test configuration and shared fixtures"""

import os
import re
import sys
import traceback
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from cardvault.app import app
from cardvault.config import Config, get_config
from cardvault.db import DatabaseConnection
from cardvault.dependencies.services import get_profile_service, get_token_service
from cardvault.models.base import BaseModel
from cardvault.models.otp_challenge import OtpChannel
from cardvault.services.card import CardService
from cardvault.services.card_store import CardStore
from cardvault.services.dispatch import ChannelDispatcher, get_dispatcher
from cardvault.services.hashing import SecretHasher
from cardvault.services.locks import CardLocks
from cardvault.services.otp_ledger import OtpLedger
from cardvault.services.pin_throttle import PinThrottle
from cardvault.services.profile import ProfileService
from cardvault.services.secret_generator import SecretGenerator
from cardvault.services.token import TokenService
from fastapi import Depends
from fastapi.testclient import TestClient
from pydantic import BaseModel as PydanticModel
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

TEST_SECRET_KEY = "test-secret-key-0123456789abcdef0123456789"

_original_request = TestClient.request


def logging_request(self, *args, **kwargs):
    try:
        response = _original_request(self, *args, **kwargs)
    except Exception:
        # Print request details on exception
        print("\n=== Exception in TestClient.request ===")
        print("Request args:", args)
        print("Request kwargs:", kwargs)
        traceback.print_exc(file=sys.stdout)
        raise

    if response.status_code >= 400:
        req = response.request
        print("\n=== HTTP Error Response Captured ===")
        print(f"Method: {req.method} URL: {req.url}")
        print("Request Content:", req.content)
        print("Response Status:", response.status_code)
        print("Response Body:", response.text)
    return response


# Patch TestClient.request globally
TestClient.request = logging_request


class RecordingDispatcher(ChannelDispatcher):
    """Keeps every message instead of delivering it."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: list[tuple[OtpChannel, str, str]] = []

    def send(self, channel: OtpChannel, destination: str, message: str) -> bool:
        self.sent.append((channel, destination, message))
        return self.succeed

    @property
    def last_code(self) -> str:
        return re.search(r"code is (\d+)", self.sent[-1][2]).group(1)


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_test_config(**overrides) -> Config:
    params = dict(
        # overwrite application name so it will use another database file
        app_name=f"cardvault-test-{uuid.uuid4().hex[:8]}",
        secret_key=TEST_SECRET_KEY,
        database_url_env=None,
        # cheap hashing keeps the suite fast
        argon2_time_cost=1,
        argon2_memory_cost=1024,
        argon2_parallelism=1,
        otp_ttl_seconds=300,
        otp_max_attempts=5,
        pin_max_failures=5,
        pin_lockout_seconds=900,
        sweep_interval_seconds=0,
    )
    params.update(overrides)
    return Config(**params)


class ProfileSeedSchema(PydanticModel):
    email: str | None = None
    phone: str | None = None


_test_routes_registered = False


def _register_test_routes() -> None:
    """Private routes used only from tests: session tokens and profile contacts."""
    global _test_routes_registered
    if _test_routes_registered:
        return

    @app.get("/_test/tokens/{profile_id}", include_in_schema=False)
    def _generate_token(
        profile_id: str, token_service: TokenService = Depends(get_token_service)
    ) -> str:
        return token_service.generate_token(profile_id)

    @app.put("/_test/profiles/{profile_id}", include_in_schema=False)
    def _seed_profile(
        profile_id: str,
        seed: ProfileSeedSchema,
        profile_service: ProfileService = Depends(get_profile_service),
    ) -> dict:
        profile = profile_service.upsert(profile_id, email=seed.email, phone=seed.phone)
        return {"id": profile.id}

    _test_routes_registered = True


# each test class have it's own empty database
@pytest.fixture(scope="class")
def test_config():
    return make_test_config()


@pytest.fixture(scope="class")
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture(scope="class")
def test_app(test_config: Config, dispatcher: RecordingDispatcher):
    app.dependency_overrides = {
        get_config: lambda: test_config,
        get_dispatcher: lambda: dispatcher,
    }
    # trigger table creation
    DatabaseConnection(config=test_config)
    _register_test_routes()

    client = TestClient(app)
    yield client
    app.dependency_overrides = {}
    # clean up test database file after tests
    DatabaseConnection.dispose(test_config.database_url)
    if os.path.exists(test_config.database_path):
        os.remove(test_config.database_path)


# general fixture to get the session token of any profile
@pytest.fixture(scope="class")
def token_factory(test_app: TestClient):
    """Get session token of any profile by id"""

    def f(profile_id: str):
        r = test_app.get(f"/_test/tokens/{profile_id}")
        assert r.status_code == 200
        return r.json()

    return f


@pytest.fixture(scope="class")
def profile_factory(test_app: TestClient):
    """Store contact fields for a profile"""

    def f(profile_id: str, email: str | None = None, phone: str | None = None):
        r = test_app.put(
            f"/_test/profiles/{profile_id}", json={"email": email, "phone": phone}
        )
        assert r.status_code == 200
        return profile_id

    return f


# service level fixtures, in-memory database per test


@pytest.fixture
def unit_config():
    return make_test_config()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(bind=engine)
    session = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def secret_generator(unit_config: Config):
    return SecretGenerator.from_config(unit_config)


@pytest.fixture
def hasher(unit_config: Config):
    return SecretHasher.from_config(unit_config)


@pytest.fixture
def card_store(db_session, secret_generator, hasher, clock):
    return CardStore(
        db=db_session, secret_generator=secret_generator, hasher=hasher, clock=clock
    )


@pytest.fixture
def otp_ledger(db_session, secret_generator, hasher, clock):
    return OtpLedger(
        db=db_session, secret_generator=secret_generator, hasher=hasher, clock=clock
    )


@pytest.fixture
def profile_service(db_session):
    return ProfileService(db=db_session)


@pytest.fixture
def recording_dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def card_service(
    db_session,
    card_store,
    otp_ledger,
    profile_service,
    recording_dispatcher,
    unit_config,
):
    return CardService(
        db=db_session,
        card_store=card_store,
        otp_ledger=otp_ledger,
        profile_service=profile_service,
        dispatcher=recording_dispatcher,
        pin_throttle=PinThrottle(
            unit_config.pin_max_failures, unit_config.pin_lockout_seconds
        ),
        locks=CardLocks(),
        config=unit_config,
    )


@pytest.fixture(scope="session")
def config_factory():
    """Build a test configuration with some fields overridden"""
    return make_test_config
