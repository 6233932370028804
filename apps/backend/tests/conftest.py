"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (no .env, APP_ENV=test, in-memory store)
  - Provide a mutable clock for lockout / token expiry tests
  - Build an AppContainer with in-memory repositories
  - Provide a TestClient over create_app(container=...)

Notes:
  - Argon2 runs with cheap parameters to keep the suite fast
  - Use @pytest.fixture(scope="function") for per-test isolation
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("ACCOUNT_STORE", "memory")

from app.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from argon2 import PasswordHasher  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.api.main import create_app  # noqa: E402
from app.container import AppContainer, build_container  # noqa: E402
from app.crosscutting.config import Settings  # noqa: E402
from app.identity.accounts import Account, AccountRole  # noqa: E402
from app.identity.passwords import PasswordVerifier  # noqa: E402

TEST_PASSWORD = "correct-horse-1"


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


class MutableClock:
    """Reloj inyectable: tests avanzan el tiempo con advance()."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# ============================================================================
# Core fixtures
# ============================================================================


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def verifier() -> PasswordVerifier:
    return PasswordVerifier(
        PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="test",
        account_store="memory",
        jwt_secret="test-secret",
        allowed_origins="http://localhost:3000",
    )


@pytest.fixture
def container(settings, clock, verifier) -> AppContainer:
    return build_container(settings, clock=clock, verifier=verifier)


@pytest.fixture
def client(container) -> TestClient:
    return TestClient(create_app(container=container))


# ============================================================================
# Account factories
# ============================================================================


@pytest.fixture
def make_account(container):
    """Crea cuentas directo en el store (password conocido)."""

    def _make(
        email: str = "dispatcher@fleet.test",
        *,
        role: AccountRole = AccountRole.DISPATCHER,
        password: str = TEST_PASSWORD,
        is_active: bool = True,
    ) -> Account:
        return container.accounts.create_account(
            email=email,
            password_hash=container.verifier.hash(password),
            role=role,
            first_name="Erika",
            last_name="Muster",
            is_active=is_active,
        )

    return _make


@pytest.fixture
def login(client):
    """POST /login y devuelve la respuesta (cookies quedan en el client)."""

    def _login(email: str, password: str = TEST_PASSWORD):
        return client.post("/login", json={"email": email, "password": password})

    return _login


@pytest.fixture
def account_password() -> str:
    return TEST_PASSWORD
