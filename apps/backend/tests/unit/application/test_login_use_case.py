"""
Name: Login Use Case Tests

Responsibilities:
  - Evaluation order: missing fields, unknown, locked, inactive, mismatch
  - Lockout after 5 mismatches; lock expiry; counter reset on success
  - A correct password verified while concurrent failures lock the account is refused
"""

import threading
from datetime import timedelta

import pytest

from app.application.usecases.auth import LoginInput, LoginUseCase
from app.crosscutting.exceptions import (
    AccountInactiveError,
    AccountLockedError,
    AuthenticationError,
    ValidationError,
)
from app.identity.accounts import AccountRole
from app.identity.lockout import LockoutPolicy

pytestmark = pytest.mark.unit

EMAIL = "dispatcher@fleet.test"


@pytest.fixture
def use_case(container):
    return container.login_use_case()


def _fail(use_case, times: int, email: str = EMAIL) -> None:
    for _ in range(times):
        with pytest.raises(AuthenticationError):
            use_case.execute(LoginInput(email=email, password="wrong-password"))


@pytest.mark.parametrize("email, password", [("", "x"), (EMAIL, ""), ("  ", "")])
def test_missing_fields_are_validation_errors(use_case, email, password):
    with pytest.raises(ValidationError):
        use_case.execute(LoginInput(email=email, password=password))


def test_success_returns_tokens_and_updates_login_state(
    use_case, make_account, container, clock, account_password
):
    account = make_account(EMAIL)

    result = use_case.execute(
        LoginInput(email="  Dispatcher@Fleet.TEST ", password=account_password)
    )

    assert result.account.id == account.id
    assert result.account.last_login_at == clock()
    assert container.issuer.decode_access(result.access.token).role is AccountRole.DISPATCHER
    assert container.issuer.decode_refresh(result.refresh.token).token_version == 0


def test_unknown_email_is_401(use_case):
    with pytest.raises(AuthenticationError):
        use_case.execute(LoginInput(email="nobody@fleet.test", password="whatever-1"))


def test_mismatch_increments_counter(use_case, make_account, container):
    account = make_account(EMAIL)
    _fail(use_case, 2)

    stored = container.accounts.get_account_by_id(account.id)
    assert stored.failed_login_count == 2
    assert stored.locked_until is None


def test_five_failures_lock_even_correct_password(
    use_case, make_account, container, clock, account_password
):
    account = make_account(EMAIL)
    _fail(use_case, 5)

    stored = container.accounts.get_account_by_id(account.id)
    assert stored.failed_login_count == 5
    assert stored.locked_until == clock() + timedelta(minutes=15)

    with pytest.raises(AccountLockedError) as exc_info:
        use_case.execute(LoginInput(email=EMAIL, password=account_password))
    assert exc_info.value.status_code == 423


def test_locked_attempts_do_not_touch_counter(use_case, make_account, container):
    account = make_account(EMAIL)
    _fail(use_case, 5)

    with pytest.raises(AccountLockedError):
        use_case.execute(LoginInput(email=EMAIL, password="wrong-password"))

    assert container.accounts.get_account_by_id(account.id).failed_login_count == 5


def test_login_succeeds_after_lock_expires_and_resets_state(
    use_case, make_account, container, clock, account_password
):
    account = make_account(EMAIL)
    _fail(use_case, 5)

    clock.advance(minutes=15)
    result = use_case.execute(LoginInput(email=EMAIL, password=account_password))

    assert result.account.failed_login_count == 0
    assert result.account.locked_until is None
    stored = container.accounts.get_account_by_id(account.id)
    assert stored.failed_login_count == 0
    assert stored.locked_until is None


def test_mismatch_after_expired_lock_restarts_count(use_case, make_account, container, clock):
    account = make_account(EMAIL)
    _fail(use_case, 5)

    clock.advance(minutes=16)
    _fail(use_case, 1)

    stored = container.accounts.get_account_by_id(account.id)
    assert stored.failed_login_count == 1
    assert stored.locked_until is None


def test_inactive_account_is_403_and_counter_untouched(use_case, make_account, container):
    account = make_account(EMAIL, is_active=False)

    with pytest.raises(AccountInactiveError):
        use_case.execute(LoginInput(email=EMAIL, password="wrong-password"))

    assert container.accounts.get_account_by_id(account.id).failed_login_count == 0


def test_success_clears_previous_failures(use_case, make_account, container, account_password):
    account = make_account(EMAIL)
    _fail(use_case, 3)

    use_case.execute(LoginInput(email=EMAIL, password=account_password))

    assert container.accounts.get_account_by_id(account.id).failed_login_count == 0


class _GatedVerifier:
    """Bloquea la verificación del password correcto hasta que el test la libere."""

    def __init__(self, inner, password: str):
        self._inner = inner
        self._password = password
        self.entered = threading.Event()
        self.release = threading.Event()

    def hash(self, plaintext: str) -> str:
        return self._inner.hash(plaintext)

    def verify(self, plaintext: str, password_hash: str) -> bool:
        if plaintext == self._password:
            self.entered.set()
            assert self.release.wait(timeout=5)
        return self._inner.verify(plaintext, password_hash)


def test_correct_password_racing_lockout_is_refused(
    make_account, container, clock, account_password
):
    account = make_account(EMAIL)
    gated = _GatedVerifier(container.verifier, account_password)
    use_case = LoginUseCase(
        container.accounts,
        verifier=gated,
        issuer=container.issuer,
        policy=container.policy,
        clock=clock,
    )
    outcome = {}

    def _correct_attempt():
        try:
            outcome["result"] = use_case.execute(
                LoginInput(email=EMAIL, password=account_password)
            )
        except AccountLockedError as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=_correct_attempt)
    worker.start()
    assert gated.entered.wait(timeout=5)

    # el intento correcto ya pasó el chequeo de lock; los fallos llegan antes
    _fail(use_case, 5)
    gated.release.set()
    worker.join(timeout=5)

    assert "result" not in outcome
    assert outcome["error"].locked_until == clock() + timedelta(minutes=15)
    stored = container.accounts.get_account_by_id(account.id)
    assert stored.failed_login_count == 5
    assert stored.locked_until == clock() + timedelta(minutes=15)
    assert stored.last_login_at is None


def test_single_attempt_policy_locks_again_after_expiry(
    make_account, container, clock, account_password
):
    make_account(EMAIL)
    strict = LoginUseCase(
        container.accounts,
        verifier=container.verifier,
        issuer=container.issuer,
        policy=LockoutPolicy(max_attempts=1),
        clock=clock,
    )

    _fail(strict, 1)
    clock.advance(minutes=20)
    _fail(strict, 1)

    with pytest.raises(AccountLockedError):
        strict.execute(LoginInput(email=EMAIL, password=account_password))
