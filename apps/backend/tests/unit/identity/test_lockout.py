"""
Name: Lockout Policy Tests

Responsibilities:
  - Validate lock threshold and lock window
  - Validate counter reset when a lock has expired
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.identity.lockout import LockoutPolicy

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def test_defaults_are_five_attempts_and_fifteen_minutes():
    policy = LockoutPolicy()
    assert policy.max_attempts == 5
    assert policy.lock_duration == timedelta(minutes=15)


def test_from_settings_reads_lockout_fields():
    settings = SimpleNamespace(lockout_max_attempts=3, lockout_duration_minutes=2)
    policy = LockoutPolicy.from_settings(settings)
    assert policy.max_attempts == 3
    assert policy.lock_duration == timedelta(minutes=2)


@pytest.mark.parametrize("max_attempts", [0, -1])
def test_rejects_non_positive_attempts(max_attempts):
    with pytest.raises(ValueError):
        LockoutPolicy(max_attempts=max_attempts)


def test_rejects_non_positive_duration():
    with pytest.raises(ValueError):
        LockoutPolicy(lock_duration=timedelta(0))


def test_is_locked_only_while_window_is_open():
    policy = LockoutPolicy()
    assert policy.is_locked(None, NOW) is False
    assert policy.is_locked(NOW + timedelta(seconds=1), NOW) is True
    assert policy.is_locked(NOW, NOW) is False
    assert policy.is_locked(NOW - timedelta(minutes=1), NOW) is False


def test_failures_below_threshold_only_increment():
    state = LockoutPolicy().next_failure(3, None, NOW)
    assert state.failed_login_count == 4
    assert state.locked_until is None


def test_fifth_failure_locks_for_fifteen_minutes():
    state = LockoutPolicy().next_failure(4, None, NOW)
    assert state.failed_login_count == 5
    assert state.locked_until == NOW + timedelta(minutes=15)


def test_failure_during_lock_does_not_extend_window():
    locked_until = NOW + timedelta(minutes=5)
    state = LockoutPolicy().next_failure(5, locked_until, NOW)
    assert state.failed_login_count == 6
    assert state.locked_until == locked_until


def test_failure_after_expired_lock_restarts_counter():
    state = LockoutPolicy().next_failure(5, NOW - timedelta(seconds=1), NOW)
    assert state.failed_login_count == 1
    assert state.locked_until is None


def test_single_attempt_policy_relocks_after_expiry():
    policy = LockoutPolicy(max_attempts=1)
    first = policy.next_failure(0, None, NOW)
    assert first.locked_until == NOW + timedelta(minutes=15)

    later = NOW + timedelta(minutes=20)
    state = policy.next_failure(first.failed_login_count, first.locked_until, later)
    assert state.failed_login_count == 1
    assert state.locked_until == later + timedelta(minutes=15)
