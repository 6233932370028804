"""
Name: Metrics Helpers Tests

Responsibilities:
  - Low-cardinality labels (ids collapsed, status buckets)
  - Login outcome counter only accepts known outcomes
"""

import pytest

from app.crosscutting.metrics import (
    REGISTRY,
    _normalize_endpoint,
    _status_bucket,
    record_account_lockout,
    record_login_attempt,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/api/admin/accounts/3f2b8c1e-9a4d-4c6b-8e2f-1a2b3c4d5e6f", "/api/admin/accounts/{id}"),
        ("/api/admin/accounts/3F2B8C1E-9A4D-4C6B-8E2F-1A2B3C4D5E6F/role", "/api/admin/accounts/{id}/role"),
        ("/vehicles/42", "/vehicles/{id}"),
        ("/login", "/login"),
    ],
)
def test_normalize_endpoint(path, expected):
    assert _normalize_endpoint(path) == expected


@pytest.mark.parametrize(
    "code, bucket", [(200, "2xx"), (303, "3xx"), (423, "4xx"), (503, "5xx"), (99, "other")]
)
def test_status_bucket(code, bucket):
    assert _status_bucket(code) == bucket


def test_login_attempt_counts_known_outcome():
    before = REGISTRY.get_sample_value("fleet_login_attempts_total", {"outcome": "locked"}) or 0

    record_login_attempt("locked")

    after = REGISTRY.get_sample_value("fleet_login_attempts_total", {"outcome": "locked"})
    assert after == before + 1


def test_login_attempt_rejects_unknown_outcome():
    with pytest.raises(ValueError, match="unknown login outcome"):
        record_login_attempt("maybe")


def test_lockout_counter_increments():
    before = REGISTRY.get_sample_value("fleet_account_lockouts_total") or 0
    record_account_lockout()
    assert REGISTRY.get_sample_value("fleet_account_lockouts_total") == before + 1
