"""
Name: Token Issuer Tests

Responsibilities:
  - Validate access/refresh claims and TTLs (1 day / 30 days)
  - Reject foreign signatures, expired tokens and wrong token types
"""

from datetime import timedelta
from uuid import uuid4

import jwt
import pytest

from app.crosscutting.exceptions import AuthenticationError
from app.identity.accounts import Account, AccountRole
from app.identity.tokens import TokenIssuer

pytestmark = pytest.mark.unit


def _account(**overrides) -> Account:
    data = dict(
        id=uuid4(),
        email="driver@fleet.test",
        password_hash="x",
        role=AccountRole.DRIVER,
        token_version=2,
    )
    data.update(overrides)
    return Account(**data)


@pytest.fixture
def issuer(clock) -> TokenIssuer:
    return TokenIssuer("test-secret", clock=clock)


def test_empty_secret_is_rejected():
    with pytest.raises(ValueError):
        TokenIssuer("  ")


def test_access_token_round_trip(issuer, clock):
    account = _account()
    issued = issuer.issue(account)

    assert issued.expires_in == 24 * 60 * 60
    assert issued.expires_at == clock() + timedelta(days=1)

    claims = issuer.decode_access(issued.token)
    assert claims.account_id == account.id
    assert claims.email == account.email
    assert claims.role is AccountRole.DRIVER
    assert claims.expires_at == issued.expires_at


def test_refresh_token_carries_version(issuer):
    account = _account()
    issued = issuer.issue_refresh(account)

    assert issued.expires_in == 30 * 24 * 60 * 60
    claims = issuer.decode_refresh(issued.token)
    assert claims.account_id == account.id
    assert claims.token_version == 2


def test_token_signed_with_other_secret_is_invalid(issuer, clock):
    foreign = TokenIssuer("other-secret", clock=clock).issue(_account())
    with pytest.raises(AuthenticationError, match="inválido"):
        issuer.decode_access(foreign.token)


def test_expired_token_is_rejected(issuer, clock):
    issued = issuer.issue(_account())
    clock.advance(days=1)
    with pytest.raises(AuthenticationError, match="expirado"):
        issuer.decode_access(issued.token)


def test_refresh_token_cannot_be_used_as_access(issuer):
    refresh = issuer.issue_refresh(_account())
    with pytest.raises(AuthenticationError):
        issuer.decode_access(refresh.token)


def test_access_token_cannot_be_used_as_refresh(issuer):
    access = issuer.issue(_account())
    with pytest.raises(AuthenticationError):
        issuer.decode_refresh(access.token)


def test_unknown_role_claim_is_invalid(issuer, clock):
    token = jwt.encode(
        {
            "sub": str(uuid4()),
            "email": "x@fleet.test",
            "role": "superuser",
            "typ": "access",
            "exp": int((clock() + timedelta(hours=1)).timestamp()),
        },
        "test-secret",
        algorithm="HS256",
    )
    with pytest.raises(AuthenticationError, match="inválido"):
        issuer.decode_access(token)


def test_missing_token_is_rejected(issuer):
    with pytest.raises(AuthenticationError):
        issuer.decode_access("")
