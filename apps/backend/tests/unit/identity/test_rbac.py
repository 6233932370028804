"""
Name: Role Gate Tests

Responsibilities:
  - authorize(): allow-list semantics, deny by default
  - require_roles(): 401 without session, 403 without leaking roles
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from app.api.exception_handlers import register_exception_handlers
from app.identity.accounts import AccountRole
from app.identity.rbac import FORBIDDEN_MESSAGE, authorize, require_roles
from app.identity.session import SessionContext

pytestmark = pytest.mark.unit


def test_authorize_allows_listed_role():
    assert authorize(AccountRole.ADMIN, [AccountRole.ADMIN, AccountRole.MANAGER])
    assert authorize("manager", [AccountRole.ADMIN, AccountRole.MANAGER])


def test_authorize_denies_unlisted_unknown_and_missing_roles():
    allowed = [AccountRole.ADMIN]
    assert authorize(AccountRole.DRIVER, allowed) is False
    assert authorize("root", allowed) is False
    assert authorize(None, allowed) is False


def test_empty_allow_list_denies_everyone():
    assert authorize(AccountRole.ADMIN, []) is False


def _build_app(role: AccountRole | None) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.middleware("http")
    async def _inject_session(request: Request, call_next):
        request.state.session = (
            None
            if role is None
            else SessionContext(
                account_id=uuid4(),
                email="someone@fleet.test",
                role=role,
                expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
            )
        )
        return await call_next(request)

    @app.get("/fleet")
    def fleet(
        session: SessionContext = Depends(
            require_roles(AccountRole.ADMIN, AccountRole.DISPATCHER)
        ),
    ):
        return {"role": session.role.value}

    return app


def test_require_roles_passes_allowed_role():
    res = TestClient(_build_app(AccountRole.DISPATCHER)).get("/fleet")
    assert res.status_code == 200
    assert res.json() == {"role": "dispatcher"}


def test_require_roles_forbids_without_leaking_allow_list():
    res = TestClient(_build_app(AccountRole.DRIVER)).get("/fleet")

    assert res.status_code == 403
    body = res.json()
    assert body["code"] == "FORBIDDEN"
    assert body["detail"] == FORBIDDEN_MESSAGE
    for role in ("admin", "dispatcher"):
        assert role not in res.text


def test_require_roles_without_session_is_401():
    res = TestClient(_build_app(None)).get("/fleet")
    assert res.status_code == 401
    assert res.headers["content-type"].startswith("application/problem+json")
