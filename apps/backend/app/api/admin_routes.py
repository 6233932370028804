"""
===============================================================================
TARJETA CRC — app/api/admin_routes.py (Administración de Cuentas)
===============================================================================
Responsabilidades:
  - Exponer endpoints administrativos de cuentas bajo /api/admin/accounts.
  - Aplicar el Role Gate por endpoint (cada uno enumera sus roles).
  - Reset de password: además sube token_version (invalida refresh tokens).

Patrones aplicados:
  - Thin Controller: delega en AccountRepository / PasswordVerifier.
  - Errores tipados (NotFoundError, ConflictError) -> RFC7807.

Colaboradores:
  - identity.rbac.require_roles
  - domain.repositories.AccountRepository
  - identity.passwords.PasswordVerifier
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..crosscutting.exceptions import NotFoundError
from ..crosscutting.logger import logger
from ..domain.repositories import AccountRepository
from ..identity.accounts import Account, AccountRole
from ..identity.passwords import PasswordVerifier
from ..identity.rbac import require_roles
from ..identity.session import SessionContext
from .dependencies import get_account_repository, get_password_verifier
from .schemas import AccountResponse, EmailModel, to_account_response

router = APIRouter(
    prefix="/api/admin/accounts",
    tags=["admin"],
    responses=OPENAPI_ERROR_RESPONSES,
)

_can_read = require_roles(AccountRole.ADMIN, AccountRole.MANAGER)
_can_write = require_roles(AccountRole.ADMIN)


# -----------------------------------------------------------------------------
# DTOs
# -----------------------------------------------------------------------------
class CreateAccountRequest(EmailModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=8, max_length=512)
    role: AccountRole = AccountRole.DISPATCHER
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    phone: str = Field(default="", max_length=50)
    is_active: bool = True


class UpdateRoleRequest(BaseModel):
    role: AccountRole


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=8, max_length=512)


def _found(account: Account | None, account_id: UUID) -> Account:
    if account is None:
        raise NotFoundError(f"Cuenta '{account_id}' no encontrada")
    return account


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------
@router.get("", response_model=list[AccountResponse])
def list_accounts(
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    _session: SessionContext = Depends(_can_read),
    accounts: AccountRepository = Depends(get_account_repository),
):
    return [to_account_response(a) for a in accounts.list_accounts(limit=limit, offset=offset)]


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: UUID,
    _session: SessionContext = Depends(_can_read),
    accounts: AccountRepository = Depends(get_account_repository),
):
    return to_account_response(_found(accounts.get_account_by_id(account_id), account_id))


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    req: CreateAccountRequest,
    session: SessionContext = Depends(_can_write),
    accounts: AccountRepository = Depends(get_account_repository),
    verifier: PasswordVerifier = Depends(get_password_verifier),
):
    """Crea una cuenta (staff o cliente). Email duplicado -> 400 CONFLICT."""
    account = accounts.create_account(
        email=req.email,
        password_hash=verifier.hash(req.password),
        role=req.role,
        first_name=req.first_name,
        last_name=req.last_name,
        phone=req.phone,
        is_active=req.is_active,
    )
    logger.info(
        "Admin created account",
        extra={
            "actor_id": str(session.account_id),
            "account_id": str(account.id),
            "role": account.role.value,
        },
    )
    return to_account_response(account)


@router.patch("/{account_id}/role", response_model=AccountResponse)
def update_role(
    account_id: UUID,
    req: UpdateRoleRequest,
    session: SessionContext = Depends(_can_write),
    accounts: AccountRepository = Depends(get_account_repository),
):
    account = _found(accounts.update_account(account_id, role=req.role), account_id)
    logger.info(
        "Admin changed account role",
        extra={
            "actor_id": str(session.account_id),
            "account_id": str(account_id),
            "role": req.role.value,
        },
    )
    return to_account_response(account)


@router.post("/{account_id}/disable", response_model=AccountResponse)
def disable_account(
    account_id: UUID,
    session: SessionContext = Depends(_can_write),
    accounts: AccountRepository = Depends(get_account_repository),
):
    account = _found(accounts.update_account(account_id, is_active=False), account_id)
    logger.info(
        "Admin disabled account",
        extra={"actor_id": str(session.account_id), "account_id": str(account_id)},
    )
    return to_account_response(account)


@router.post("/{account_id}/enable", response_model=AccountResponse)
def enable_account(
    account_id: UUID,
    session: SessionContext = Depends(_can_write),
    accounts: AccountRepository = Depends(get_account_repository),
):
    account = _found(accounts.update_account(account_id, is_active=True), account_id)
    logger.info(
        "Admin enabled account",
        extra={"actor_id": str(session.account_id), "account_id": str(account_id)},
    )
    return to_account_response(account)


@router.post("/{account_id}/reset-password", response_model=AccountResponse)
def reset_password(
    account_id: UUID,
    req: ResetPasswordRequest,
    session: SessionContext = Depends(_can_write),
    accounts: AccountRepository = Depends(get_account_repository),
    verifier: PasswordVerifier = Depends(get_password_verifier),
):
    """Nuevo password + token_version+1 (los refresh tokens previos dejan de valer)."""
    _found(
        accounts.update_account(account_id, password_hash=verifier.hash(req.password)),
        account_id,
    )
    account = _found(accounts.bump_token_version(account_id), account_id)
    logger.info(
        "Admin reset account password",
        extra={"actor_id": str(session.account_id), "account_id": str(account_id)},
    )
    return to_account_response(account)
