"""
===============================================================================
TARJETA CRC — app/api/schemas.py (DTOs HTTP compartidos)
===============================================================================

Responsabilidades:
  - Definir los modelos de respuesta de cuentas y autenticación.
  - Convertir entidades (Account, AuthResult) a DTOs.

Colaboradores:
  - api/auth_routes.py
  - api/admin_routes.py
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, field_validator

from ..application.usecases.auth import AuthResult
from ..identity.accounts import Account, AccountRole


def normalize_email_field(v: str) -> str:
    return (v or "").strip().lower()


class AccountResponse(BaseModel):
    id: UUID
    email: str
    role: AccountRole
    first_name: str
    last_name: str
    phone: str
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime | None = None


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: AccountResponse


class EmailModel(BaseModel):
    """Base para requests con email normalizado (trim + lower)."""

    email: str

    @field_validator("email")
    @classmethod
    def normalizar_email(cls, v: str) -> str:
        return normalize_email_field(v)


def to_account_response(account: Account) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        email=account.email,
        role=account.role,
        first_name=account.first_name,
        last_name=account.last_name,
        phone=account.phone,
        is_active=account.is_active,
        last_login_at=account.last_login_at,
        created_at=account.created_at,
    )


def to_auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        token=result.access.token,
        expires_in=result.access.expires_in,
        user=to_account_response(result.account),
    )
