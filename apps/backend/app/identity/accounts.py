"""
===============================================================================
TARJETA CRC — identity/accounts.py
===============================================================================

Módulo:
    Modelo de Cuenta (credenciales + rol + estado de bloqueo)

Responsabilidades:
    - Definir el enum de roles del back office.
    - Definir el dataclass Account que viaja entre store, lockout y tokens.
    - Normalizar emails (trim + lower) en un único lugar.

Colaboradores:
    - domain/repositories.py: AccountRepository devuelve Account.
    - identity/tokens.py: codifica id/email/role en el JWT.
    - identity/rbac.py: compara Account.role contra allow-lists.

Notas:
    - Sin lógica de negocio: solo "shapes" de datos.
    - Si agregás roles, revisá los allow-lists de cada endpoint.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class AccountRole(str, Enum):
    """Roles soportados (enumeración cerrada)."""

    ADMIN = "admin"
    MANAGER = "manager"
    DISPATCHER = "dispatcher"
    DRIVER = "driver"
    INDIVIDUAL_CUSTOMER = "individual_customer"
    BUSINESS_CUSTOMER = "business_customer"


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True, slots=True)
class Account:
    """Registro de cuenta usado por login, sesión y administración."""

    id: UUID
    email: str
    password_hash: str
    role: AccountRole
    is_active: bool = True
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    failed_login_count: int = 0
    locked_until: datetime | None = None
    last_login_at: datetime | None = None
    token_version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
