# =============================================================================
# FILE: application/dev_seed_admin.py
# =============================================================================
"""
===============================================================================
TASK: Dev Seed Admin (solo local + override E2E)
===============================================================================

Qué es:
    Asegura que exista una cuenta admin para desarrollo cuando está
    configurado (DEV_SEED_ADMIN=true). En CI se puede forzar con
    E2E_SEED_ADMIN=true sin depender de APP_ENV.

Seguridad:
    - Guard estricto: sin E2E => solo corre con APP_ENV=local.

CRC:
    Component: ensure_dev_admin
    Responsibilities:
      - Validar guard de ambiente
      - Resolver credenciales (settings vs env E2E)
      - Asegurar cuenta (create, o update si force_reset)
    Collaborators:
      - AccountRepository
      - password_hasher (PasswordVerifier.hash)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Final, Mapping

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.repositories import AccountRepository
from ..identity.accounts import AccountRole, normalize_email

_ENV_FLAG_E2E_SEED_ADMIN: Final[str] = "E2E_SEED_ADMIN"
_ENV_E2E_ADMIN_EMAIL: Final[str] = "E2E_ADMIN_EMAIL"
_ENV_E2E_ADMIN_PASSWORD: Final[str] = "E2E_ADMIN_PASSWORD"

_DEFAULT_E2E_EMAIL: Final[str] = "admin@fleet.local"
_DEFAULT_E2E_PASSWORD: Final[str] = "admin-e2e-1234"


@dataclass(frozen=True, slots=True)
class _AdminSeed:
    enabled: bool
    is_e2e: bool
    email: str = ""
    password: str = ""
    role: AccountRole = AccountRole.ADMIN
    force_reset: bool = False


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _resolve_role(role_str: str) -> AccountRole:
    try:
        return AccountRole((role_str or "").strip().lower())
    except ValueError:
        logger.warning(
            "Dev seed admin: invalid role; falling back to ADMIN",
            extra={"role": role_str},
        )
        return AccountRole.ADMIN


def _resolve_seed(settings: Settings, env: Mapping[str, str]) -> _AdminSeed:
    is_e2e = _parse_bool(env.get(_ENV_FLAG_E2E_SEED_ADMIN))
    if not (settings.dev_seed_admin or is_e2e):
        return _AdminSeed(enabled=False, is_e2e=is_e2e)

    if is_e2e:
        return _AdminSeed(
            enabled=True,
            is_e2e=True,
            email=normalize_email(env.get(_ENV_E2E_ADMIN_EMAIL, _DEFAULT_E2E_EMAIL)),
            password=env.get(_ENV_E2E_ADMIN_PASSWORD, _DEFAULT_E2E_PASSWORD),
        )

    return _AdminSeed(
        enabled=True,
        is_e2e=False,
        email=normalize_email(settings.dev_seed_admin_email),
        password=settings.dev_seed_admin_password or "",
        role=_resolve_role(settings.dev_seed_admin_role),
        force_reset=bool(settings.dev_seed_admin_force_reset),
    )


def _assert_allowed_environment(settings: Settings, *, is_e2e: bool) -> None:
    if is_e2e:
        return
    env = (settings.app_env or "").strip().lower()
    if env != "local":
        raise RuntimeError(
            f"FATAL: DEV_SEED_ADMIN is enabled but APP_ENV is '{env}' (must be 'local')."
        )


def ensure_dev_admin(
    settings: Settings,
    *,
    accounts: AccountRepository,
    password_hasher: Callable[[str], str],
    env: Mapping[str, str],
) -> None:
    """
    Crea la cuenta admin si falta; con force_reset actualiza password, rol
    y la reactiva. Deshabilitado => no-op.
    """
    seed = _resolve_seed(settings, env)
    if not seed.enabled:
        return

    _assert_allowed_environment(settings, is_e2e=seed.is_e2e)

    if not seed.email or not seed.password:
        raise ValueError("Dev seed admin is enabled but email/password are empty")

    existing = accounts.get_account_by_email(seed.email)

    if existing is None:
        account = accounts.create_account(
            email=seed.email,
            password_hash=password_hasher(seed.password),
            role=seed.role,
            is_active=True,
        )
        logger.info(
            "Dev seed admin: account created",
            extra={"account_id": str(account.id), "role": seed.role.value},
        )
        return

    if seed.force_reset:
        accounts.update_account(
            existing.id,
            password_hash=password_hasher(seed.password),
            role=seed.role,
            is_active=True,
        )
        accounts.bump_token_version(existing.id)
        logger.info(
            "Dev seed admin: account reset applied",
            extra={"account_id": str(existing.id), "role": seed.role.value},
        )
        return

    logger.info("Dev seed admin: account exists; skipping", extra={"email": seed.email})
