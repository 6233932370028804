"""
===============================================================================
USE CASE: Login
===============================================================================

Business Goal:
    Autenticar una cuenta por email + password aplicando la Lockout Policy y
    emitir el par de tokens (access + refresh).

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    LoginUseCase

Responsibilities:
    - Validar input mínimo (email y password presentes).
    - Resolver cuenta por email normalizado.
    - Rechazar cuentas bloqueadas SIN llamar al verificador.
    - Rechazar cuentas inactivas (sin tocar el contador).
    - Registrar fallo (atómico) cuando el password no coincide.
    - Resetear contador/lock y emitir tokens cuando coincide.

Collaborators:
    - AccountRepository (Credential Store)
    - PasswordVerifier
    - LockoutPolicy
    - TokenIssuer
    - crosscutting.metrics (resultado del login / bloqueos)

-------------------------------------------------------------------------------
Orden de evaluación
-------------------------------------------------------------------------------
    1) email/password vacíos            -> ValidationError (400)
    2) cuenta inexistente               -> AuthenticationError (401)
    3) cuenta bloqueada (lock vigente)  -> AccountLockedError (423)
    4) cuenta inactiva                  -> AccountInactiveError (403)
    5) password incorrecto              -> contador++ y AuthenticationError (401)
    6) OK                               -> contador=0, lock=None, last_login=now
       (si un fallo concurrente bloqueó la cuenta durante la verificación
        el reset no aplica y se responde como en (3))

El contador solo se incrementa en (5).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass

from ....crosscutting.exceptions import (
    AccountInactiveError,
    AccountLockedError,
    AuthenticationError,
    ValidationError,
)
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_account_lockout, record_login_attempt
from ....domain.repositories import AccountRepository
from ....identity.accounts import Account, normalize_email
from ....identity.lockout import Clock, LockoutPolicy, utc_now
from ....identity.passwords import PasswordVerifier
from ....identity.tokens import IssuedToken, TokenIssuer

INVALID_CREDENTIALS_MESSAGE = "Email o contraseña inválidos"


@dataclass(frozen=True)
class LoginInput:
    email: str
    password: str


@dataclass(frozen=True)
class AuthResult:
    """Cuenta autenticada + par de tokens emitido."""

    account: Account
    access: IssuedToken
    refresh: IssuedToken


class LoginUseCase:
    def __init__(
        self,
        accounts: AccountRepository,
        *,
        verifier: PasswordVerifier,
        issuer: TokenIssuer,
        policy: LockoutPolicy,
        clock: Clock = utc_now,
    ) -> None:
        self._accounts = accounts
        self._verifier = verifier
        self._issuer = issuer
        self._policy = policy
        self._clock = clock

    def execute(self, input_data: LoginInput) -> AuthResult:
        email = normalize_email(input_data.email)
        if not email or not input_data.password:
            raise ValidationError("Email y contraseña son obligatorios")

        account = self._accounts.get_account_by_email(email)
        if account is None:
            record_login_attempt("invalid")
            logger.info("Login failed: unknown email", extra={"email": email})
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        now = self._clock()

        if self._policy.is_locked(account.locked_until, now):
            record_login_attempt("locked")
            logger.warning(
                "Login rejected: account locked",
                extra={"account_id": str(account.id)},
            )
            raise AccountLockedError(
                "Cuenta bloqueada temporalmente por demasiados intentos fallidos",
                locked_until=account.locked_until,
            )

        if not account.is_active:
            record_login_attempt("inactive")
            logger.warning(
                "Login rejected: account inactive",
                extra={"account_id": str(account.id)},
            )
            raise AccountInactiveError("La cuenta está desactivada")

        if not self._verifier.verify(input_data.password, account.password_hash):
            self._register_failure(account, now)
            record_login_attempt("invalid")
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        updated = self._accounts.register_successful_login(account.id, now=now)
        if updated is None:
            raise self._lost_to_concurrent_lock(account)
        account = updated
        record_login_attempt("success")
        logger.info("Login succeeded", extra={"account_id": str(account.id)})

        return AuthResult(
            account=account,
            access=self._issuer.issue(account),
            refresh=self._issuer.issue_refresh(account),
        )

    def _lost_to_concurrent_lock(self, account: Account) -> Exception:
        """El password coincidió pero otro intento bloqueó la cuenta durante la verificación."""
        current = self._accounts.get_account_by_id(account.id)
        if current is None:
            record_login_attempt("invalid")
            return AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
        record_login_attempt("locked")
        logger.warning(
            "Login rejected: account locked during verification",
            extra={"account_id": str(account.id)},
        )
        return AccountLockedError(
            "Cuenta bloqueada temporalmente por demasiados intentos fallidos",
            locked_until=current.locked_until,
        )

    def _register_failure(self, account: Account, now) -> None:
        updated = self._accounts.register_failed_login(
            account.id, policy=self._policy, now=now
        )
        if updated is None:
            return
        logger.info(
            "Login failed: password mismatch",
            extra={
                "account_id": str(account.id),
                "failed_login_count": updated.failed_login_count,
            },
        )
        if updated.locked_until is not None:
            record_account_lockout()
            logger.warning(
                "Account locked after repeated failures",
                extra={
                    "account_id": str(account.id),
                    "locked_until": updated.locked_until.isoformat(),
                },
            )
