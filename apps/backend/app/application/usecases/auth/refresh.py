"""
===============================================================================
USE CASE: Refresh Session
===============================================================================

Business Goal:
    Emitir un nuevo par access + refresh a partir de un refresh token válido.

Reglas:
    - Token ausente / inválido / vencido         -> AuthenticationError (401)
    - Cuenta inexistente o inactiva               -> AuthenticationError (401)
    - token_version != ver del token (revocado)   -> AuthenticationError (401)

Collaborators:
    - TokenIssuer.decode_refresh / issue / issue_refresh
    - AccountRepository.get_account_by_id
===============================================================================
"""

from __future__ import annotations

from ....crosscutting.exceptions import AuthenticationError
from ....crosscutting.logger import logger
from ....domain.repositories import AccountRepository
from ....identity.tokens import TokenIssuer
from .login import AuthResult

SESSION_EXPIRED_MESSAGE = "Sesión expirada. Iniciá sesión nuevamente."


class RefreshSessionUseCase:
    def __init__(self, accounts: AccountRepository, *, issuer: TokenIssuer) -> None:
        self._accounts = accounts
        self._issuer = issuer

    def execute(self, refresh_token: str | None) -> AuthResult:
        if not refresh_token:
            raise AuthenticationError(SESSION_EXPIRED_MESSAGE)

        try:
            claims = self._issuer.decode_refresh(refresh_token)
        except AuthenticationError as exc:
            raise AuthenticationError(SESSION_EXPIRED_MESSAGE, original_error=exc) from exc
        account = self._accounts.get_account_by_id(claims.account_id)

        if account is None or not account.is_active:
            raise AuthenticationError(SESSION_EXPIRED_MESSAGE)
        if account.token_version != claims.token_version:
            logger.info(
                "Refresh rejected: token version mismatch",
                extra={"account_id": str(account.id)},
            )
            raise AuthenticationError(SESSION_EXPIRED_MESSAGE)

        return AuthResult(
            account=account,
            access=self._issuer.issue(account),
            refresh=self._issuer.issue_refresh(account),
        )
