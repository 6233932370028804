"""
===============================================================================
TARJETA CRC — identity/tokens.py
===============================================================================

Módulo:
    Token Issuer (JWT HS256: access + refresh)

Responsabilidades:
    - Emitir access token: sub, email, role, iat, exp, typ=access.
    - Emitir refresh token: sub, ver (token_version), iat, exp, typ=refresh.
    - Decodificar y validar firma, expiración, claims mínimos y tipo.

Colaboradores:
    - crosscutting.config.Settings: secreto y TTLs.
    - identity/session.py: decode_access() en cada request protegido.
    - application/usecases/auth/*: issue() tras login/registro/refresh.

Decisiones de diseño:
    - Stateless: no hay lista de revocación; la expiración es el fin natural.
    - El secreto vacío es un error de configuración (falla al construir).
    - Cualquier falla de decode es AuthenticationError, sin distinguir causa
      hacia el cliente (firma inválida == expirado == ausente).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from ..crosscutting.exceptions import AuthenticationError
from .accounts import Account, AccountRole
from .lockout import Clock, utc_now

JWT_ALGORITHM: str = "HS256"

CLAIM_SUB: str = "sub"
CLAIM_EMAIL: str = "email"
CLAIM_ROLE: str = "role"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_TYP: str = "typ"
CLAIM_VER: str = "ver"

TOKEN_TYPE_ACCESS: str = "access"
TOKEN_TYPE_REFRESH: str = "refresh"


@dataclass(frozen=True, slots=True)
class IssuedToken:
    token: str
    expires_at: datetime
    expires_in: int


@dataclass(frozen=True, slots=True)
class AccessClaims:
    account_id: UUID
    email: str
    role: AccountRole
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    account_id: UUID
    token_version: int


class TokenIssuer:
    def __init__(
        self,
        secret: str,
        *,
        access_ttl: timedelta = timedelta(days=1),
        refresh_ttl: timedelta = timedelta(days=30),
        clock: Clock = utc_now,
    ):
        if not (secret or "").strip():
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._clock = clock

    @classmethod
    def from_settings(cls, settings, *, clock: Clock = utc_now) -> "TokenIssuer":
        return cls(
            settings.jwt_secret,
            access_ttl=timedelta(minutes=settings.jwt_access_ttl_minutes),
            refresh_ttl=timedelta(days=settings.jwt_refresh_ttl_days),
            clock=clock,
        )

    @property
    def access_ttl(self) -> timedelta:
        return self._access_ttl

    @property
    def refresh_ttl(self) -> timedelta:
        return self._refresh_ttl

    # ------------------------------------------------------------------
    # Emitir
    # ------------------------------------------------------------------
    def issue(self, account: Account) -> IssuedToken:
        return self._encode(
            {
                CLAIM_SUB: str(account.id),
                CLAIM_EMAIL: account.email,
                CLAIM_ROLE: account.role.value,
                CLAIM_TYP: TOKEN_TYPE_ACCESS,
            },
            self._access_ttl,
        )

    def issue_refresh(self, account: Account) -> IssuedToken:
        return self._encode(
            {
                CLAIM_SUB: str(account.id),
                CLAIM_VER: account.token_version,
                CLAIM_TYP: TOKEN_TYPE_REFRESH,
            },
            self._refresh_ttl,
        )

    def _encode(self, claims: dict[str, object], ttl: timedelta) -> IssuedToken:
        now = self._clock()
        expires_at = now + ttl
        payload = {
            **claims,
            CLAIM_IAT: int(now.timestamp()),
            CLAIM_EXP: int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        return IssuedToken(
            token=token, expires_at=expires_at, expires_in=int(ttl.total_seconds())
        )

    # ------------------------------------------------------------------
    # Decodificar
    # ------------------------------------------------------------------
    def _decode(self, token: str, required: list[str], token_type: str) -> dict:
        if not token:
            raise AuthenticationError("Token ausente")
        try:
            # R: exp/iat se validan contra el reloj inyectado, no contra time.time()
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": required, "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError("Token inválido", original_error=exc) from exc

        try:
            expires_at = int(payload[CLAIM_EXP])
        except (TypeError, ValueError) as exc:
            raise AuthenticationError("Token inválido", original_error=exc) from exc
        if expires_at <= int(self._clock().timestamp()):
            raise AuthenticationError("Token expirado")

        if payload.get(CLAIM_TYP) != token_type:
            raise AuthenticationError("Tipo de token inválido")
        return payload

    def decode_access(self, token: str) -> AccessClaims:
        payload = self._decode(
            token,
            [CLAIM_SUB, CLAIM_EMAIL, CLAIM_ROLE, CLAIM_EXP, CLAIM_TYP],
            TOKEN_TYPE_ACCESS,
        )
        try:
            account_id = UUID(str(payload[CLAIM_SUB]))
            role = AccountRole(str(payload[CLAIM_ROLE]))
        except ValueError as exc:
            raise AuthenticationError("Token inválido", original_error=exc) from exc

        return AccessClaims(
            account_id=account_id,
            email=str(payload[CLAIM_EMAIL]),
            role=role,
            expires_at=datetime.fromtimestamp(
                payload[CLAIM_EXP], tz=timezone.utc
            ),
        )

    def decode_refresh(self, token: str) -> RefreshClaims:
        payload = self._decode(
            token, [CLAIM_SUB, CLAIM_VER, CLAIM_EXP, CLAIM_TYP], TOKEN_TYPE_REFRESH
        )
        try:
            account_id = UUID(str(payload[CLAIM_SUB]))
            version = int(payload[CLAIM_VER])
        except (TypeError, ValueError) as exc:
            raise AuthenticationError("Token inválido", original_error=exc) from exc
        return RefreshClaims(account_id=account_id, token_version=version)
