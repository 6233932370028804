"""
===============================================================================
TARJETA CRC — identity/session.py
===============================================================================

Módulo:
    Session Middleware + SessionContext

Responsabilidades:
    - Extraer el token de sesión (cookie `token`; en rutas no-página también
      `Authorization: Bearer`).
    - Validar firma/expiración con TokenIssuer y adjuntar un SessionContext
      explícito en request.state.session (None si no hay sesión válida).
    - Proteger prefijos configurables:
        * páginas (/dashboard, /admin) -> 303 a /login?from=<path+query>
        * API (/api, menos rutas públicas) -> 401 problem+json
    - Exponer la dependencia FastAPI require_session().

Colaboradores:
    - identity/tokens.TokenIssuer (vía app.state.container)
    - crosscutting/config.Settings (prefijos, cookie, login_path)
    - crosscutting/error_responses.problem_response

Reglas:
    - Token ausente, firma inválida o expirado se tratan IGUAL.
    - Nunca se loguea el token.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlencode
from uuid import UUID

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse, Response

from ..context import set_account_context
from ..crosscutting.error_responses import ErrorCode, problem_response
from ..crosscutting.exceptions import AuthenticationError
from ..crosscutting.logger import logger
from .accounts import AccountRole
from .tokens import TokenIssuer

SESSION_REQUIRED_MESSAGE = "Autenticación requerida"


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Identidad decodificada del token, disponible para los handlers."""

    account_id: UUID
    email: str
    role: AccountRole
    expires_at: datetime


# ---------------------------------------------------------------------------
# Extracción de token
# ---------------------------------------------------------------------------
def extract_bearer_token(authorization: str | None) -> str | None:
    """Extrae token desde `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def _matches_prefix(path: str, prefixes: list[str]) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)


def resolve_session(
    issuer: TokenIssuer, token: str | None
) -> SessionContext | None:
    if not token:
        return None
    try:
        claims = issuer.decode_access(token)
    except AuthenticationError as exc:
        logger.info("Session token rejected", extra={"reason": exc.message})
        return None
    return SessionContext(
        account_id=claims.account_id,
        email=claims.email,
        role=claims.role,
        expires_at=claims.expires_at,
    )


def login_redirect_target(login_path: str, request: Request) -> str:
    original = request.url.path
    if request.url.query:
        original = f"{original}?{request.url.query}"
    return f"{login_path}?{urlencode({'from': original})}"


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------
class SessionMiddleware(BaseHTTPMiddleware):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      SessionMiddleware

    Responsabilidades:
      - Decodificar la sesión en TODOS los requests (request.state.session)
      - Cortar requests sin sesión bajo prefijos protegidos

    Colaboradores:
      - app.state.container.issuer (TokenIssuer)
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        app,
        *,
        cookie_name: str,
        page_prefixes: list[str],
        api_prefixes: list[str],
        public_paths: list[str],
        login_path: str = "/login",
    ):
        super().__init__(app)
        self._cookie_name = cookie_name
        self._page_prefixes = page_prefixes
        self._api_prefixes = api_prefixes
        self._public_paths = set(public_paths)
        self._login_path = login_path

    @classmethod
    def options_from_settings(cls, settings) -> dict:
        return {
            "cookie_name": settings.jwt_cookie_name,
            "page_prefixes": settings.get_protected_page_prefixes(),
            "api_prefixes": settings.get_protected_api_prefixes(),
            "public_paths": settings.get_public_paths(),
            "login_path": settings.login_path,
        }

    def _is_page(self, path: str) -> bool:
        return _matches_prefix(path, self._page_prefixes)

    def _is_protected_api(self, path: str) -> bool:
        if path in self._public_paths:
            return False
        return _matches_prefix(path, self._api_prefixes)

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        is_page = self._is_page(path)

        issuer: TokenIssuer = request.app.state.container.issuer
        session = resolve_session(issuer, request.cookies.get(self._cookie_name))
        if session is None and not is_page:
            # R: cookie ausente o vencida no tapa un Bearer válido en rutas API
            session = resolve_session(
                issuer, extract_bearer_token(request.headers.get("authorization"))
            )
        request.state.session = session
        set_account_context(str(session.account_id) if session else "")

        if session is None:
            if is_page:
                return RedirectResponse(
                    login_redirect_target(self._login_path, request), status_code=303
                )
            if self._is_protected_api(path):
                return problem_response(
                    request,
                    status_code=401,
                    code=ErrorCode.UNAUTHORIZED,
                    detail=SESSION_REQUIRED_MESSAGE,
                    headers={"WWW-Authenticate": "Bearer"},
                )

        return await call_next(request)


# ---------------------------------------------------------------------------
# Dependencias FastAPI
# ---------------------------------------------------------------------------
def get_optional_session(request: Request) -> SessionContext | None:
    return getattr(request.state, "session", None)


def require_session(request: Request) -> SessionContext:
    """Dependency FastAPI: requiere sesión válida (401 si falta)."""
    session = get_optional_session(request)
    if session is None:
        raise AuthenticationError(SESSION_REQUIRED_MESSAGE)
    return session
