# apps/backend/app/crosscutting/security.py
"""
===============================================================================
MÓDULO: Security headers (OWASP hardening)
===============================================================================

Objetivo
--------
Agregar headers de seguridad a todas las respuestas (API y páginas):
- nosniff / frame DENY / XSS protection
- Referrer-Policy y CSP
- HSTS (solo prod + HTTPS)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  SecurityHeadersMiddleware

Responsabilidades:
  - Añadir headers de hardening sin romper dev
  - Ajustar CSP según entorno

Colaboradores:
  - crosscutting.config.Settings (is_production)
===============================================================================
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


def _build_csp(is_production: bool) -> str:
    # En dev permitimos inline para docs/swagger.
    if is_production:
        return (
            "default-src 'self'; "
            "script-src 'self'; "
            "style-src 'self'; "
            "img-src 'self' data:; "
            "font-src 'self'; "
            "connect-src 'self'; "
            "frame-ancestors 'none'"
        )

    return (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' data: https://fastapi.tiangolo.com; "
        "font-src 'self'; "
        "connect-src 'self'"
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Agrega headers OWASP; HSTS solo si producción y request por HTTPS."""

    def __init__(self, app, *, is_production: bool = False):
        super().__init__(app)
        self._is_production = is_production
        self._csp = _build_csp(is_production)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = self._csp

        if self._is_production:
            proto = (
                request.headers.get("x-forwarded-proto") or request.url.scheme or ""
            ).lower()
            if proto == "https":
                response.headers["Strict-Transport-Security"] = (
                    "max-age=31536000; includeSubDomains"
                )

        return response
