# apps/backend/app/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Excepciones tipadas del backend (errores internos)
===============================================================================

Objetivo
--------
Cada falla interna se clasifica en UNA de estas clases antes de llegar a HTTP:

    ValidationError        -> 400
    AuthenticationError    -> 401
    AccountLockedError     -> 423
    AccountInactiveError   -> 403
    AuthorizationError     -> 403
    NotFoundError          -> 404
    ConflictError          -> 400 (code CONFLICT)
    ServerError            -> 500
      DatabaseError        -> 500

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  FleetError + subclases

Responsabilidades:
  - Estandarizar errores internos que luego se mapean a HTTP
  - Generar error_id para rastreo en logs
  - Mantener message "humana" (sin secretos ni SQL)

Colaboradores:
  - api/exception_handlers.py (mapea a respuestas RFC7807)
  - crosscutting/logger.py
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4


class FleetError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      FleetError

    Responsabilidades:
      - Base para errores internos del sistema
      - Proveer error_code + error_id + message + status HTTP sugerido

    Colaboradores:
      - api/exception_handlers.py
    ----------------------------------------------------------------------------
    """

    error_code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


# ---------------------------------------------------------------------------
# 4xx
# ---------------------------------------------------------------------------
class ValidationError(FleetError):
    """Input inválido o incompleto."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class PasswordFormatError(ValidationError):
    """Contraseña vacía o que no cumple la política mínima."""


class AuthenticationError(FleetError):
    """Credenciales inválidas o sesión ausente/vencida."""

    error_code = "UNAUTHORIZED"
    status_code = 401


class AccountLockedError(FleetError):
    error_code = "ACCOUNT_LOCKED"
    status_code = 423

    def __init__(self, message: str, *, locked_until: datetime | None = None):
        super().__init__(message)
        self.locked_until = locked_until


class AccountInactiveError(FleetError):
    error_code = "ACCOUNT_INACTIVE"
    status_code = 403


class AuthorizationError(FleetError):
    """Rol no permitido. El mensaje NUNCA enumera los roles aceptados."""

    error_code = "FORBIDDEN"
    status_code = 403


class NotFoundError(FleetError):
    error_code = "NOT_FOUND"
    status_code = 404


class ConflictError(FleetError):
    """Duplicado (ej: email ya registrado)."""

    error_code = "CONFLICT"
    status_code = 400


# ---------------------------------------------------------------------------
# 5xx
# ---------------------------------------------------------------------------
class ServerError(FleetError):
    error_code = "INTERNAL_ERROR"
    status_code = 500


class CorruptPasswordHashError(ServerError):
    """El hash persistido no es legible por el verificador."""


class DatabaseError(ServerError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code = "DATABASE_ERROR"
