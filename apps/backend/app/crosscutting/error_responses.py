# apps/backend/app/crosscutting/error_responses.py
"""
===============================================================================
MÓDULO: Respuestas de error estándar (RFC 7807 / Problem Details)
===============================================================================

Objetivo
--------
Uniformar TODOS los errores HTTP para que:
- El frontend pueda manejar por "code"
- El backend pueda correlacionar por request_id / error_id
- Ninguna respuesta filtre detalles internos (SQL, firma, stacktrace)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  ErrorCode + ErrorDetail + problem_response()

Responsabilidades:
  - Definir catálogo de códigos de error (ErrorCode)
  - Construir payload RFC7807 (ErrorDetail)
  - Renderizar problem+json para handlers y middlewares

Colaboradores:
  - crosscutting/middleware.py (request_id)
  - api/exception_handlers.py (FleetError -> problem_response)
  - identity/session.py (401 de rutas API)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorCode(str, Enum):
    # 4xx
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    # 5xx
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class ErrorDetail(BaseModel):
    """
    Modelo RFC 7807 (Problem Details).

    Campos extra:
    - code: error code estable para clientes
    - request_id / error_id: correlación con logs
    - errors: lista opcional de detalles (ej: [{"field":"x","msg":"..."}])
    """

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    request_id: str | None = None
    error_id: str | None = None
    errors: list[dict[str, Any]] | None = None


PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"

_OPENAPI_ERROR_CONTENT = {
    PROBLEM_JSON_MEDIA_TYPE: {"schema": {"$ref": "#/components/schemas/ErrorDetail"}}
}


def _problem_doc(description: str) -> dict[str, Any]:
    return {
        "description": f"{description} (RFC7807)",
        "model": ErrorDetail,
        "content": _OPENAPI_ERROR_CONTENT,
    }


OPENAPI_ERROR_RESPONSES = {
    "400": _problem_doc("Bad Request / Conflict"),
    "401": _problem_doc("Unauthorized"),
    "403": _problem_doc("Forbidden / Account inactive"),
    "404": _problem_doc("Not Found"),
    "413": _problem_doc("Payload Too Large"),
    "423": _problem_doc("Account Locked"),
    "default": _problem_doc("Error"),
}


# ---------------------------------------------------------------------------
# Render
# ---------------------------------------------------------------------------
def _request_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def problem_response(
    request: Request,
    *,
    status_code: int,
    code: ErrorCode,
    detail: str,
    errors: list[dict[str, Any]] | None = None,
    error_id: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Construye la respuesta problem+json (sin stacktrace ni datos internos)."""
    error = ErrorDetail(
        type=f"about:blank/{code.value.lower()}",
        title=code.value.replace("_", " ").title(),
        status=status_code,
        detail=detail,
        code=code,
        instance=str(request.url.path),
        request_id=_request_id(request),
        error_id=error_id,
        errors=errors or None,
    )
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(mode="json", exclude_none=True),
        headers=headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )
