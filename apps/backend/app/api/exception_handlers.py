"""
===============================================================================
TARJETA CRC — app/api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir FleetError (y derivadas) a respuestas HTTP RFC7807.
  - Traducir errores de validación del body (pydantic) a 400.
  - Centralizar logging de errores con request_id + error_id.
  - Evitar filtrar detalles internos: en producción solo mensaje genérico
    para 5xx; fuera de producción se agrega diagnóstico.

Colaboradores:
  - crosscutting.error_responses: ErrorCode, problem_response
  - crosscutting.exceptions: FleetError y derivadas
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..crosscutting.error_responses import ErrorCode, problem_response
from ..crosscutting.exceptions import FleetError, ServerError
from ..crosscutting.logger import logger

GENERIC_SERVER_MESSAGE = "Ocurrió un error inesperado"


def _is_production(request: Request) -> bool:
    container = getattr(request.app.state, "container", None)
    return bool(container and container.settings.is_production())


def _error_code_for(exc: FleetError) -> ErrorCode:
    try:
        return ErrorCode(exc.error_code)
    except ValueError:
        return ErrorCode.INTERNAL_ERROR


async def fleet_error_handler(request: Request, exc: FleetError) -> JSONResponse:
    code = _error_code_for(exc)
    errors = None

    if isinstance(exc, ServerError):
        logger.error(
            "Server error",
            exc_info=exc.original_error is not None,
            extra={"code": code.value, "error_id": exc.error_id, "error": exc.message},
        )
        detail = GENERIC_SERVER_MESSAGE
        if not _is_production(request):
            detail = exc.message
            if exc.original_error is not None:
                errors = [{"diagnostic": repr(exc.original_error)}]
    else:
        logger.info(
            "Request rejected",
            extra={"code": code.value, "error_id": exc.error_id, "status": exc.status_code},
        )
        detail = exc.message

    return problem_response(
        request,
        status_code=exc.status_code,
        code=code,
        detail=detail,
        errors=errors,
        error_id=exc.error_id,
        headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "msg": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return problem_response(
        request,
        status_code=400,
        code=ErrorCode.VALIDATION_ERROR,
        detail="Completá todos los campos obligatorios",
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler para excepciones no tipadas.

    - Log completo (stacktrace).
    - Respuesta genérica (evita filtrar internos).
    """
    logger.error("Unhandled exception", exc_info=exc, extra={"error": str(exc)})

    errors = None if _is_production(request) else [{"diagnostic": repr(exc)}]
    return problem_response(
        request,
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=GENERIC_SERVER_MESSAGE,
        errors=errors,
    )


def register_exception_handlers(app) -> None:
    """
    Registra handlers en la app FastAPI.

    Importante:
      - Exception genérica se registra al final como fallback.
    """
    app.add_exception_handler(FleetError, fleet_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
