# apps/backend/app/crosscutting/middleware.py
"""
===============================================================================
MÓDULO: Middlewares HTTP (contexto + límites de payload)
===============================================================================

Objetivo
--------
1) RequestContextMiddleware:
   - Generar/propagar request_id
   - Setear contextvars (method/path)
   - Métricas por template de ruta; 401/403/423 se loguean como WARNING

2) BodyLimitMiddleware:
   - Rechazar payloads gigantes (incluyendo transferencia chunked)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componentes:
  - RequestContextMiddleware
  - BodyLimitMiddleware

Colaboradores:
  - app/context.py
  - crosscutting/metrics.py
  - crosscutting/error_responses.py
===============================================================================
"""

from __future__ import annotations

import json
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .error_responses import PROBLEM_JSON_MEDIA_TYPE, ErrorCode, ErrorDetail
from .logger import logger
from .metrics import record_request_metrics

_MAX_REQUEST_ID_LEN = 128


def _resolve_request_id(incoming: str | None) -> str:
    value = (incoming or "").strip()
    if value and len(value) <= _MAX_REQUEST_ID_LEN:
        return value
    return str(uuid.uuid4())


def _route_template(request: Request) -> str:
    """`/api/admin/accounts/{account_id}` en vez del path concreto (si hubo match)."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      RequestContextMiddleware

    Responsabilidades:
      - Generar/aceptar X-Request-Id y devolverlo en la respuesta
      - Setear contextvars para correlación de logs
      - Emitir logs y métricas por request
      - Garantizar clear_context() para evitar leaks

    Colaboradores:
      - crosscutting.metrics.record_request_metrics
      - crosscutting.logger
    ----------------------------------------------------------------------------
    """

    _QUIET_PATHS = frozenset({"/healthz", "/readyz", "/metrics"})
    # R: respuestas de rechazo de auth; van a WARNING para alertar fuerza bruta.
    _AUTH_DENIALS = {401: "unauthenticated", 403: "forbidden", 423: "locked"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _resolve_request_id(request.headers.get("x-request-id"))
        set_request_context(
            request_id=request_id, method=request.method, path=request.url.path
        )
        request.state.request_id = request_id

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-Id"] = request_id
            return response
        except Exception:
            logger.exception("request failed", extra={"status_code": 500})
            raise
        finally:
            latency = time.perf_counter() - start
            record_request_metrics(
                endpoint=_route_template(request),
                method=request.method,
                status_code=status_code,
                latency_seconds=latency,
            )
            self._log_completion(request, status_code, latency)
            clear_context()

    def _log_completion(self, request: Request, status_code: int, latency: float) -> None:
        if request.url.path in self._QUIET_PATHS:
            return
        extra = {"status_code": status_code, "latency_ms": round(latency * 1000, 2)}
        denial = self._AUTH_DENIALS.get(status_code)
        if denial:
            logger.warning("request denied", extra={**extra, "auth": denial})
        else:
            logger.info("request completed", extra=extra)


class _BodyTooLarge(Exception):
    pass


class BodyLimitMiddleware:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      BodyLimitMiddleware (ASGI puro)

    Responsabilidades:
      - Rechazar requests cuyo body exceda max_bytes (413 problem+json)
      - Funciona tanto con Content-Length como con transferencia chunked
    ----------------------------------------------------------------------------
    """

    def __init__(self, app, *, max_bytes: int):
        self.app = app
        self._max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = {k.decode().lower(): v.decode() for k, v in scope.get("headers", [])}
        path = scope.get("path", "")
        req_id = _resolve_request_id(headers.get("x-request-id"))

        cl = headers.get("content-length")
        if cl:
            try:
                too_large = int(cl) > self._max_bytes
            except ValueError:
                # Content-Length inválido -> controlamos por streaming
                too_large = False
            if too_large:
                logger.warning(
                    "payload too large (content-length)",
                    extra={"content_length": cl, "max_bytes": self._max_bytes},
                )
                await self._send_413(send, path=path, request_id=req_id)
                return

        started = False
        received = 0

        async def send_wrapper(message):
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        async def receive_limited():
            nonlocal received
            msg = await receive()
            if msg["type"] == "http.request":
                received += len(msg.get("body", b"") or b"")
                if received > self._max_bytes:
                    raise _BodyTooLarge()
            return msg

        try:
            await self.app(scope, receive_limited, send_wrapper)
        except _BodyTooLarge:
            # Si ya arrancó la respuesta no podemos enviar otra
            if started:
                raise
            logger.warning(
                "payload too large (streaming)",
                extra={"received_bytes": received, "max_bytes": self._max_bytes},
            )
            await self._send_413(send, path=path, request_id=req_id)

    async def _send_413(self, send, *, path: str, request_id: str) -> None:
        problem = ErrorDetail(
            type="about:blank/payload_too_large",
            title="Payload Too Large",
            status=413,
            detail=f"Request body demasiado grande. Máximo: {self._max_bytes} bytes",
            code=ErrorCode.PAYLOAD_TOO_LARGE,
            instance=path,
            request_id=request_id,
        ).model_dump(mode="json", exclude_none=True)
        body = json.dumps(problem, ensure_ascii=False).encode("utf-8")

        await send(
            {
                "type": "http.response.start",
                "status": 413,
                "headers": [
                    (b"content-type", PROBLEM_JSON_MEDIA_TYPE.encode()),
                    (b"x-request-id", request_id.encode()),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
