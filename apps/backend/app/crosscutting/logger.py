# apps/backend/app/crosscutting/logger.py
"""
===============================================================================
MÓDULO: Logger estructurado (JSON) con contexto de request
===============================================================================

Objetivo
--------
Cada línea de log es un objeto JSON con:
- Contexto del request (request_id, method, path, account_id)
- Los campos pasados en `extra=...`
- Credenciales fuera: passwords, hashes, JWT y cookies se reemplazan;
  los emails se enmascaran (PII)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + _Redactor + setup_logger() / configure_logging()

Colaboradores:
  - app/context.py (ContextVars)
  - crosscutting/config.py (LOG_LEVEL, LOG_JSON)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

from ..context import get_context_dict

# R: atributos estándar de LogRecord; todo lo demás vino por `extra`.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

REDACTED = "***REDACTED***"


def mask_email(value: str) -> str:
    """`dispatcher@fleet.test` -> `d***@fleet.test`."""
    local, sep, domain = value.partition("@")
    if not sep:
        return REDACTED
    return f"{local[:1]}***@{domain}"


class _Redactor:
    """Oculta credenciales y enmascara emails antes de serializar."""

    SECRET_KEYS = frozenset(
        {
            "password",
            "password_hash",
            "new_password",
            "jwt_secret",
            "token",
            "refresh_token",
            "refreshtoken",
            "access_token",
            "authorization",
            "cookie",
            "set-cookie",
        }
    )
    EMAIL_KEYS = frozenset({"email", "target_email"})

    def __init__(self, max_str: int = 2_000, max_depth: int = 3):
        self._max_str = max_str
        self._max_depth = max_depth

    def sanitize(self, value: Any, *, key: str = "", depth: int = 0) -> Any:
        lowered = key.lower()
        if lowered in self.SECRET_KEYS:
            return REDACTED
        if lowered in self.EMAIL_KEYS and isinstance(value, str):
            return mask_email(value)
        if depth > self._max_depth:
            return "***TRUNCATED***"

        if isinstance(value, str):
            return value if len(value) <= self._max_str else value[: self._max_str] + "…"
        if isinstance(value, dict):
            return {
                str(k): self.sanitize(v, key=str(k), depth=depth + 1)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple, set)):
            return [self.sanitize(v, key=key, depth=depth + 1) for v in value]
        if value is None or isinstance(value, (bool, int, float)):
            return value
        return str(value)


class JSONFormatter(logging.Formatter):
    """LogRecord -> una línea JSON (contexto + extra + excepción)."""

    def __init__(self):
        super().__init__()
        self._redactor = _Redactor()

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
            "pid": os.getpid(),
            **get_context_dict(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                payload[key] = self._redactor.sanitize(value, key=key)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stacktrace": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def setup_logger(
    name: str = "fleet-office", *, level: str = "INFO", use_json: bool = True
) -> logging.Logger:
    """Logger de la app; idempotente (no duplica handlers al reimportar)."""
    log = logging.getLogger(name)
    log.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not log.handlers:
        log.addHandler(logging.StreamHandler(sys.stdout))

    formatter = (
        JSONFormatter()
        if use_json
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
    for handler in log.handlers:
        handler.setFormatter(formatter)
    return log


def configure_logging(settings) -> logging.Logger:
    """Re-aplica LOG_LEVEL / LOG_JSON cuando Settings ya está cargado."""
    return setup_logger(
        logger.name, level=settings.log_level, use_json=settings.log_json
    )


logger = setup_logger()
