"""
===============================================================================
TARJETA CRC — app/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Mantener contexto "request-scoped" usando ContextVars (async-safe).
  - Permitir correlación de logs y eventos de auth sin pasar parámetros
    por todo el stack.
  - Proveer helpers mínimos: set_request_context(), get_context_dict(),
    clear_context().

Colaboradores:
  - app.crosscutting.middleware: setea request_id/method/path al inicio.
  - app.crosscutting.logger: enriquece logs leyendo get_context_dict().
  - app.identity.session: setea account_id cuando hay sesión válida.

Restricciones:
  - Solo strings; "" significa "no disponible".
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Final

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
account_id_var: ContextVar[str] = ContextVar("account_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")

_CTX_REQUEST_ID: Final[str] = "request_id"
_CTX_METHOD: Final[str] = "method"
_CTX_PATH: Final[str] = "path"
_CTX_ACCOUNT_ID: Final[str] = "account_id"


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    request_id_var.set(request_id or "")
    http_method_var.set(method or "")
    http_path_var.set(path or "")


def set_account_context(account_id: str = "") -> None:
    """Cuenta autenticada del request (la setea SessionMiddleware)."""
    account_id_var.set(account_id or "")


def get_context_dict() -> dict[str, str]:
    """Devuelve el contexto actual omitiendo claves vacías."""
    ctx: dict[str, str] = {}

    if val := request_id_var.get():
        ctx[_CTX_REQUEST_ID] = val
    if val := http_method_var.get():
        ctx[_CTX_METHOD] = val
    if val := http_path_var.get():
        ctx[_CTX_PATH] = val
    if val := account_id_var.get():
        ctx[_CTX_ACCOUNT_ID] = val

    return ctx


def clear_context() -> None:
    """Limpia el contexto al final del request (evita filtración entre requests)."""
    request_id_var.set("")
    http_method_var.set("")
    http_path_var.set("")
    account_id_var.set("")
