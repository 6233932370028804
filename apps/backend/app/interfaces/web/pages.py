"""
===============================================================================
TARJETA CRC — interfaces/web/pages.py (Páginas mínimas del back office)
===============================================================================

Responsabilidades:
  - GET /login: punto de entrada de login; refleja el destino `from`.
  - GET /dashboard: página protegida (cualquier sesión válida).
  - GET /admin: página protegida + Role Gate (admin, manager).

Colaboradores:
  - identity.session (la redirección a /login la hace SessionMiddleware)
  - identity.rbac.require_roles

Notas:
  - La UI real vive en el front; acá solo hay HTML mínimo.
  - Todo valor dinámico se escapa con html.escape.
===============================================================================
"""

from __future__ import annotations

from html import escape

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from ...identity.accounts import AccountRole
from ...identity.rbac import require_roles
from ...identity.session import SessionContext, require_session

router = APIRouter(tags=["pages"], include_in_schema=False)


def _safe_return_target(target: str | None) -> str:
    # Solo paths relativos al sitio (evita open redirect)
    if not target or not target.startswith("/") or target.startswith("//"):
        return "/dashboard"
    return target


def _page(title: str, body: str) -> HTMLResponse:
    return HTMLResponse(
        "<!doctype html>"
        f"<html lang=\"de\"><head><meta charset=\"utf-8\"><title>{escape(title)}</title>"
        f"</head><body><main>{body}</main></body></html>"
    )


@router.get("/login", response_class=HTMLResponse)
def login_page(from_: str | None = Query(None, alias="from")):
    target = escape(_safe_return_target(from_))
    return _page(
        "Anmelden",
        "<h1>Anmelden</h1>"
        f"<form id=\"login-form\" data-return-to=\"{target}\">"
        "<label>E-Mail <input type=\"email\" name=\"email\" required></label>"
        "<label>Passwort <input type=\"password\" name=\"password\" required></label>"
        "<button type=\"submit\">Anmelden</button>"
        "</form>",
    )


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard_page(session: SessionContext = Depends(require_session)):
    return _page(
        "Dashboard",
        f"<h1>Dashboard</h1><p>{escape(session.email)} ({escape(session.role.value)})</p>",
    )


@router.get("/admin", response_class=HTMLResponse)
def admin_page(
    session: SessionContext = Depends(
        require_roles(AccountRole.ADMIN, AccountRole.MANAGER)
    ),
):
    return _page(
        "Administration",
        f"<h1>Administration</h1><p>{escape(session.email)}</p>",
    )
