"""
===============================================================================
TARJETA CRC — identity/rbac.py
===============================================================================

Módulo:
    Role Gate (autorización por allow-list de roles)

Responsabilidades:
    - authorize(role, allowed): deny-by-default, sin jerarquía ni herencia.
    - require_roles(*roles): dependencia FastAPI por endpoint.

Colaboradores:
    - identity/session.require_session (identidad del request)
    - crosscutting/exceptions.AuthorizationError (403)

Reglas:
    - Un rol que no está en la lista se rechaza con 403 y un mensaje
      genérico: nunca se informa qué roles habrían sido aceptados.
    - allow-list vacía => nadie pasa.
===============================================================================
"""

from __future__ import annotations

from typing import Callable, Iterable

from fastapi import Depends

from ..crosscutting.exceptions import AuthorizationError
from ..crosscutting.logger import logger
from .accounts import AccountRole
from .session import SessionContext, require_session

FORBIDDEN_MESSAGE = "Acción no permitida"


def authorize(role: AccountRole | str | None, allowed: Iterable[AccountRole]) -> bool:
    if role is None:
        return False
    try:
        resolved = AccountRole(role)
    except ValueError:
        return False
    return resolved in frozenset(allowed)


def require_roles(*roles: AccountRole) -> Callable[..., SessionContext]:
    """Dependency factory: exige sesión y un rol dentro de `roles`."""
    allowed = frozenset(roles)

    def dependency(session: SessionContext = Depends(require_session)) -> SessionContext:
        if not authorize(session.role, allowed):
            logger.warning(
                "Role gate denied request",
                extra={"account_id": str(session.account_id), "role": session.role.value},
            )
            raise AuthorizationError(FORBIDDEN_MESSAGE)
        return session

    return dependency
