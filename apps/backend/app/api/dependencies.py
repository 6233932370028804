"""
===============================================================================
TARJETA CRC — app/api/dependencies.py (Dependencias FastAPI)
===============================================================================

Responsabilidades:
  - Resolver el AppContainer desde app.state (sin globals).
  - Exponer factories Depends() para use cases y repositorios.

Colaboradores:
  - app.container.AppContainer
===============================================================================
"""

from __future__ import annotations

from fastapi import Depends, Request

from ..application.usecases.auth import (
    LoginUseCase,
    RefreshSessionUseCase,
    RegisterUseCase,
)
from ..container import AppContainer
from ..crosscutting.config import Settings
from ..domain.repositories import AccountRepository
from ..identity.passwords import PasswordVerifier


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_app_settings(container: AppContainer = Depends(get_container)) -> Settings:
    return container.settings


def get_account_repository(
    container: AppContainer = Depends(get_container),
) -> AccountRepository:
    return container.accounts


def get_password_verifier(
    container: AppContainer = Depends(get_container),
) -> PasswordVerifier:
    return container.verifier


def get_login_use_case(
    container: AppContainer = Depends(get_container),
) -> LoginUseCase:
    return container.login_use_case()


def get_register_use_case(
    container: AppContainer = Depends(get_container),
) -> RegisterUseCase:
    return container.register_use_case()


def get_refresh_use_case(
    container: AppContainer = Depends(get_container),
) -> RefreshSessionUseCase:
    return container.refresh_use_case()
