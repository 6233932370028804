"""
Use Cases Layer (Business Operations)

Structure
---------
usecases/
└── auth/           # Login, registration, session refresh

Usage
-----
    from app.application.usecases.auth import LoginUseCase
    from app.application.usecases import LoginUseCase
"""

from .auth import (
    AuthResult,
    LoginInput,
    LoginUseCase,
    RefreshSessionUseCase,
    RegisterInput,
    RegisterUseCase,
)

__all__ = [
    "AuthResult",
    "LoginInput",
    "LoginUseCase",
    "RefreshSessionUseCase",
    "RegisterInput",
    "RegisterUseCase",
]
