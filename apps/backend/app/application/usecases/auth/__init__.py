"""
Auth Use Cases

Login (with lockout), self-service registration and session refresh.
"""

from .login import AuthResult, LoginInput, LoginUseCase
from .refresh import RefreshSessionUseCase
from .register import (
    BusinessCustomerData,
    IndividualCustomerData,
    RegisterInput,
    RegisterUseCase,
    role_for_customer_type,
)

__all__ = [
    "AuthResult",
    "LoginInput",
    "LoginUseCase",
    "RefreshSessionUseCase",
    "BusinessCustomerData",
    "IndividualCustomerData",
    "RegisterInput",
    "RegisterUseCase",
    "role_for_customer_type",
]
