"""
===============================================================================
TARJETA CRC — app/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorios, verificador, issuer, lockout) a
    partir de Settings.
  - Elegir Credential Store: Postgres (pool inyectado) o in-memory.
  - Construir casos de uso listos para usar.

Colaboradores:
  - app.crosscutting.config.Settings
  - app.infrastructure.repositories (Postgres / InMemory)
  - app.identity (PasswordVerifier, TokenIssuer, LockoutPolicy)
  - app.application.usecases.auth

Notas:
  - Sin singletons de módulo: el AppContainer vive en app.state y lo crea
    el lifespan (o el test, con repos in-memory y reloj fijo).
  - Este archivo NO depende de FastAPI.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field

from psycopg_pool import ConnectionPool

from .application.usecases.auth import (
    LoginUseCase,
    RefreshSessionUseCase,
    RegisterUseCase,
)
from .crosscutting.config import Settings
from .domain.repositories import AccountRepository, CustomerProfileRepository
from .identity.lockout import Clock, LockoutPolicy, utc_now
from .identity.passwords import PasswordVerifier
from .identity.tokens import TokenIssuer
from .infrastructure.repositories import (
    InMemoryAccountRepository,
    InMemoryCustomerProfileRepository,
    PostgresAccountRepository,
    PostgresCustomerProfileRepository,
)


@dataclass
class AppContainer:
    settings: Settings
    accounts: AccountRepository
    profiles: CustomerProfileRepository
    issuer: TokenIssuer
    policy: LockoutPolicy
    verifier: PasswordVerifier = field(default_factory=PasswordVerifier)
    clock: Clock = utc_now
    pool: ConnectionPool | None = None

    def login_use_case(self) -> LoginUseCase:
        return LoginUseCase(
            self.accounts,
            verifier=self.verifier,
            issuer=self.issuer,
            policy=self.policy,
            clock=self.clock,
        )

    def register_use_case(self) -> RegisterUseCase:
        return RegisterUseCase(
            self.accounts,
            self.profiles,
            verifier=self.verifier,
            issuer=self.issuer,
        )

    def refresh_use_case(self) -> RefreshSessionUseCase:
        return RefreshSessionUseCase(self.accounts, issuer=self.issuer)


def build_container(
    settings: Settings,
    *,
    pool: ConnectionPool | None = None,
    clock: Clock = utc_now,
    verifier: PasswordVerifier | None = None,
) -> AppContainer:
    """Arma el grafo de dependencias. Con store=postgres el pool es obligatorio."""
    if settings.account_store == "postgres":
        if pool is None:
            raise ValueError("A connection pool is required when ACCOUNT_STORE=postgres")
        accounts: AccountRepository = PostgresAccountRepository(pool)
        profiles: CustomerProfileRepository = PostgresCustomerProfileRepository(pool)
    else:
        accounts = InMemoryAccountRepository(clock=clock)
        profiles = InMemoryCustomerProfileRepository(clock=clock)

    return AppContainer(
        settings=settings,
        accounts=accounts,
        profiles=profiles,
        issuer=TokenIssuer.from_settings(settings, clock=clock),
        policy=LockoutPolicy.from_settings(settings),
        verifier=verifier or PasswordVerifier(),
        clock=clock,
        pool=pool,
    )
