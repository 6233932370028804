"""
============================================================
TARJETA CRC
============================================================
Class: app.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de repositorios (Postgres e InMemory)
  en un único punto de importación.

Collaborators:
- Repositorios Postgres (SQL crudo, pool inyectado)
- Repositorios InMemory (testing / desarrollo local)
============================================================
"""

from .in_memory import InMemoryAccountRepository, InMemoryCustomerProfileRepository
from .postgres import PostgresAccountRepository, PostgresCustomerProfileRepository

__all__ = [
    # Postgres
    "PostgresAccountRepository",
    "PostgresCustomerProfileRepository",
    # In-memory
    "InMemoryAccountRepository",
    "InMemoryCustomerProfileRepository",
]
