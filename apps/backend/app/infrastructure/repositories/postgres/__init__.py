"""
PostgreSQL Repository Implementations.

Raw SQL over psycopg 3 with an injected ConnectionPool.
"""

from .account import PostgresAccountRepository
from .customer_profile import PostgresCustomerProfileRepository

__all__ = [
    "PostgresAccountRepository",
    "PostgresCustomerProfileRepository",
]
