"""
In-Memory Repository Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .account import InMemoryAccountRepository
from .customer_profile import InMemoryCustomerProfileRepository

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryCustomerProfileRepository",
]
