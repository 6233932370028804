"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for accounts (Credential Store) and customer
  profiles (ports).
- Keep application use cases independent from PostgreSQL / in-memory storage.
- Enable dependency inversion and straightforward unit testing.

Collaborators
- identity.accounts: Account, AccountRole
- domain.entities: IndividualCustomerProfile, BusinessCustomerProfile
- infrastructure.repositories: postgres / in_memory implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- Lookups return None when the record does not exist (no exception).
- Emails are normalized (trim + lower) by every implementation.
- register_failed_login / register_successful_login are atomic per account.
"""

from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID

from ..identity.accounts import Account, AccountRole
from ..identity.lockout import LockoutPolicy
from .entities import CustomerProfile


class AccountRepository(Protocol):
    """
    R: Credential Store.

    Implementations must provide:
      - lookup by email / id
      - unique email at creation (ConflictError on duplicates)
      - atomic counter/lock mutation for login attempts
    """

    def get_account_by_email(self, email: str) -> Optional[Account]:
        ...

    def get_account_by_id(self, account_id: UUID) -> Optional[Account]:
        ...

    def create_account(
        self,
        *,
        email: str,
        password_hash: str,
        role: AccountRole,
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
        is_active: bool = True,
    ) -> Account:
        """
        R: Persist a new account.

        Raises:
            ConflictError: if the email is already registered.
        """
        ...

    def list_accounts(self, *, limit: int = 200, offset: int = 0) -> list[Account]:
        ...

    def update_account(
        self,
        account_id: UUID,
        *,
        role: AccountRole | None = None,
        is_active: bool | None = None,
        password_hash: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        phone: str | None = None,
    ) -> Optional[Account]:
        """R: Partial update; None fields stay unchanged. Returns None if missing."""
        ...

    def delete_account(self, account_id: UUID) -> bool:
        ...

    def register_failed_login(
        self, account_id: UUID, *, policy: LockoutPolicy, now: datetime
    ) -> Optional[Account]:
        """
        R: Atomically apply LockoutPolicy.next_failure() to the stored state.

        Returns the updated account (counter / locked_until after the failure).
        """
        ...

    def register_successful_login(
        self, account_id: UUID, *, now: datetime
    ) -> Optional[Account]:
        """
        R: Reset counter to 0, clear locked_until and set last_login_at.

        Returns None when the account is missing or a lock is active at `now`
        (a concurrent failure locked it); the caller must not issue tokens.
        """
        ...

    def bump_token_version(self, account_id: UUID) -> Optional[Account]:
        """R: Invalidate every refresh token issued so far for the account."""
        ...

    def ping(self) -> bool:
        ...


class CustomerProfileRepository(Protocol):
    """R: Persistence for customer profiles linked to an account."""

    def create_profile(self, profile: CustomerProfile) -> CustomerProfile:
        ...

    def get_profile_by_account(self, account_id: UUID) -> Optional[CustomerProfile]:
        ...

    def delete_profiles_for_account(self, account_id: UUID) -> int:
        ...
