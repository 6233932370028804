"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/account.py
============================================================
Class: InMemoryAccountRepository

Responsibilities:
  - Credential Store en memoria (tests / desarrollo local).
  - Mismo contrato que PostgresAccountRepository, incluida la atomicidad
    del contador de intentos (read-modify-write bajo Lock).
  - Ordering determinístico alineado con Postgres: created_at DESC, id DESC.

Collaborators:
  - identity.accounts.Account / AccountRole
  - identity.lockout.LockoutPolicy
  - domain.repositories.AccountRepository (contrato a implementar)

Constraints / Notes:
  - Thread-safe: todas las operaciones bajo Lock.
  - Account es inmutable: cada cambio reemplaza el registro (dataclasses.replace).
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Dict, Optional
from uuid import UUID, uuid4

from ....crosscutting.exceptions import ConflictError
from ....domain.repositories import AccountRepository
from ....identity.accounts import Account, AccountRole, normalize_email
from ....identity.lockout import Clock, LockoutPolicy, utc_now


class InMemoryAccountRepository(AccountRepository):
    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._lock = Lock()
        self._accounts: Dict[UUID, Account] = {}
        self._clock = clock

    def _find_by_email(self, email: str) -> Optional[Account]:
        return next((a for a in self._accounts.values() if a.email == email), None)

    def _replace(self, account_id: UUID, **changes) -> Optional[Account]:
        # R: llamar siempre con self._lock tomado
        current = self._accounts.get(account_id)
        if current is None:
            return None
        updated = replace(current, updated_at=self._clock(), **changes)
        self._accounts[account_id] = updated
        return updated

    # =========================================================
    # Lectura
    # =========================================================
    def get_account_by_email(self, email: str) -> Optional[Account]:
        with self._lock:
            return self._find_by_email(normalize_email(email))

    def get_account_by_id(self, account_id: UUID) -> Optional[Account]:
        with self._lock:
            return self._accounts.get(account_id)

    def list_accounts(self, *, limit: int = 200, offset: int = 0) -> list[Account]:
        if limit <= 0:
            return []
        offset = max(offset, 0)
        with self._lock:
            ordered = sorted(
                self._accounts.values(),
                key=lambda a: (a.created_at.timestamp() if a.created_at else 0, str(a.id)),
                reverse=True,
            )
        return ordered[offset : offset + limit]

    def ping(self) -> bool:
        return True

    # =========================================================
    # Escritura
    # =========================================================
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
        normalized = normalize_email(email)
        with self._lock:
            if self._find_by_email(normalized) is not None:
                raise ConflictError("Ya existe una cuenta con ese email")
            now = self._clock()
            account = Account(
                id=uuid4(),
                email=normalized,
                password_hash=password_hash,
                role=role,
                is_active=is_active,
                first_name=first_name,
                last_name=last_name,
                phone=phone or "",
                created_at=now,
                updated_at=now,
            )
            self._accounts[account.id] = account
            return account

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
        changes = {
            key: value
            for key, value in (
                ("role", role),
                ("is_active", is_active),
                ("password_hash", password_hash),
                ("first_name", first_name),
                ("last_name", last_name),
                ("phone", phone),
            )
            if value is not None
        }
        with self._lock:
            if not changes:
                return self._accounts.get(account_id)
            return self._replace(account_id, **changes)

    def delete_account(self, account_id: UUID) -> bool:
        with self._lock:
            return self._accounts.pop(account_id, None) is not None

    # =========================================================
    # Lockout (atómico bajo Lock)
    # =========================================================
    def register_failed_login(
        self, account_id: UUID, *, policy: LockoutPolicy, now: datetime
    ) -> Optional[Account]:
        with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                return None
            state = policy.next_failure(
                current.failed_login_count, current.locked_until, now
            )
            return self._replace(
                account_id,
                failed_login_count=state.failed_login_count,
                locked_until=state.locked_until,
            )

    def register_successful_login(
        self, account_id: UUID, *, now: datetime
    ) -> Optional[Account]:
        with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                return None
            if current.locked_until is not None and current.locked_until > now:
                # R: un fallo concurrente bloqueó la cuenta mientras se verificaba
                return None
            return self._replace(
                account_id,
                failed_login_count=0,
                locked_until=None,
                last_login_at=now,
            )

    def bump_token_version(self, account_id: UUID) -> Optional[Account]:
        with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                return None
            return self._replace(account_id, token_version=current.token_version + 1)
