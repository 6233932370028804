"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/customer_profile.py
============================================================
Class: InMemoryCustomerProfileRepository

Responsibilities:
  - Guardar perfiles de cliente en memoria (tests / desarrollo local).
  - Un perfil por cuenta.

Collaborators:
  - domain.entities (perfiles)
  - domain.repositories.CustomerProfileRepository
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict, Optional
from uuid import UUID

from ....crosscutting.exceptions import ConflictError
from ....domain.entities import CustomerProfile
from ....domain.repositories import CustomerProfileRepository
from ....identity.lockout import Clock, utc_now


class InMemoryCustomerProfileRepository(CustomerProfileRepository):
    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._lock = Lock()
        self._profiles: Dict[UUID, CustomerProfile] = {}
        self._clock = clock

    def create_profile(self, profile: CustomerProfile) -> CustomerProfile:
        with self._lock:
            if profile.account_id in self._profiles:
                raise ConflictError("La cuenta ya tiene un perfil de cliente")
            stored = replace(profile, created_at=profile.created_at or self._clock())
            self._profiles[profile.account_id] = stored
            return stored

    def get_profile_by_account(self, account_id: UUID) -> Optional[CustomerProfile]:
        with self._lock:
            return self._profiles.get(account_id)

    def delete_profiles_for_account(self, account_id: UUID) -> int:
        with self._lock:
            return 1 if self._profiles.pop(account_id, None) is not None else 0
