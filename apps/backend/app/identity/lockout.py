"""
===============================================================================
TARJETA CRC — identity/lockout.py
===============================================================================

Módulo:
    Lockout Policy (bloqueo temporal por intentos fallidos)

Responsabilidades:
    - Decidir si una cuenta está bloqueada en un instante dado.
    - Calcular el siguiente estado (contador, locked_until) tras un fallo.
    - Ser la única fuente de verdad de los parámetros (max intentos, ventana).

Colaboradores:
    - application/usecases/auth/login.py: consulta is_locked() antes de verificar.
    - infrastructure/repositories/*: aplican next_failure() de forma atómica.

Estados:
    Unlocked --(contador llega a max_attempts)--> Locked
    Locked   --(now >= locked_until)-----------> Unlocked (sin acción explícita)

Reglas:
    - Un fallo con un bloqueo ya vencido reinicia el contador en 1 y limpia
      locked_until; el umbral se evalúa igual que en cualquier otro fallo.
    - Login exitoso: contador = 0, locked_until = None, solo si no hay
      un bloqueo vigente en ese instante.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class LockoutState:
    failed_login_count: int
    locked_until: datetime | None


@dataclass(frozen=True, slots=True)
class LockoutPolicy:
    max_attempts: int = 5
    lock_duration: timedelta = timedelta(minutes=15)

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be greater than 0")
        if self.lock_duration <= timedelta(0):
            raise ValueError("lock_duration must be positive")

    @classmethod
    def from_settings(cls, settings) -> "LockoutPolicy":
        return cls(
            max_attempts=settings.lockout_max_attempts,
            lock_duration=timedelta(minutes=settings.lockout_duration_minutes),
        )

    def is_locked(self, locked_until: datetime | None, now: datetime) -> bool:
        return locked_until is not None and locked_until > now

    def next_failure(
        self, failed_login_count: int, locked_until: datetime | None, now: datetime
    ) -> LockoutState:
        """Estado resultante de registrar un fallo de password en `now`."""
        if locked_until is not None and locked_until <= now:
            # R: bloqueo vencido -> el fallo actual cuenta como el primero
            failed_login_count, locked_until = 0, None

        count = failed_login_count + 1
        if count >= self.max_attempts and locked_until is None:
            return LockoutState(
                failed_login_count=count, locked_until=now + self.lock_duration
            )
        return LockoutState(failed_login_count=count, locked_until=locked_until)
