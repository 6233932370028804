"""
===============================================================================
TARJETA CRC — identity/passwords.py
===============================================================================

Módulo:
    Password Verifier (Argon2id)

Responsabilidades:
    - Hashear passwords con salt por registro.
    - Verificar plaintext vs hash en tiempo constante (lo hace argon2-cffi).
    - Distinguir "no coincide" (False) de "input malformado" (excepción).

Colaboradores:
    - application/usecases/auth/login.py
    - application/usecases/auth/register.py
    - api/admin_routes.py (reset de password)

Reglas:
    - Password incorrecto NUNCA lanza: devuelve False.
    - Plaintext vacío -> PasswordFormatError (400).
    - Hash ilegible -> CorruptPasswordHashError (500).
===============================================================================
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from ..crosscutting.exceptions import CorruptPasswordHashError, PasswordFormatError

MIN_PASSWORD_LENGTH: int = 8


class PasswordVerifier:
    """Wrapper fino sobre argon2.PasswordHasher (inyectable en use cases)."""

    def __init__(self, hasher: PasswordHasher | None = None):
        self._hasher = hasher or PasswordHasher()

    def hash(self, plaintext: str) -> str:
        validate_password_policy(plaintext)
        return self._hasher.hash(plaintext)

    def verify(self, plaintext: str, password_hash: str) -> bool:
        if not plaintext:
            raise PasswordFormatError("La contraseña es obligatoria")
        if not password_hash:
            raise CorruptPasswordHashError("Hash de contraseña vacío")
        try:
            return self._hasher.verify(password_hash, plaintext)
        except VerifyMismatchError:
            return False
        except InvalidHashError as exc:
            raise CorruptPasswordHashError(
                "Hash de contraseña ilegible", original_error=exc
            ) from exc
        except VerificationError:
            return False


def validate_password_policy(plaintext: str) -> None:
    if not plaintext or len(plaintext) < MIN_PASSWORD_LENGTH:
        raise PasswordFormatError(
            f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"
        )
