"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/account.py
============================================================
Class: PostgresAccountRepository

Responsibilities:
  - Credential Store sobre la tabla `accounts` (contrato con migraciones).
  - Mapear filas crudas -> `Account` y validar `AccountRole`.
  - Aplicar la Lockout Policy de forma atómica (un único UPDATE ... RETURNING).
  - Rechazar emails duplicados con ConflictError.
  - Exponer fallos consistentes vía `DatabaseError` con logging estructurado.

Collaborators:
  - psycopg_pool.ConnectionPool (inyectado por el container)
  - identity.accounts.Account / AccountRole
  - identity.lockout.LockoutPolicy
  - crosscutting.exceptions.DatabaseError / ConflictError

Constraints / Notes:
  - Repositorio puro: NO define reglas de negocio (quién puede loguear, etc.).
  - Retorna None cuando no existe el recurso.
  - SQL parametrizado siempre (nunca interpolar input de usuario).
  - Emails se persisten normalizados (trim + lower).
  - Orden estable en listados: created_at DESC, id DESC.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID, uuid4

from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import ConflictError, DatabaseError
from ....crosscutting.logger import logger
from ....identity.accounts import Account, AccountRole, normalize_email
from ....identity.lockout import LockoutPolicy

# R: Lista explícita de columnas; si el esquema cambia se ajusta en un solo lugar.
_ACCOUNT_COLUMNS = (
    "id, email, password_hash, role, is_active, first_name, last_name, phone, "
    "failed_login_count, locked_until, last_login_at, token_version, "
    "created_at, updated_at"
)

_ACCOUNT_ORDER_BY = "created_at DESC, id DESC"

# R: Transición de la Lockout Policy expresada en SQL. Las expresiones del SET
#    leen los valores previos de la fila, por lo que el paso es atómico.
#    Con bloqueo vencido el fallo cuenta como el primero y el umbral se aplica
#    igual (max_attempts=1 vuelve a bloquear).
_REGISTER_FAILURE_SQL = f"""
    UPDATE accounts
    SET failed_login_count = CASE
            WHEN locked_until IS NOT NULL AND locked_until <= %(now)s THEN 1
            ELSE failed_login_count + 1
        END,
        locked_until = CASE
            WHEN locked_until IS NOT NULL AND locked_until <= %(now)s THEN
                CASE WHEN 1 >= %(max_attempts)s THEN %(lock_until)s END
            WHEN locked_until IS NULL
                 AND failed_login_count + 1 >= %(max_attempts)s THEN %(lock_until)s
            ELSE locked_until
        END,
        updated_at = %(now)s
    WHERE id = %(id)s
    RETURNING {_ACCOUNT_COLUMNS}
"""

# R: El reset solo aplica si no hay un bloqueo vigente en `now`; sin fila
#    devuelta el login que verificó en paralelo pierde la carrera.
_REGISTER_SUCCESS_SQL = f"""
    UPDATE accounts
    SET failed_login_count = 0,
        locked_until = NULL,
        last_login_at = %(now)s,
        updated_at = %(now)s
    WHERE id = %(id)s
      AND (locked_until IS NULL OR locked_until <= %(now)s)
    RETURNING {_ACCOUNT_COLUMNS}
"""


def _row_to_account(row: tuple) -> Account:
    """Rol inválido en DB -> DatabaseError (drift de esquema o datos corruptos)."""
    try:
        role = AccountRole(row[3])
    except ValueError as exc:
        raise DatabaseError(f"Invalid account role in database: {row[3]}") from exc

    return Account(
        id=row[0],
        email=row[1],
        password_hash=row[2],
        role=role,
        is_active=row[4],
        first_name=row[5] or "",
        last_name=row[6] or "",
        phone=row[7] or "",
        failed_login_count=row[8] or 0,
        locked_until=row[9],
        last_login_at=row[10],
        token_version=row[11] or 0,
        created_at=row[12],
        updated_at=row[13],
    )


class PostgresAccountRepository:
    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    # ============================================================
    # Helpers internos: ejecución con errores consistentes
    # ============================================================
    def _fetchone(
        self,
        *,
        query: str,
        params: Iterable[object] | dict[str, object],
        log_msg: str,
        log_extra: dict[str, object],
    ) -> tuple | None:
        try:
            with self._pool.connection() as conn:
                bound = params if isinstance(params, dict) else tuple(params)
                return conn.execute(query, bound).fetchone()
        except Exception as exc:
            logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
            raise DatabaseError(log_msg, original_error=exc) from exc

    def _fetchall(
        self,
        *,
        query: str,
        params: Iterable[object] = (),
        log_msg: str,
        log_extra: dict[str, object],
    ) -> list[tuple]:
        try:
            with self._pool.connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
            raise DatabaseError(log_msg, original_error=exc) from exc

    # ============================================================
    # Lectura
    # ============================================================
    def get_account_by_email(self, email: str) -> Optional[Account]:
        normalized = normalize_email(email)
        row = self._fetchone(
            query=f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s",
            params=(normalized,),
            log_msg="PostgresAccountRepository: get_account_by_email failed",
            log_extra={"email": normalized},
        )
        return _row_to_account(row) if row else None

    def get_account_by_id(self, account_id: UUID) -> Optional[Account]:
        row = self._fetchone(
            query=f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = %s",
            params=(account_id,),
            log_msg="PostgresAccountRepository: get_account_by_id failed",
            log_extra={"account_id": str(account_id)},
        )
        return _row_to_account(row) if row else None

    def list_accounts(self, *, limit: int = 200, offset: int = 0) -> list[Account]:
        if limit <= 0:
            return []
        offset = max(offset, 0)

        rows = self._fetchall(
            query=f"""
                SELECT {_ACCOUNT_COLUMNS}
                FROM accounts
                ORDER BY {_ACCOUNT_ORDER_BY}
                LIMIT %s OFFSET %s
            """,
            params=(limit, offset),
            log_msg="PostgresAccountRepository: list_accounts failed",
            log_extra={"limit": limit, "offset": offset},
        )
        return [_row_to_account(r) for r in rows]

    def ping(self) -> bool:
        row = self._fetchone(
            query="SELECT 1",
            params=(),
            log_msg="PostgresAccountRepository: ping failed",
            log_extra={},
        )
        return bool(row and row[0] == 1)

    # ============================================================
    # Escritura
    # ============================================================
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
        """ON CONFLICT DO NOTHING: sin fila devuelta == email ya registrado."""
        account_id = uuid4()
        normalized = normalize_email(email)

        row = self._fetchone(
            query=f"""
                INSERT INTO accounts
                    (id, email, password_hash, role, is_active,
                     first_name, last_name, phone)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (email) DO NOTHING
                RETURNING {_ACCOUNT_COLUMNS}
            """,
            params=(
                account_id,
                normalized,
                password_hash,
                role.value,
                is_active,
                first_name,
                last_name,
                phone or "",
            ),
            log_msg="PostgresAccountRepository: create_account failed",
            log_extra={"account_id": str(account_id), "role": role.value},
        )
        if not row:
            raise ConflictError("Ya existe una cuenta con ese email")
        return _row_to_account(row)

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
        updates: list[str] = []
        params: list[object] = []

        for column, value in (
            ("role", role.value if role is not None else None),
            ("is_active", is_active),
            ("password_hash", password_hash),
            ("first_name", first_name),
            ("last_name", last_name),
            ("phone", phone),
        ):
            if value is not None:
                updates.append(f"{column} = %s")
                params.append(value)

        if not updates:
            return self.get_account_by_id(account_id)

        updates.append("updated_at = now()")
        params.append(account_id)

        # updates es controlado por código (no input usuario)
        row = self._fetchone(
            query=f"""
                UPDATE accounts
                SET {", ".join(updates)}
                WHERE id = %s
                RETURNING {_ACCOUNT_COLUMNS}
            """,
            params=params,
            log_msg="PostgresAccountRepository: update_account failed",
            log_extra={"account_id": str(account_id), "updates": updates},
        )
        return _row_to_account(row) if row else None

    def delete_account(self, account_id: UUID) -> bool:
        row = self._fetchone(
            query="DELETE FROM accounts WHERE id = %s RETURNING id",
            params=(account_id,),
            log_msg="PostgresAccountRepository: delete_account failed",
            log_extra={"account_id": str(account_id)},
        )
        return row is not None

    # ============================================================
    # Lockout (atómico)
    # ============================================================
    def register_failed_login(
        self, account_id: UUID, *, policy: LockoutPolicy, now: datetime
    ) -> Optional[Account]:
        row = self._fetchone(
            query=_REGISTER_FAILURE_SQL,
            params={
                "id": account_id,
                "now": now,
                "max_attempts": policy.max_attempts,
                "lock_until": now + policy.lock_duration,
            },
            log_msg="PostgresAccountRepository: register_failed_login failed",
            log_extra={"account_id": str(account_id)},
        )
        return _row_to_account(row) if row else None

    def register_successful_login(
        self, account_id: UUID, *, now: datetime
    ) -> Optional[Account]:
        row = self._fetchone(
            query=_REGISTER_SUCCESS_SQL,
            params={"id": account_id, "now": now},
            log_msg="PostgresAccountRepository: register_successful_login failed",
            log_extra={"account_id": str(account_id)},
        )
        return _row_to_account(row) if row else None

    def bump_token_version(self, account_id: UUID) -> Optional[Account]:
        row = self._fetchone(
            query=f"""
                UPDATE accounts
                SET token_version = token_version + 1,
                    updated_at = now()
                WHERE id = %s
                RETURNING {_ACCOUNT_COLUMNS}
            """,
            params=(account_id,),
            log_msg="PostgresAccountRepository: bump_token_version failed",
            log_extra={"account_id": str(account_id)},
        )
        return _row_to_account(row) if row else None
