"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/customer_profile.py
============================================================
Class: PostgresCustomerProfileRepository

Responsibilities:
  - Persistir perfiles `individual_customers` / `business_customers`.
  - Serializar contact persons como JSONB.
  - Envolver fallos en DatabaseError (el registro compensa con delete).

Collaborators:
  - psycopg_pool.ConnectionPool
  - domain.entities (perfiles, Address, ContactPerson)
============================================================
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional
from uuid import UUID

from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....domain.entities import (
    Address,
    BusinessCustomerProfile,
    ContactPerson,
    CustomerProfile,
    IndividualCustomerProfile,
    OrganizationType,
)

_ADDRESS_COLUMNS = "street, house_number, city, postal_code, country"

_INDIVIDUAL_COLUMNS = (
    f"id, account_id, first_name, last_name, email, phone, {_ADDRESS_COLUMNS}, "
    "created_at"
)
_BUSINESS_COLUMNS = (
    "id, account_id, company_name, organization_type, email, phone, vat_number, "
    f"{_ADDRESS_COLUMNS}, contact_persons, created_at"
)


def _address_params(address: Address) -> tuple:
    return (
        address.street,
        address.house_number,
        address.city,
        address.postal_code,
        address.country,
    )


def _row_to_individual(row: tuple) -> IndividualCustomerProfile:
    return IndividualCustomerProfile(
        id=row[0],
        account_id=row[1],
        first_name=row[2],
        last_name=row[3],
        email=row[4],
        phone=row[5] or "",
        address=Address(*row[6:11]),
        created_at=row[11],
    )


def _row_to_business(row: tuple) -> BusinessCustomerProfile:
    return BusinessCustomerProfile(
        id=row[0],
        account_id=row[1],
        company_name=row[2],
        organization_type=OrganizationType(row[3]),
        email=row[4],
        phone=row[5] or "",
        vat_number=row[6] or "",
        address=Address(*row[7:12]),
        contact_persons=tuple(ContactPerson(**cp) for cp in (row[12] or [])),
        created_at=row[13],
    )


class PostgresCustomerProfileRepository:
    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def create_profile(self, profile: CustomerProfile) -> CustomerProfile:
        if isinstance(profile, BusinessCustomerProfile):
            query = f"""
                INSERT INTO business_customers ({_BUSINESS_COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, now())
                RETURNING {_BUSINESS_COLUMNS}
            """
            params = (
                profile.id,
                profile.account_id,
                profile.company_name,
                profile.organization_type.value,
                profile.email,
                profile.phone,
                profile.vat_number,
                *_address_params(profile.address),
                Jsonb([asdict(cp) for cp in profile.contact_persons]),
            )
            mapper = _row_to_business
        else:
            query = f"""
                INSERT INTO individual_customers ({_INDIVIDUAL_COLUMNS})
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, now())
                RETURNING {_INDIVIDUAL_COLUMNS}
            """
            params = (
                profile.id,
                profile.account_id,
                profile.first_name,
                profile.last_name,
                profile.email,
                profile.phone,
                *_address_params(profile.address),
            )
            mapper = _row_to_individual

        try:
            with self._pool.connection() as conn:
                row = conn.execute(query, params).fetchone()
        except Exception as exc:
            logger.exception(
                "PostgresCustomerProfileRepository: create_profile failed",
                extra={"account_id": str(profile.account_id), "error": str(exc)},
            )
            raise DatabaseError(
                "No se pudo crear el perfil de cliente", original_error=exc
            ) from exc
        return mapper(row)

    def get_profile_by_account(self, account_id: UUID) -> Optional[CustomerProfile]:
        try:
            with self._pool.connection() as conn:
                row = conn.execute(
                    f"SELECT {_INDIVIDUAL_COLUMNS} FROM individual_customers "
                    "WHERE account_id = %s",
                    (account_id,),
                ).fetchone()
                if row:
                    return _row_to_individual(row)
                row = conn.execute(
                    f"SELECT {_BUSINESS_COLUMNS} FROM business_customers "
                    "WHERE account_id = %s",
                    (account_id,),
                ).fetchone()
        except Exception as exc:
            logger.exception(
                "PostgresCustomerProfileRepository: get_profile_by_account failed",
                extra={"account_id": str(account_id), "error": str(exc)},
            )
            raise DatabaseError(
                "No se pudo leer el perfil de cliente", original_error=exc
            ) from exc
        return _row_to_business(row) if row else None

    def delete_profiles_for_account(self, account_id: UUID) -> int:
        try:
            with self._pool.connection() as conn:
                deleted = 0
                for table in ("individual_customers", "business_customers"):
                    cur = conn.execute(
                        f"DELETE FROM {table} WHERE account_id = %s", (account_id,)
                    )
                    deleted += cur.rowcount or 0
                return deleted
        except Exception as exc:
            logger.exception(
                "PostgresCustomerProfileRepository: delete_profiles_for_account failed",
                extra={"account_id": str(account_id), "error": str(exc)},
            )
            raise DatabaseError(
                "No se pudo borrar el perfil de cliente", original_error=exc
            ) from exc
