"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades de perfil de cliente (creadas en el registro)

Responsabilidades:
    - Modelar perfiles Individual y Business vinculados a una Account.
    - Modelar Address y ContactPerson como value objects simples.

Colaboradores:
    - application/usecases/auth/register.py: construye el perfil.
    - infrastructure/repositories/*/customer_profile.py: persisten perfiles.

Notas:
    - Sin dependencias de infraestructura.
    - country tiene default "Deutschland" (mercado del back office).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union
from uuid import UUID

DEFAULT_COUNTRY = "Deutschland"


class CustomerType(str, Enum):
    INDIVIDUAL = "individual"
    BUSINESS = "business"


class OrganizationType(str, Enum):
    COMPANY = "COMPANY"
    SCHOOL = "SCHOOL"
    GOVERNMENT = "GOVERNMENT"
    NON_PROFIT = "NON_PROFIT"
    ASSOCIATION = "ASSOCIATION"
    OTHER = "OTHER"


@dataclass(frozen=True, slots=True)
class Address:
    street: str = ""
    house_number: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = DEFAULT_COUNTRY


@dataclass(frozen=True, slots=True)
class ContactPerson:
    first_name: str
    last_name: str
    position: str = ""
    phone: str = ""
    email: str = ""
    is_primary: bool = False


@dataclass(frozen=True, slots=True)
class IndividualCustomerProfile:
    id: UUID
    account_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    address: Address = field(default_factory=Address)
    created_at: datetime | None = None

    @property
    def customer_type(self) -> CustomerType:
        return CustomerType.INDIVIDUAL


@dataclass(frozen=True, slots=True)
class BusinessCustomerProfile:
    id: UUID
    account_id: UUID
    company_name: str
    email: str
    organization_type: OrganizationType = OrganizationType.COMPANY
    phone: str = ""
    vat_number: str = ""
    address: Address = field(default_factory=Address)
    contact_persons: tuple[ContactPerson, ...] = ()
    created_at: datetime | None = None

    @property
    def customer_type(self) -> CustomerType:
        return CustomerType.BUSINESS


CustomerProfile = Union[IndividualCustomerProfile, BusinessCustomerProfile]
