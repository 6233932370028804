"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio (API pública del dominio)

Colaboradores:
    - domain.entities: perfiles de cliente (individual / business), Address
    - domain.repositories: puertos de persistencia (cuentas, perfiles)

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .entities import (
    DEFAULT_COUNTRY,
    Address,
    BusinessCustomerProfile,
    ContactPerson,
    CustomerProfile,
    CustomerType,
    IndividualCustomerProfile,
    OrganizationType,
)
from .repositories import AccountRepository, CustomerProfileRepository

__all__ = [
    # Entities
    "DEFAULT_COUNTRY",
    "Address",
    "ContactPerson",
    "CustomerType",
    "OrganizationType",
    "IndividualCustomerProfile",
    "BusinessCustomerProfile",
    "CustomerProfile",
    # Repository Interfaces (Ports)
    "AccountRepository",
    "CustomerProfileRepository",
]
