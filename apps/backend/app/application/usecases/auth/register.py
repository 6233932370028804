"""
===============================================================================
USE CASE: Register Customer
===============================================================================

Business Goal:
    Alta self-service de clientes: crear la Account (rol según tipo de
    cliente) y su perfil vinculado, y emitir tokens de sesión.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    RegisterUseCase

Responsibilities:
    - Validar campos obligatorios y política de password.
    - Rechazar emails duplicados (ConflictError) sin crear nada.
    - Resolver rol: business -> business_customer, resto -> individual_customer.
    - Crear perfil Individual/Business vinculado a la cuenta.
    - Acción compensatoria: si el perfil falla, borrar la cuenta recién creada
      (best-effort) y responder ServerError.

Collaborators:
    - AccountRepository
    - CustomerProfileRepository
    - PasswordVerifier (hash)
    - TokenIssuer

Notas:
    - Sin customer data no se crea perfil (solo la cuenta).
    - Si el borrado compensatorio también falla se loguea y se devuelve el
      error original.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union
from uuid import UUID, uuid4

from ....crosscutting.exceptions import FleetError, ServerError, ValidationError
from ....crosscutting.logger import logger
from ....domain.entities import (
    Address,
    BusinessCustomerProfile,
    ContactPerson,
    CustomerProfile,
    CustomerType,
    IndividualCustomerProfile,
    OrganizationType,
)
from ....domain.repositories import AccountRepository, CustomerProfileRepository
from ....identity.accounts import AccountRole, normalize_email
from ....identity.passwords import PasswordVerifier
from ....identity.tokens import TokenIssuer
from .login import AuthResult

PROFILE_FAILURE_MESSAGE = "Error al crear el perfil de cliente"


@dataclass(frozen=True)
class IndividualCustomerData:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: Address = field(default_factory=Address)


@dataclass(frozen=True)
class BusinessCustomerData:
    company_name: str = ""
    organization_type: OrganizationType = OrganizationType.COMPANY
    email: str = ""
    phone: str = ""
    vat_number: str = ""
    address: Address = field(default_factory=Address)
    contact_persons: tuple[ContactPerson, ...] = ()


CustomerData = Union[IndividualCustomerData, BusinessCustomerData]


@dataclass(frozen=True)
class RegisterInput:
    email: str
    password: str
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    customer_type: CustomerType = CustomerType.INDIVIDUAL
    customer: CustomerData | None = None


def role_for_customer_type(customer_type: CustomerType) -> AccountRole:
    if customer_type == CustomerType.BUSINESS:
        return AccountRole.BUSINESS_CUSTOMER
    return AccountRole.INDIVIDUAL_CUSTOMER


class RegisterUseCase:
    def __init__(
        self,
        accounts: AccountRepository,
        profiles: CustomerProfileRepository,
        *,
        verifier: PasswordVerifier,
        issuer: TokenIssuer,
    ) -> None:
        self._accounts = accounts
        self._profiles = profiles
        self._verifier = verifier
        self._issuer = issuer

    def execute(self, input_data: RegisterInput) -> AuthResult:
        email = normalize_email(input_data.email)
        if not email or not input_data.password:
            raise ValidationError("Completá todos los campos obligatorios")
        if isinstance(input_data.customer, BusinessCustomerData) and not (
            input_data.customer.company_name or ""
        ).strip():
            raise ValidationError("El nombre de la empresa es obligatorio")

        password_hash = self._verifier.hash(input_data.password)
        role = role_for_customer_type(input_data.customer_type)

        # ConflictError si el email ya existe: no se crea nada
        account = self._accounts.create_account(
            email=email,
            password_hash=password_hash,
            role=role,
            first_name=input_data.first_name.strip(),
            last_name=input_data.last_name.strip(),
            phone=input_data.phone or "",
        )
        logger.info(
            "Account registered",
            extra={"account_id": str(account.id), "role": role.value},
        )

        if input_data.customer is not None:
            profile = self._build_profile(account.id, email, input_data.customer)
            try:
                self._profiles.create_profile(profile)
            except FleetError as exc:
                self._compensate(account.id)
                raise ServerError(
                    PROFILE_FAILURE_MESSAGE, error_id=exc.error_id, original_error=exc
                ) from exc
            except Exception as exc:
                self._compensate(account.id)
                raise ServerError(PROFILE_FAILURE_MESSAGE, original_error=exc) from exc

        return AuthResult(
            account=account,
            access=self._issuer.issue(account),
            refresh=self._issuer.issue_refresh(account),
        )

    @staticmethod
    def _build_profile(
        account_id: UUID, account_email: str, data: CustomerData
    ) -> CustomerProfile:
        if isinstance(data, BusinessCustomerData):
            return BusinessCustomerProfile(
                id=uuid4(),
                account_id=account_id,
                company_name=data.company_name.strip(),
                organization_type=data.organization_type,
                email=normalize_email(data.email) or account_email,
                phone=data.phone or "",
                vat_number=data.vat_number or "",
                address=data.address,
                contact_persons=tuple(data.contact_persons),
            )
        return IndividualCustomerProfile(
            id=uuid4(),
            account_id=account_id,
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=normalize_email(data.email) or account_email,
            phone=data.phone or "",
            address=data.address,
        )

    def _compensate(self, account_id: UUID) -> None:
        """Borra la cuenta huérfana; un fallo acá solo se loguea."""
        logger.warning(
            "Customer profile creation failed; deleting account",
            extra={"account_id": str(account_id)},
        )
        try:
            self._accounts.delete_account(account_id)
        except Exception:
            logger.exception(
                "Compensating account delete failed",
                extra={"account_id": str(account_id)},
            )
