"""
Name: Register Use Case Tests

Responsibilities:
  - Role by customer type, profile creation
  - Duplicate email -> ConflictError with no new account
  - Profile failure -> compensating delete (no orphaned account)
"""

from unittest.mock import MagicMock

import pytest

from app.application.usecases.auth import (
    BusinessCustomerData,
    IndividualCustomerData,
    RegisterInput,
    RegisterUseCase,
)
from app.crosscutting.exceptions import (
    ConflictError,
    DatabaseError,
    PasswordFormatError,
    ServerError,
    ValidationError,
)
from app.domain.entities import (
    BusinessCustomerProfile,
    ContactPerson,
    CustomerType,
    IndividualCustomerProfile,
)
from app.identity.accounts import AccountRole

pytestmark = pytest.mark.unit


@pytest.fixture
def use_case(container):
    return container.register_use_case()


def _input(**overrides) -> RegisterInput:
    data = dict(
        email="Kunde@Example.de",
        password="sicher-1234",
        first_name="Max",
        last_name="Mustermann",
    )
    data.update(overrides)
    return RegisterInput(**data)


def test_individual_registration_creates_account_and_profile(use_case, container):
    result = use_case.execute(_input(customer=IndividualCustomerData()))

    assert result.account.email == "kunde@example.de"
    assert result.account.role is AccountRole.INDIVIDUAL_CUSTOMER
    profile = container.profiles.get_profile_by_account(result.account.id)
    assert isinstance(profile, IndividualCustomerProfile)
    assert profile.email == "kunde@example.de"
    assert container.issuer.decode_access(result.access.token).account_id == result.account.id


def test_business_registration_uses_business_role(use_case, container):
    result = use_case.execute(
        _input(
            customer_type=CustomerType.BUSINESS,
            customer=BusinessCustomerData(
                company_name="Reisen GmbH",
                contact_persons=(ContactPerson(first_name="Eva", last_name="Roth"),),
            ),
        )
    )

    assert result.account.role is AccountRole.BUSINESS_CUSTOMER
    profile = container.profiles.get_profile_by_account(result.account.id)
    assert isinstance(profile, BusinessCustomerProfile)
    assert profile.company_name == "Reisen GmbH"
    assert profile.contact_persons[0].last_name == "Roth"


def test_registration_without_customer_data_skips_profile(use_case, container):
    result = use_case.execute(_input())
    assert container.profiles.get_profile_by_account(result.account.id) is None


@pytest.mark.parametrize("overrides", [{"email": ""}, {"password": ""}])
def test_missing_required_fields(use_case, overrides):
    with pytest.raises(ValidationError):
        use_case.execute(_input(**overrides))


def test_business_requires_company_name(use_case, container):
    with pytest.raises(ValidationError):
        use_case.execute(
            _input(
                customer_type=CustomerType.BUSINESS,
                customer=BusinessCustomerData(company_name="  "),
            )
        )
    assert container.accounts.list_accounts() == []


def test_weak_password_is_rejected(use_case):
    with pytest.raises(PasswordFormatError):
        use_case.execute(_input(password="kurz"))


def test_duplicate_email_is_conflict_and_creates_nothing(use_case, container):
    use_case.execute(_input())

    with pytest.raises(ConflictError):
        use_case.execute(_input(email="KUNDE@example.de"))

    assert len(container.accounts.list_accounts()) == 1


def test_profile_failure_deletes_account(container):
    profiles = MagicMock()
    profiles.create_profile.side_effect = DatabaseError("insert failed")
    use_case = RegisterUseCase(
        container.accounts,
        profiles,
        verifier=container.verifier,
        issuer=container.issuer,
    )

    with pytest.raises(ServerError):
        use_case.execute(_input(customer=IndividualCustomerData()))

    assert container.accounts.get_account_by_email("kunde@example.de") is None


def test_compensation_failure_still_returns_original_error(container):
    accounts = MagicMock(wraps=container.accounts)
    accounts.delete_account.side_effect = RuntimeError("db down")
    profiles = MagicMock()
    profiles.create_profile.side_effect = RuntimeError("boom")
    use_case = RegisterUseCase(
        accounts,
        profiles,
        verifier=container.verifier,
        issuer=container.issuer,
    )

    with pytest.raises(ServerError):
        use_case.execute(_input(customer=IndividualCustomerData()))

    accounts.delete_account.assert_called_once()
