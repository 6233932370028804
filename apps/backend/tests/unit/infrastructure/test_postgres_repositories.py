"""
Name: Postgres Repository Tests

Responsibilities:
  - Row mapping -> Account / customer profiles
  - ON CONFLICT without row -> ConflictError
  - Lockout SQL: threshold after expiry, success guarded by an active lock
  - Driver failures wrapped in DatabaseError
  - Offline unit tests (mocked pool, no real DB)
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from app.crosscutting.exceptions import ConflictError, DatabaseError
from app.domain.entities import (
    Address,
    BusinessCustomerProfile,
    ContactPerson,
    OrganizationType,
)
from app.identity.accounts import AccountRole
from app.identity.lockout import LockoutPolicy
from app.infrastructure.repositories.postgres import (
    PostgresAccountRepository,
    PostgresCustomerProfileRepository,
)

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def conn():
    return MagicMock()


@pytest.fixture
def pool(conn):
    mock_pool = MagicMock()
    mock_pool.connection.return_value.__enter__.return_value = conn
    return mock_pool


def _account_row(account_id=None, *, role="driver", failed=0, locked_until=None):
    return (
        account_id or uuid4(),
        "fahrer@fleet.test",
        "$argon2id$hash",
        role,
        True,
        "Jonas",
        None,
        None,
        failed,
        locked_until,
        None,
        3,
        NOW,
        NOW,
    )


class TestPostgresAccountRepository:
    def test_get_by_email_normalizes_and_maps(self, pool, conn):
        row = _account_row()
        conn.execute.return_value.fetchone.return_value = row

        account = PostgresAccountRepository(pool).get_account_by_email(" Fahrer@Fleet.TEST ")

        _, params = conn.execute.call_args.args
        assert params == ("fahrer@fleet.test",)
        assert account.id == row[0]
        assert account.role is AccountRole.DRIVER
        assert account.last_name == ""
        assert account.token_version == 3

    def test_missing_row_is_none(self, pool, conn):
        conn.execute.return_value.fetchone.return_value = None
        assert PostgresAccountRepository(pool).get_account_by_id(uuid4()) is None

    def test_unknown_role_in_row_is_database_error(self, pool, conn):
        conn.execute.return_value.fetchone.return_value = _account_row(role="root")

        with pytest.raises(DatabaseError, match="Invalid account role"):
            PostgresAccountRepository(pool).get_account_by_id(uuid4())

    def test_create_without_returned_row_is_conflict(self, pool, conn):
        conn.execute.return_value.fetchone.return_value = None

        with pytest.raises(ConflictError):
            PostgresAccountRepository(pool).create_account(
                email="fahrer@fleet.test", password_hash="h", role=AccountRole.DRIVER
            )

        query, _ = conn.execute.call_args.args
        assert "ON CONFLICT (email) DO NOTHING" in query

    def test_driver_error_is_wrapped(self, pool, conn):
        conn.execute.side_effect = RuntimeError("connection refused")

        with pytest.raises(DatabaseError) as excinfo:
            PostgresAccountRepository(pool).list_accounts()

        assert isinstance(excinfo.value.original_error, RuntimeError)

    def test_update_builds_set_clause_from_given_fields(self, pool, conn):
        account_id = uuid4()
        conn.execute.return_value.fetchone.return_value = _account_row(account_id)

        PostgresAccountRepository(pool).update_account(
            account_id, role=AccountRole.MANAGER, is_active=False
        )

        query, params = conn.execute.call_args.args
        assert "role = %s" in query
        assert "is_active = %s" in query
        assert "password_hash" not in query
        assert list(params) == ["manager", False, account_id]

    def test_register_failed_login_passes_policy(self, pool, conn):
        account_id = uuid4()
        lock_until = NOW + timedelta(minutes=15)
        conn.execute.return_value.fetchone.return_value = _account_row(
            account_id, failed=5, locked_until=lock_until
        )

        account = PostgresAccountRepository(pool).register_failed_login(
            account_id, policy=LockoutPolicy(), now=NOW
        )

        _, params = conn.execute.call_args.args
        assert params == {
            "id": account_id,
            "now": NOW,
            "max_attempts": 5,
            "lock_until": lock_until,
        }
        assert account.failed_login_count == 5
        assert account.locked_until == lock_until

    def test_failure_sql_applies_threshold_after_expired_lock(self, pool, conn):
        conn.execute.return_value.fetchone.return_value = _account_row()

        PostgresAccountRepository(pool).register_failed_login(
            uuid4(), policy=LockoutPolicy(max_attempts=1), now=NOW
        )

        query, params = conn.execute.call_args.args
        assert "CASE WHEN 1 >= %(max_attempts)s THEN %(lock_until)s END" in query
        assert params["max_attempts"] == 1

    def test_success_update_is_guarded_by_active_lock(self, pool, conn):
        account_id = uuid4()
        conn.execute.return_value.fetchone.return_value = _account_row(account_id)

        account = PostgresAccountRepository(pool).register_successful_login(
            account_id, now=NOW
        )

        query, params = conn.execute.call_args.args
        assert "AND (locked_until IS NULL OR locked_until <= %(now)s)" in query
        assert params == {"id": account_id, "now": NOW}
        assert account.id == account_id

    def test_success_refused_by_lock_returns_none(self, pool, conn):
        conn.execute.return_value.fetchone.return_value = None

        assert (
            PostgresAccountRepository(pool).register_successful_login(uuid4(), now=NOW)
            is None
        )

    def test_ping(self, pool, conn):
        conn.execute.return_value.fetchone.return_value = (1,)
        assert PostgresAccountRepository(pool).ping() is True

    def test_delete_reports_whether_row_existed(self, pool, conn):
        repo = PostgresAccountRepository(pool)

        conn.execute.return_value.fetchone.return_value = (uuid4(),)
        assert repo.delete_account(uuid4()) is True

        conn.execute.return_value.fetchone.return_value = None
        assert repo.delete_account(uuid4()) is False


class TestPostgresCustomerProfileRepository:
    def test_create_business_profile_round_trips_contacts(self, pool, conn):
        profile = BusinessCustomerProfile(
            id=uuid4(),
            account_id=uuid4(),
            company_name="Reisen GmbH",
            email="info@reisen.de",
            organization_type=OrganizationType.SCHOOL,
            address=Address(city="Köln"),
            contact_persons=(ContactPerson(first_name="Eva", last_name="Roth", is_primary=True),),
        )
        conn.execute.return_value.fetchone.return_value = (
            profile.id,
            profile.account_id,
            "Reisen GmbH",
            "SCHOOL",
            "info@reisen.de",
            None,
            None,
            "",
            "",
            "Köln",
            "",
            "Deutschland",
            [{"first_name": "Eva", "last_name": "Roth", "is_primary": True}],
            NOW,
        )

        stored = PostgresCustomerProfileRepository(pool).create_profile(profile)

        query, _ = conn.execute.call_args.args
        assert "INSERT INTO business_customers" in query
        assert stored.organization_type is OrganizationType.SCHOOL
        assert stored.address.city == "Köln"
        assert stored.contact_persons[0].is_primary is True
        assert stored.created_at == NOW

    def test_get_profile_falls_back_to_business_table(self, pool, conn):
        conn.execute.return_value.fetchone.side_effect = [None, None]

        assert PostgresCustomerProfileRepository(pool).get_profile_by_account(uuid4()) is None
        assert conn.execute.call_count == 2

    def test_delete_sums_both_tables(self, pool, conn):
        conn.execute.return_value.rowcount = 1
        assert PostgresCustomerProfileRepository(pool).delete_profiles_for_account(uuid4()) == 2

    def test_driver_failure_is_database_error(self, pool, conn):
        conn.execute.side_effect = RuntimeError("fk violation")

        with pytest.raises(DatabaseError):
            PostgresCustomerProfileRepository(pool).delete_profiles_for_account(uuid4())
