"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_accounts_and_customers (Alembic Migration)

Responsibilities:
  - Crear el Credential Store (`accounts`) con estado de lockout y
    token_version.
  - Crear los perfiles de cliente (`individual_customers`,
    `business_customers`) ligados a la cuenta.

Collaborators:
  - PostgreSQL 16+
  - infrastructure.repositories.postgres (usa este esquema como contrato)

Policy:
  - Migración BASELINE. Evolución futura con migraciones aditivas (002+).
  - Convención de nombres:
      pk_<tabla>, uq_<tabla>_<col>, ix_<tabla>_<col>,
      fk_<tabla>_<col>__<ref_tabla>
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_accounts_and_customers"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _address_columns() -> list[sa.Column]:
    return [
        sa.Column("street", sa.String(255), nullable=False, server_default=""),
        sa.Column("house_number", sa.String(20), nullable=False, server_default=""),
        sa.Column("city", sa.String(100), nullable=False, server_default=""),
        sa.Column("postal_code", sa.String(20), nullable=False, server_default=""),
        sa.Column(
            "country",
            sa.String(100),
            nullable=False,
            server_default=sa.text("'Deutschland'"),
        ),
    ]


def upgrade() -> None:
    # =========================================================
    # 1) ACCOUNTS (Credential Store)
    # =========================================================
    op.create_table(
        "accounts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        # Email normalizado (trim + lower) por la aplicación.
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column(
            "is_active",
            sa.Boolean,
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("phone", sa.String(50), nullable=False, server_default=""),
        # Lockout Policy
        sa.Column(
            "failed_login_count",
            sa.Integer,
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        # Se incrementa para invalidar refresh tokens emitidos.
        sa.Column(
            "token_version",
            sa.Integer,
            nullable=False,
            server_default=sa.text("0"),
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_accounts"),
        sa.UniqueConstraint("email", name="uq_accounts_email"),
        sa.CheckConstraint(
            "failed_login_count >= 0", name="ck_accounts_failed_login_count"
        ),
        sa.CheckConstraint(
            "role IN ('admin','manager','dispatcher','driver',"
            "'individual_customer','business_customer')",
            name="ck_accounts_role",
        ),
    )
    op.create_index("ix_accounts_role", "accounts", ["role"])
    op.create_index("ix_accounts_created_at", "accounts", ["created_at"])

    # =========================================================
    # 2) CUSTOMER PROFILES
    # =========================================================
    op.create_table(
        "individual_customers",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, server_default=""),
        sa.Column("phone", sa.String(50), nullable=False, server_default=""),
        *_address_columns(),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_individual_customers"),
        sa.UniqueConstraint("account_id", name="uq_individual_customers_account_id"),
        sa.ForeignKeyConstraint(
            ["account_id"],
            ["accounts.id"],
            name="fk_individual_customers_account_id__accounts",
            ondelete="CASCADE",
        ),
    )

    op.create_table(
        "business_customers",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column(
            "organization_type",
            sa.String(50),
            nullable=False,
            server_default=sa.text("'COMPANY'"),
        ),
        sa.Column("email", sa.String(320), nullable=False, server_default=""),
        sa.Column("phone", sa.String(50), nullable=False, server_default=""),
        sa.Column("vat_number", sa.String(50), nullable=False, server_default=""),
        *_address_columns(),
        sa.Column(
            "contact_persons",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_business_customers"),
        sa.UniqueConstraint("account_id", name="uq_business_customers_account_id"),
        sa.ForeignKeyConstraint(
            ["account_id"],
            ["accounts.id"],
            name="fk_business_customers_account_id__accounts",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_business_customers_company_name", "business_customers", ["company_name"]
    )


def downgrade() -> None:
    op.drop_table("business_customers")
    op.drop_table("individual_customers")
    op.drop_table("accounts")
