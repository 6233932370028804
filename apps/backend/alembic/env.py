"""
============================================================
TARJETA CRC — alembic/env.py (Entorno de migraciones)
============================================================
Responsibilities:
  - Correr las migraciones del Credential Store (online / offline).
  - Tomar la URL de la misma fuente que la API: Settings.database_url
    (DATABASE_URL / .env), con driver psycopg 3.

Collaborators:
  - app.crosscutting.config.get_settings
  - SQLAlchemy (create_engine, make_url)

Policy:
  - Migraciones escritas a mano (op.create_table); sin metadata ORM,
    por eso autogenerate no aplica.
============================================================
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

from app.crosscutting.config import get_settings

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def database_url() -> str:
    raw = (get_settings().database_url or "").strip()
    if not raw:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    url = make_url(raw.replace("postgres://", "postgresql://", 1))
    if url.drivername == "postgresql":
        url = url.set(drivername="postgresql+psycopg")
    return url.render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    """Emite el SQL sin conectarse (`alembic upgrade head --sql`)."""
    context.configure(
        url=database_url(),
        target_metadata=None,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
