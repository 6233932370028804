"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool de conexiones PostgreSQL (handle explícito)

Responsabilidades:
  - Crear y cerrar el pool de conexiones a partir de Settings.
  - Acotar todas las esperas: acquire timeout, connect_timeout y
    statement_timeout por conexión.

Colaboradores:
  - psycopg_pool.ConnectionPool
  - api/main.py (lifespan: crea el pool al iniciar y lo cierra al apagar)
  - container.AppContainer (lo inyecta en los repositorios)

Principios:
  - Sin singleton de módulo: el dueño del pool es el lifespan de la app.
  - Fail-fast con config incorrecta (DATABASE_URL vacío).
===============================================================================
"""

from __future__ import annotations

from psycopg_pool import ConnectionPool

from ...crosscutting.logger import logger


def _statement_timeout_configurer(timeout_ms: int):
    def _configure_connection(conn) -> None:
        # Guardrail contra queries colgadas
        if timeout_ms > 0:
            conn.execute(f"SET statement_timeout = {int(timeout_ms)}")
            conn.commit()

    return _configure_connection


def create_pool(settings) -> ConnectionPool:
    """Crea el pool (uno por app) con límites de tamaño y tiempos."""
    if not (settings.database_url or "").strip():
        raise ValueError("DATABASE_URL is required when ACCOUNT_STORE=postgres")

    logger.info(
        "Inicializando pool DB",
        extra={
            "min_size": settings.db_pool_min_size,
            "max_size": settings.db_pool_max_size,
        },
    )
    return ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        timeout=settings.db_pool_timeout_seconds,
        kwargs={"connect_timeout": settings.db_connect_timeout_seconds},
        configure=_statement_timeout_configurer(settings.db_statement_timeout_ms),
        open=True,
    )


def close_pool(pool: ConnectionPool | None) -> None:
    """Cierra el pool (idempotente con None)."""
    if pool is None:
        return
    logger.info("Cerrando pool DB")
    pool.close()
