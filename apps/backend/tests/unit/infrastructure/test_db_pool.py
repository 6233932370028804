"""
Name: Database Pool Tests

Responsibilities:
  - Test pool creation from Settings (sizes, timeouts, configure hook)
  - Test close_pool idempotence
  - Offline unit tests (no real DB)

Notes:
  - Uses mocking for ConnectionPool
"""

from unittest.mock import MagicMock, patch

import pytest

from app.infrastructure.db.pool import (
    _statement_timeout_configurer,
    close_pool,
    create_pool,
)


@pytest.mark.unit
class TestPoolLifecycle:
    """Test pool creation and cleanup."""

    def test_create_pool_uses_settings(self, settings):
        """create_pool should build a ConnectionPool with bounded waits."""
        cfg = settings.model_copy(
            update={
                "database_url": "postgresql://fleet@db/fleet",
                "db_pool_min_size": 2,
                "db_pool_max_size": 7,
            }
        )

        with patch("app.infrastructure.db.pool.ConnectionPool") as MockPool:
            result = create_pool(cfg)

        MockPool.assert_called_once()
        kwargs = MockPool.call_args.kwargs
        assert kwargs["conninfo"] == "postgresql://fleet@db/fleet"
        assert kwargs["min_size"] == 2
        assert kwargs["max_size"] == 7
        assert kwargs["timeout"] == cfg.db_pool_timeout_seconds
        assert kwargs["kwargs"] == {"connect_timeout": cfg.db_connect_timeout_seconds}
        assert result is MockPool.return_value

    @pytest.mark.parametrize("url", ["", "   "])
    def test_create_pool_without_url_raises(self, settings, url):
        """Empty DATABASE_URL should fail fast."""
        cfg = settings.model_copy(update={"database_url": url})

        with patch("app.infrastructure.db.pool.ConnectionPool") as MockPool:
            with pytest.raises(ValueError, match="DATABASE_URL"):
                create_pool(cfg)

        MockPool.assert_not_called()

    def test_close_pool_closes(self):
        pool = MagicMock()
        close_pool(pool)
        pool.close.assert_called_once()

    def test_close_pool_with_none_is_noop(self):
        close_pool(None)


@pytest.mark.unit
class TestStatementTimeout:
    def test_sets_statement_timeout(self):
        conn = MagicMock()
        _statement_timeout_configurer(2500)(conn)

        conn.execute.assert_called_once_with("SET statement_timeout = 2500")
        conn.commit.assert_called_once()

    def test_zero_disables(self):
        conn = MagicMock()
        _statement_timeout_configurer(0)(conn)
        conn.execute.assert_not_called()
