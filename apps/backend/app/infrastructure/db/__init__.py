"""Infra DB: pool de conexiones (handle explícito)."""

from .pool import close_pool, create_pool

__all__ = ["create_pool", "close_pool"]
