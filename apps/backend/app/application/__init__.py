"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone los puntos de entrada estables de la capa de aplicación:
  - ensure_dev_admin: seed de cuenta admin para desarrollo

Nota:
  - Los casos de uso se importan desde `usecases/` (p. ej. usecases.auth).
===============================================================================
"""

from .dev_seed_admin import ensure_dev_admin

__all__ = ["ensure_dev_admin"]
