"""
Name: Backend ASGI Entrypoint (app.main)

Responsibilities:
  - Exponer `app` para uvicorn (`uvicorn app.main:app`)

Notes:
  - Sin IO ni configuración propia: settings y container se resuelven en
    el lifespan de app.api.main.
"""

from app.api.main import app

__all__ = ["app"]
