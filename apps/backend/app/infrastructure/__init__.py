# infrastructure/__init__.py
"""
============================================================
TARJETA CRC — infrastructure/__init__.py
============================================================
Module: infrastructure (Adapters)

Responsibilities:
  - Agrupar adaptadores concretos: pool psycopg (db/) y repositorios
    (Postgres / InMemory).

Policy:
  - Sin side effects al importar; los consumidores importan desde
    infrastructure.db o infrastructure.repositories.
============================================================
"""
