"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus)

Responsabilidades:
    - Definir métricas Prometheus en un registry dedicado.
    - Proveer funciones pequeñas y estables para registrar eventos.
    - Cuidar cardinalidad (NO account_id, NO email, NO IDs dinámicos).
    - Generar la respuesta de /metrics.

Colaboradores:
    - crosscutting.middleware: latencia y conteo HTTP.
    - application/usecases/auth: resultados de login y bloqueos.
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

# ------------------------
# HTTP
# ------------------------
_requests_total = Counter(
    "fleet_requests_total",
    "Total de requests HTTP",
    ["endpoint", "method", "status"],
    registry=REGISTRY,
)

_request_latency = Histogram(
    "fleet_request_latency_seconds",
    "Latencia de requests HTTP (segundos)",
    ["endpoint", "method"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=REGISTRY,
)

# ------------------------
# Auth
# ------------------------
LOGIN_OUTCOMES = ("success", "invalid", "locked", "inactive")

_login_attempts_total = Counter(
    "fleet_login_attempts_total",
    "Intentos de login por resultado",
    ["outcome"],
    registry=REGISTRY,
)

_account_lockouts_total = Counter(
    "fleet_account_lockouts_total",
    "Cuentas bloqueadas por exceso de intentos fallidos",
    registry=REGISTRY,
)


def _normalize_endpoint(path: str) -> str:
    """Normaliza paths para evitar cardinalidad alta.

    Reemplaza UUIDs e IDs numéricos por `{id}`.
    """
    path = re.sub(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "{id}",
        path,
        flags=re.IGNORECASE,
    )
    path = re.sub(r"/\d+", "/{id}", path)
    return path


def _status_bucket(code: int) -> str:
    """Agrupa status code para baja cardinalidad."""
    if 200 <= code < 300:
        return "2xx"
    if 300 <= code < 400:
        return "3xx"
    if 400 <= code < 500:
        return "4xx"
    if 500 <= code < 600:
        return "5xx"
    return "other"


def record_request_metrics(
    *, endpoint: str, method: str, status_code: int, latency_seconds: float
) -> None:
    normalized = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized, method=method, status=_status_bucket(status_code)
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def record_login_attempt(outcome: str) -> None:
    if outcome not in LOGIN_OUTCOMES:
        raise ValueError(f"unknown login outcome: {outcome}")
    _login_attempts_total.labels(outcome=outcome).inc()


def record_account_lockout() -> None:
    _account_lockouts_total.inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Devuelve (body, content_type) para el endpoint /metrics."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
