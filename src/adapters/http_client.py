"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers, reintentos y logging para todos los
  registradores.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

import httpx

from core.config import AppSettings
from core.domain.errors import UpstreamAPIError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que todos los registradores se comporten igual.
    - `transport` permite sustituir la red en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def _safe_retry_after_seconds(response: httpx.Response | None) -> float | None:
    if response is None:
        return None
    value = response.headers.get("retry-after")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _backoff_delay(settings: AppSettings, attempt: int, response: httpx.Response | None = None) -> float:
    retry_after = _safe_retry_after_seconds(response)
    base = retry_after if retry_after is not None else settings.registrar_backoff_seconds * (2**attempt)
    if base <= 0:
        return 0.0
    return base + random.uniform(0.0, 0.35)


async def send_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    settings: AppSettings,
    registrar: str | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """Envía una petición reintentando solo fallos transitorios.

    Reglas:
    - Reintenta `httpx.TransportError` (incluye timeouts) y 429/502/503/504.
    - El resto de respuestas se devuelven tal cual: interpretarlas es tarea del
      adaptador de cada registrador.
    - Si se agotan los intentos por error de red, lanza `UpstreamAPIError`.
    """

    attempts = max(1, settings.registrar_max_retries + 1)
    for attempt in range(attempts):
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            if attempt >= attempts - 1:
                raise UpstreamAPIError(
                    f"Failed to communicate with registrar API: {exc.__class__.__name__}",
                    registrar=registrar,
                ) from exc
            delay = _backoff_delay(settings, attempt)
            logger.info("%s %s failed (%s); retrying in %.2fs", method, url, exc.__class__.__name__, delay)
            await asyncio.sleep(delay)
            continue

        if response.status_code in RETRYABLE_STATUS_CODES and attempt < attempts - 1:
            delay = _backoff_delay(settings, attempt, response)
            logger.info("%s %s returned HTTP %s; retrying in %.2fs", method, url, response.status_code, delay)
            await asyncio.sleep(delay)
            continue
        return response

    # Inalcanzable: el bucle siempre devuelve o lanza.
    raise UpstreamAPIError("Registrar request exhausted retries", registrar=registrar)
