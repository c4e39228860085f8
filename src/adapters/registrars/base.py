"""Piezas comunes de los clientes de registrador.

Contiene:
- `demo_mode`: decorador único para el modo demo (API key con prefijo
  centinela), aplicado a cada método público de los clientes.
- `validate_nameservers`: valida la lista antes de cualquier llamada remota.
- `HttpRegistrarClient`: base con settings, transporte inyectable y
  traducción de estados HTTP a errores del dominio.
- Helpers de parseo de fechas (ISO, MM/DD/YYYY, Unix s/ms).
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from adapters.http_client import build_async_client, send_with_retries
from core.config import AppSettings
from core.domain.errors import UpstreamAPIError, UpstreamAuthError, ValidationError
from core.domain.models import NameserverUpdate, Registrar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def demo_mode(canned: Callable[..., Any]) -> Callable[[F], F]:
    """Devuelve `canned(self, *args, **kwargs)` sin red si la key es de demo.

    El modo demo solo se activa con keys marcadas explícitamente (prefijo
    `AppSettings.demo_key_prefix`), nunca con credenciales reales.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self: HttpRegistrarClient, *args: Any, **kwargs: Any) -> Any:
            if self.is_demo:
                logger.debug("%s.%s: demo key, simulated response", self.registrar.value, func.__name__)
                return canned(self, *args, **kwargs)
            return await func(self, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def always(value: Any) -> Callable[..., Any]:
    """Respuesta demo constante (copiada si es mutable)."""

    def _canned(*_args: Any, **_kwargs: Any) -> Any:
        if isinstance(value, (list, dict)):
            return type(value)(value)
        return value

    return _canned


def validate_nameservers(func: F) -> F:
    """Rechaza listas vacías/inválidas antes de tocar la red (incluido modo demo)."""

    @functools.wraps(func)
    async def wrapper(self: Any, domain_name: str, nameservers: list[str]) -> Any:
        try:
            cleaned = NameserverUpdate(nameservers=list(nameservers)).nameservers
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc
        return await func(self, domain_name, cleaned)

    return wrapper  # type: ignore[return-value]


def parse_timestamp(value: object) -> datetime | None:
    """Convierte los formatos de fecha de los registradores a `datetime` UTC.

    Acepta:
    - epoch en segundos o milisegundos (int/float/str numérico)
    - ISO 8601 (con `Z` o sin zona -> UTC)
    - `MM/DD/YYYY` (Namecheap)
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
        # Dynadot devuelve milisegundos.
        if seconds > 1e11:
            seconds /= 1000.0
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.lstrip("-").isdigit():
        return parse_timestamp(int(text))

    for fmt in ("%m/%d/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            pass

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class HttpRegistrarClient:
    """Base de los clientes HTTP.

    Por qué una base y no solo el Protocol:
    - Los tres registradores comparten settings, transporte, modo demo y la
      traducción de estados HTTP; el contrato sigue siendo el Protocol de
      `core.interfaces.registrar`.
    """

    registrar: Registrar

    def __init__(
        self,
        api_key: str,
        *,
        settings: AppSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self._settings = settings or AppSettings()
        self._transport = transport

    @property
    def is_demo(self) -> bool:
        return self._settings.is_demo_key(self.api_key)

    def _client(self, extra_headers: dict[str, str] | None = None) -> httpx.AsyncClient:
        return build_async_client(self._settings, extra_headers=extra_headers, transport=self._transport)

    async def _send(self, client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return await send_with_retries(
            client,
            method,
            url,
            settings=self._settings,
            registrar=self.registrar.value,
            **kwargs,
        )

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        label = self.registrar.label()
        if response.status_code in (401, 403):
            raise UpstreamAuthError(
                f"{label} rejected the API credentials (HTTP {response.status_code})",
                registrar=self.registrar.value,
                status_code=response.status_code,
            )
        raise UpstreamAPIError(
            f"{label} API error: {response.status_code}",
            registrar=self.registrar.value,
            status_code=response.status_code,
        )

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamAPIError(
                f"{self.registrar.label()} returned a non-JSON payload",
                registrar=self.registrar.value,
                status_code=response.status_code,
            ) from exc

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(demo={self.is_demo})"
