"""Factoría de clientes de registrador.

Por qué un switch cerrado:
- Cada variante necesita campos distintos para autenticarse (GoDaddy key+secret,
  Namecheap key+usuario, Dynadot solo key), así que no hay constructor genérico.
- Sin caché: construir un cliente no abre conexiones (cada llamada usa su
  propio `httpx.AsyncClient`).
"""

from __future__ import annotations

import httpx

from adapters.registrars.base import HttpRegistrarClient
from adapters.registrars.dynadot import DynadotClient
from adapters.registrars.godaddy import GoDaddyClient
from adapters.registrars.namecheap import NamecheapClient
from core.config import AppSettings
from core.domain.errors import UnsupportedRegistrarError
from core.domain.models import Registrar, RegistrarConnection


def create_client(
    connection: RegistrarConnection,
    *,
    settings: AppSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpRegistrarClient:
    """Construye el cliente concreto para `connection.registrar`."""

    try:
        registrar = Registrar(connection.registrar)
    except ValueError as exc:
        raise UnsupportedRegistrarError(connection.registrar) from exc

    secret = connection.api_secret or ""
    if registrar is Registrar.GODADDY:
        return GoDaddyClient(connection.api_key, secret, settings=settings, transport=transport)
    if registrar is Registrar.NAMECHEAP:
        return NamecheapClient(connection.api_key, secret, settings=settings, transport=transport)
    if registrar is Registrar.DYNADOT:
        return DynadotClient(connection.api_key, settings=settings, transport=transport)
    raise UnsupportedRegistrarError(registrar)
