"""Contratos de clientes de registrador.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Las capacidades extendidas (búsqueda, bulk) son protocolos aparte: los
  servicios las detectan con `isinstance` en lugar de preguntar por el tipo
  concreto del cliente.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from core.domain.models import Registrar, RegistrarConnection, RemoteDomain


@runtime_checkable
class RegistrarClient(Protocol):
    """Contrato mínimo que cumplen todos los registradores.

    Reglas de diseño:
    - Todo es asíncrono porque cada operación es I/O (HTTP).
    - `test_connection` no muta estado remoto.
    - `update_nameservers` devuelve False ante cualquier estado no exitoso.
    """

    registrar: Registrar

    async def test_connection(self) -> bool:
        ...

    async def get_domains(self) -> list[RemoteDomain]:
        ...

    async def update_nameservers(self, domain_name: str, nameservers: list[str]) -> bool:
        ...


# Construye el cliente concreto de una conexión (ver `adapters.registrars.factory`).
ClientFactory = Callable[[RegistrarConnection], RegistrarClient]


@runtime_checkable
class SupportsSearch(Protocol):
    """Búsqueda con forma nativa del registrador (Dynadot)."""

    async def search_domain(
        self,
        domain_name: str,
        show_price: bool = False,
        currency: str = "USD",
    ) -> dict[str, Any]:
        ...


@runtime_checkable
class SupportsBulkSearch(Protocol):
    async def bulk_search_domains(self, domain_names: list[str]) -> list[dict[str, Any]]:
        ...


@runtime_checkable
class SupportsAvailabilityCheck(Protocol):
    """Chequeo de disponibilidad simple (GoDaddy, Namecheap)."""

    async def check_domain_availability(self, domain_name: str) -> dict[str, Any]:
        ...


@runtime_checkable
class SupportsBulkAvailability(Protocol):
    async def bulk_check_availability(self, domain_names: list[str]) -> list[dict[str, Any]]:
        ...
