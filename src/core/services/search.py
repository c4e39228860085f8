"""Agregador de búsquedas de disponibilidad.

Responsabilidad:
- Repartir la consulta entre las conexiones activas (o una sola, filtrada por
  registrador) en paralelo.
- Traducir las formas nativas de cada registrador al vocabulario común
  `yes | no | unknown | error` en este borde, no dentro de los clientes.
- Aislar fallos: si un registrador falla, su entrada queda como `error` y el
  resto del agregado sigue intacto.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable

from core.domain.errors import NotFoundError, UnsupportedRegistrarError, ValidationError
from core.domain.models import (
    Availability,
    BulkSearchResponse,
    Registrar,
    RegistrarBulkSearchResult,
    RegistrarConnection,
    RegistrarSearchResult,
    SearchResponse,
    SearchResult,
)
from core.interfaces.registrar import (
    ClientFactory,
    SupportsAvailabilityCheck,
    SupportsBulkAvailability,
    SupportsBulkSearch,
    SupportsSearch,
)
from core.interfaces.storage import Storage

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Search not implemented for this registrar"

_YES = {"yes", "true", "1", "available"}
_NO = {"no", "false", "0", "taken", "unavailable"}


def _get(native: dict[str, Any], *keys: str) -> Any:
    """Lectura tolerante a mayúsculas (`Available` vs `available`)."""

    lowered = {str(k).lower(): v for k, v in native.items()}
    for key in keys:
        if key.lower() in lowered:
            return lowered[key.lower()]
    return None


def coerce_availability(value: object) -> Availability:
    if isinstance(value, bool):
        return Availability.YES if value else Availability.NO
    text = str(value or "").strip().lower()
    if text in _YES:
        return Availability.YES
    if text in _NO:
        return Availability.NO
    return Availability.UNKNOWN


def _coerce_flag(value: object) -> bool | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _YES


def _normalize_godaddy(domain_name: str, native: dict[str, Any]) -> SearchResult:
    price = native.get("price")
    price_list = None
    if isinstance(price, (int, float)):
        # GoDaddy expresa precios en micro-unidades.
        price_list = [
            {
                "currency": native.get("currency") or "USD",
                "registration": round(price / 1_000_000, 2),
                "period": native.get("period") or 1,
            }
        ]
    message = None
    if native.get("definitive") is False:
        message = "Availability is not definitive"
    return SearchResult(
        domain_name=str(native.get("domain") or domain_name),
        available=coerce_availability(native.get("available")),
        price_list=price_list,
        message=message,
    )


def _normalize_namecheap(domain_name: str, native: dict[str, Any]) -> SearchResult:
    error_no = str(native.get("error_no") or "0")
    if error_no != "0":
        return SearchResult(
            domain_name=str(native.get("domain") or domain_name),
            available=Availability.UNKNOWN,
            message=str(native.get("description") or f"Namecheap error {error_no}"),
        )

    premium = bool(native.get("premium_name"))
    price = native.get("premium_registration_price")
    price_list = None
    if premium and isinstance(price, (int, float)) and price > 0:
        price_list = [{"currency": "USD", "registration": price, "period": 1}]
    return SearchResult(
        domain_name=str(native.get("domain") or domain_name),
        available=coerce_availability(native.get("available")),
        premium=premium,
        price_list=price_list,
    )


def _normalize_dynadot(domain_name: str, native: dict[str, Any]) -> SearchResult:
    price_list = _get(native, "PriceList", "price_list")
    if not isinstance(price_list, list):
        price = _get(native, "Price")
        price_list = [{"price": str(price)}] if price not in (None, "") else None
    message = _get(native, "Error", "message")
    return SearchResult(
        domain_name=str(_get(native, "DomainName", "domain_name") or domain_name),
        available=coerce_availability(_get(native, "Available", "available")),
        premium=_coerce_flag(_get(native, "Premium", "IsPremium", "premium")),
        price_list=price_list,
        message=str(message) if message else None,
    )


def normalize_result(registrar: Registrar, domain_name: str, native: object) -> SearchResult:
    """Traduce la respuesta nativa de un registrador a `SearchResult`."""

    if not isinstance(native, dict):
        return SearchResult(
            domain_name=domain_name,
            available=Availability.UNKNOWN,
            message="Unexpected registrar response",
        )
    if registrar is Registrar.GODADDY:
        return _normalize_godaddy(domain_name, native)
    if registrar is Registrar.NAMECHEAP:
        return _normalize_namecheap(domain_name, native)
    return _normalize_dynadot(domain_name, native)


def _native_name(native: object) -> str | None:
    if not isinstance(native, dict):
        return None
    name = _get(native, "domain", "DomainName", "domain_name")
    return str(name).lower() if name else None


def _clean_names(domain_names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for raw in domain_names:
        name = str(raw).strip().lower()
        if name and name not in seen:
            seen.add(name)
            out.append(name)
    return out


def _error_result(domain_name: str, exc: Exception) -> SearchResult:
    return SearchResult(
        domain_name=domain_name,
        available=Availability.ERROR,
        message=f"Search failed: {exc}",
    )


def _normalize_or_error(registrar: Registrar, domain_name: str, native: object) -> SearchResult:
    # Un payload malformado marca sólo ese nombre.
    try:
        return normalize_result(registrar, domain_name, native)
    except Exception as exc:
        logger.warning("Unexpected %s payload for %s: %s", registrar.value, domain_name, exc)
        return _error_result(domain_name, exc)


class SearchAggregator:
    def __init__(
        self,
        storage: Storage,
        client_factory: ClientFactory,
        *,
        max_concurrency: int = 8,
    ) -> None:
        self._storage = storage
        self._client_factory = client_factory
        self._max_concurrency = max(1, max_concurrency)

    async def _target_connections(self, user_id: str, registrar: Registrar | str | None) -> list[RegistrarConnection]:
        active = [c for c in await self._storage.get_registrar_connections(user_id) if c.is_active]
        if registrar is None:
            return active
        try:
            wanted = Registrar(registrar)
        except ValueError as exc:
            raise UnsupportedRegistrarError(registrar) from exc
        for connection in active:
            if connection.registrar is wanted:
                return [connection]
        raise NotFoundError(f"Active {wanted.value} connection", user_id)

    async def _gather(self, jobs: list[Callable[[], Any]]) -> list[Any]:
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(job: Callable[[], Any]) -> Any:
            async with semaphore:
                return await job()

        return list(await asyncio.gather(*(run(job) for job in jobs)))

    async def search_domain(
        self,
        user_id: str,
        domain_name: str,
        registrar: Registrar | str | None = None,
        show_price: bool = False,
        currency: str = "USD",
    ) -> SearchResponse:
        name = domain_name.strip().lower()
        if not name:
            raise ValidationError("domain name required")

        connections = await self._target_connections(user_id, registrar)
        jobs = [
            (lambda c=connection: self._search_one(c, name, show_price, currency))
            for connection in connections
        ]
        return SearchResponse(results=await self._gather(jobs))

    async def _search_one(
        self,
        connection: RegistrarConnection,
        domain_name: str,
        show_price: bool,
        currency: str,
    ) -> RegistrarSearchResult:
        try:
            client = self._client_factory(connection)
            if isinstance(client, SupportsSearch):
                native = await client.search_domain(domain_name, show_price, currency)
            elif isinstance(client, SupportsAvailabilityCheck):
                native = await client.check_domain_availability(domain_name)
            else:
                return RegistrarSearchResult(
                    registrar=connection.registrar,
                    result=SearchResult(
                        domain_name=domain_name,
                        available=Availability.UNKNOWN,
                        message=UNSUPPORTED_MESSAGE,
                    ),
                )
            result = normalize_result(connection.registrar, domain_name, native)
        except Exception as exc:
            logger.warning("Search failed for %s: %s", connection.registrar.value, exc)
            result = _error_result(domain_name, exc)
        return RegistrarSearchResult(registrar=connection.registrar, result=result)

    async def bulk_search(
        self,
        user_id: str,
        domain_names: Iterable[str],
        registrar: Registrar | str | None = None,
    ) -> BulkSearchResponse:
        names = _clean_names(domain_names)
        if not names:
            raise ValidationError("domain_names must be a non-empty list")

        connections = await self._target_connections(user_id, registrar)
        jobs = [(lambda c=connection: self._bulk_one(c, names)) for connection in connections]
        return BulkSearchResponse(results=await self._gather(jobs))

    async def _bulk_one(self, connection: RegistrarConnection, names: list[str]) -> RegistrarBulkSearchResult:
        registrar = connection.registrar
        try:
            client = self._client_factory(connection)
        except Exception as exc:
            logger.warning("Bulk search failed for %s: %s", registrar.value, exc)
            return RegistrarBulkSearchResult(registrar=registrar, results=[_error_result(n, exc) for n in names])

        natives: list[Any] | None = None
        try:
            if isinstance(client, SupportsBulkSearch):
                natives = await client.bulk_search_domains(names)
            elif isinstance(client, SupportsBulkAvailability):
                natives = await client.bulk_check_availability(names)
        except Exception as exc:
            logger.warning("Bulk search failed for %s: %s", registrar.value, exc)
            return RegistrarBulkSearchResult(registrar=registrar, results=[_error_result(n, exc) for n in names])

        if natives is not None:
            by_name = {_native_name(n): n for n in natives}
            results = []
            for name in names:
                native = by_name.get(name)
                if native is None:
                    results.append(
                        SearchResult(domain_name=name, available=Availability.UNKNOWN, message="No result returned")
                    )
                else:
                    results.append(_normalize_or_error(registrar, name, native))
            return RegistrarBulkSearchResult(registrar=registrar, results=results)

        return RegistrarBulkSearchResult(registrar=registrar, results=await self._sequential(client, registrar, names))

    async def _sequential(self, client: object, registrar: Registrar, names: list[str]) -> list[SearchResult]:
        """Fallback uno a uno; un fallo solo marca ese nombre."""

        if not isinstance(client, (SupportsSearch, SupportsAvailabilityCheck)):
            return [
                SearchResult(domain_name=name, available=Availability.UNKNOWN, message=UNSUPPORTED_MESSAGE)
                for name in names
            ]

        results: list[SearchResult] = []
        for name in names:
            try:
                if isinstance(client, SupportsSearch):
                    native = await client.search_domain(name)
                else:
                    native = await client.check_domain_availability(name)
                results.append(normalize_result(registrar, name, native))
            except Exception as exc:
                logger.warning("Availability check for %s at %s failed: %s", name, registrar.value, exc)
                results.append(_error_result(name, exc))
        return results
