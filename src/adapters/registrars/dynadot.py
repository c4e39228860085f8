"""Cliente Dynadot (api3.json).

Auth: parámetro `key` en la query. Cada respuesta viene envuelta en un objeto
con nombre del comando (p.ej. `ListDomainInfoResponse`); `ResponseCode` 0 o
`Status: success` indican éxito.

Comandos usados: `account_info`, `list_domain`, `set_ns`, `search`.
Las fechas llegan como timestamps Unix en milisegundos.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from adapters.registrars.base import (
    HttpRegistrarClient,
    always,
    demo_mode,
    parse_timestamp,
    validate_nameservers,
)
from core.config import AppSettings
from core.domain.errors import UpstreamAPIError, UpstreamAuthError, UpstreamError
from core.domain.models import Registrar, RemoteDomain

logger = logging.getLogger(__name__)

SEARCH_BATCH_SIZE = 100


def _demo_search(_self: Any, domain_name: str, show_price: bool = False, currency: str = "USD") -> dict[str, Any]:
    return {"DomainName": domain_name, "Available": "yes"}


def _demo_bulk_search(_self: Any, domain_names: list[str]) -> list[dict[str, Any]]:
    return [{"DomainName": name, "Available": "yes"} for name in domain_names]


def unwrap_envelope(payload: object) -> dict[str, Any]:
    """Devuelve el cuerpo del envelope `{"<Command>Response": {...}}`."""

    if not isinstance(payload, dict) or not payload:
        return {}
    if "ResponseCode" in payload or "Status" in payload:
        return payload
    for value in payload.values():
        if isinstance(value, dict):
            return value
    return {}


def envelope_ok(envelope: dict[str, Any]) -> bool:
    code = envelope.get("ResponseCode")
    if code is not None and str(code).strip() == "0":
        return True
    return str(envelope.get("Status") or "").strip().lower() == "success"


def parse_dynadot_domain(item: object) -> RemoteDomain | None:
    if not isinstance(item, dict):
        return None
    name = item.get("Name")
    expires = parse_timestamp(item.get("Expiration"))
    created = parse_timestamp(item.get("Registration"))
    if not isinstance(name, str) or not name or expires is None or created is None:
        return None

    nameservers: list[str] = []
    settings = item.get("NameServerSettings")
    if isinstance(settings, dict):
        for ns in settings.get("NameServers") or []:
            server = ns.get("ServerName") if isinstance(ns, dict) else ns
            if isinstance(server, str) and server.strip():
                nameservers.append(server.strip().lower())

    return RemoteDomain(
        name=name.lower(),
        status=str(item.get("Status") or "active"),
        expiration_date=expires,
        registration_date=created,
        nameservers=nameservers,
        registrar_domain_id=str(item.get("DomainId") or name),
    )


class DynadotClient(HttpRegistrarClient):
    registrar = Registrar.DYNADOT

    def __init__(
        self,
        api_key: str,
        *,
        settings: AppSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key, settings=settings, transport=transport)

    async def _request(self, client: httpx.AsyncClient, command: str, **params: Any) -> httpx.Response:
        return await self._send(
            client,
            "GET",
            self._settings.dynadot_base_url,
            params={"key": self.api_key, "command": command, **params},
        )

    def _envelope(self, response: httpx.Response) -> dict[str, Any]:
        self._raise_for_status(response)
        envelope = unwrap_envelope(self._json(response))
        if envelope_ok(envelope):
            return envelope

        error = str(envelope.get("Error") or envelope.get("Status") or "Dynadot API error")
        lowered = error.lower()
        if "key" in lowered or "not allowed" in lowered or "ip" in lowered.split():
            raise UpstreamAuthError(error, registrar=self.registrar.value)
        raise UpstreamAPIError(error, registrar=self.registrar.value)

    async def _command(self, client: httpx.AsyncClient, command: str, **params: Any) -> dict[str, Any]:
        return self._envelope(await self._request(client, command, **params))

    @demo_mode(always(True))
    async def test_connection(self) -> bool:
        try:
            async with self._client() as client:
                await self._command(client, "account_info")
        except UpstreamError as exc:
            logger.warning("Dynadot API connection test failed: %s", exc)
            return False
        return True

    @demo_mode(always([]))
    async def get_domains(self) -> list[RemoteDomain]:
        async with self._client() as client:
            envelope = await self._command(client, "list_domain")

        raw = envelope.get("MainDomains")
        if raw is None:
            raw = envelope.get("DomainInfoList") or []
        if not isinstance(raw, list):
            raise UpstreamAPIError("Dynadot returned an unexpected domain list payload", registrar=self.registrar.value)

        domains: list[RemoteDomain] = []
        for item in raw:
            # Algunas versiones anidan el dominio en {"DomainInfo": {...}}.
            if isinstance(item, dict) and isinstance(item.get("DomainInfo"), dict):
                item = item["DomainInfo"]
            remote = parse_dynadot_domain(item)
            if remote is None:
                logger.debug("Skipping malformed Dynadot domain entry: %r", item)
                continue
            domains.append(remote)
        return domains

    @validate_nameservers
    @demo_mode(always(True))
    async def update_nameservers(self, domain_name: str, nameservers: list[str]) -> bool:
        params = {f"ns{index}": ns for index, ns in enumerate(nameservers)}
        async with self._client() as client:
            response = await self._request(client, "set_ns", domain=domain_name, **params)
        try:
            self._envelope(response)
        except UpstreamError as exc:
            logger.warning("Dynadot nameserver update for %s failed: %s", domain_name, exc)
            return False
        return True

    @demo_mode(_demo_search)
    async def search_domain(
        self,
        domain_name: str,
        show_price: bool = False,
        currency: str = "USD",
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"domain0": domain_name}
        if show_price:
            params["show_price"] = 1
        if currency:
            params["currency"] = currency
        async with self._client() as client:
            envelope = await self._command(client, "search", **params)

        results = envelope.get("SearchResults") or []
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            raise UpstreamAPIError(f"Dynadot returned no search result for {domain_name}", registrar=self.registrar.value)
        return results[0]

    @demo_mode(_demo_bulk_search)
    async def bulk_search_domains(self, domain_names: list[str]) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        async with self._client() as client:
            for start in range(0, len(domain_names), SEARCH_BATCH_SIZE):
                chunk = domain_names[start : start + SEARCH_BATCH_SIZE]
                params = {f"domain{index}": name for index, name in enumerate(chunk)}
                envelope = await self._command(client, "search", **params)
                results = envelope.get("SearchResults") or []
                if isinstance(results, list):
                    out.extend(r for r in results if isinstance(r, dict))
        return out
