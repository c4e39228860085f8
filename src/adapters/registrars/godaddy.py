"""Cliente GoDaddy (REST/JSON, API v1).

Auth: header `Authorization: sso-key <key>:<secret>`.

Endpoints usados:
- `GET /v1/domains?includes=nameServers` (listado paginado con `marker`;
  `?limit=1` para probar credenciales)
- `PATCH /v1/domains/{domain}` con `{"nameServers": [...]}`
- `GET /v1/domains/available?domain=...`

GoDaddy no expone aquí búsqueda bulk: el agregador hace fallback secuencial.
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
from core.domain.errors import UpstreamAPIError, UpstreamError
from core.domain.models import Registrar, RemoteDomain

logger = logging.getLogger(__name__)

# Máximo por página de `/v1/domains`; `marker` es el último dominio recibido.
PAGE_SIZE = 1000


def _demo_availability(_self: Any, domain_name: str) -> dict[str, Any]:
    return {"domain": domain_name, "available": True, "definitive": False}


def parse_godaddy_domain(item: object) -> RemoteDomain | None:
    """Mapea un elemento de `/v1/domains`; devuelve None si está incompleto."""

    if not isinstance(item, dict):
        return None
    name = item.get("domain")
    status = item.get("status")
    expires = parse_timestamp(item.get("expires"))
    created = parse_timestamp(item.get("createdAt"))
    if not isinstance(name, str) or not name or expires is None or created is None:
        return None

    nameservers = item.get("nameServers") or []
    if not isinstance(nameservers, list):
        nameservers = []

    domain_id = item.get("domainId")
    return RemoteDomain(
        name=name.lower(),
        status=str(status or "active"),
        expiration_date=expires,
        registration_date=created,
        nameservers=[str(ns).lower() for ns in nameservers if ns],
        registrar_domain_id=str(domain_id) if domain_id is not None else name,
    )


class GoDaddyClient(HttpRegistrarClient):
    registrar = Registrar.GODADDY

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        settings: AppSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key, settings=settings, transport=transport)
        self.api_secret = api_secret

    @property
    def _base_url(self) -> str:
        return self._settings.godaddy_base_url.rstrip("/")

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"sso-key {self.api_key}:{self.api_secret}"}

    @demo_mode(always(True))
    async def test_connection(self) -> bool:
        try:
            async with self._client(self._auth_headers()) as client:
                response = await self._send(client, "GET", f"{self._base_url}/v1/domains", params={"limit": 1})
        except UpstreamError as exc:
            logger.warning("GoDaddy API connection test failed: %s", exc)
            return False
        return response.is_success

    @demo_mode(always([]))
    async def get_domains(self) -> list[RemoteDomain]:
        domains: list[RemoteDomain] = []
        marker: str | None = None
        async with self._client(self._auth_headers()) as client:
            while True:
                # Sin `includes` el listado omite `nameServers`.
                params: dict[str, Any] = {"includes": "nameServers", "limit": PAGE_SIZE}
                if marker:
                    params["marker"] = marker
                response = await self._send(client, "GET", f"{self._base_url}/v1/domains", params=params)
                self._raise_for_status(response)

                data = self._json(response)
                if not isinstance(data, list):
                    raise UpstreamAPIError(
                        "GoDaddy returned an unexpected domain list payload",
                        registrar=self.registrar.value,
                    )

                for item in data:
                    remote = parse_godaddy_domain(item)
                    if remote is None:
                        logger.debug("Skipping malformed GoDaddy domain entry: %r", item)
                        continue
                    domains.append(remote)

                last = data[-1] if data else None
                next_marker = last.get("domain") if isinstance(last, dict) else None
                if len(data) < PAGE_SIZE or not isinstance(next_marker, str) or next_marker == marker:
                    break
                marker = next_marker
        return domains

    @validate_nameservers
    @demo_mode(always(True))
    async def update_nameservers(self, domain_name: str, nameservers: list[str]) -> bool:
        async with self._client({**self._auth_headers(), "Content-Type": "application/json"}) as client:
            response = await self._send(
                client,
                "PATCH",
                f"{self._base_url}/v1/domains/{domain_name}",
                json={"nameServers": nameservers},
            )
        if not response.is_success:
            logger.warning("GoDaddy nameserver update for %s failed: HTTP %s", domain_name, response.status_code)
            return False
        return True

    @demo_mode(_demo_availability)
    async def check_domain_availability(self, domain_name: str) -> dict[str, Any]:
        async with self._client(self._auth_headers()) as client:
            response = await self._send(
                client,
                "GET",
                f"{self._base_url}/v1/domains/available",
                params={"domain": domain_name, "checkType": "FAST"},
            )
        self._raise_for_status(response)
        data = self._json(response)
        if not isinstance(data, dict):
            raise UpstreamAPIError("GoDaddy returned an unexpected availability payload", registrar=self.registrar.value)
        return data
