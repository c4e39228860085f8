"""Cliente Namecheap (XML sobre HTTP).

Auth por query string: ApiUser/ApiKey/UserName/ClientIp. Namecheap exige que
la IP de salida esté en su allowlist (se configura fuera de banda); su valor
viene de `AppSettings.namecheap_client_ip`.

Particularidades:
- `namecheap.domains.getList` no incluye nameservers: hace falta una llamada
  extra (`namecheap.domains.dns.getList`) por dominio. Si esa llamada falla,
  el dominio queda con `[]` y el listado continúa.
- El XML se parsea con BeautifulSoup (`html.parser`), que normaliza tags y
  atributos a minúsculas.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from bs4 import BeautifulSoup
from bs4.element import Tag

from adapters.registrars.base import (
    HttpRegistrarClient,
    always,
    demo_mode,
    parse_timestamp,
    validate_nameservers,
)
from core.config import AppSettings
from core.domain.errors import UpstreamAPIError, UpstreamAuthError, UpstreamError
from core.domain.models import DomainStatus, Registrar, RemoteDomain

logger = logging.getLogger(__name__)

# 1011102: API key inválida; 1011150/1017150: IP de origen no autorizada.
AUTH_ERROR_NUMBERS = frozenset({"1011102", "1011150", "1017150"})

PAGE_SIZE = 100
CHECK_BATCH_SIZE = 50


def split_domain(domain_name: str) -> tuple[str, str]:
    """Separa SLD y TLD en el primer punto (`example.co.uk` -> `example`, `co.uk`)."""

    sld, _, tld = domain_name.strip().lower().partition(".")
    return sld, tld


def _is_true(value: object) -> bool:
    return str(value or "").strip().lower() == "true"


def _demo_check(_self: Any, domain_names: list[str]) -> list[dict[str, Any]]:
    return [{"domain": name, "available": True, "premium_name": False} for name in domain_names]


def parse_namecheap_domain(tag: Tag) -> RemoteDomain | None:
    name = tag.get("name")
    expires = parse_timestamp(tag.get("expires"))
    created = parse_timestamp(tag.get("created"))
    if not name or expires is None or created is None:
        return None
    # El listado no trae estado detallado: solo IsExpired.
    status = DomainStatus.EXPIRED.value if _is_true(tag.get("isexpired")) else DomainStatus.ACTIVE.value
    return RemoteDomain(
        name=str(name).lower(),
        status=status,
        expiration_date=expires,
        registration_date=created,
        nameservers=[],
        registrar_domain_id=str(tag.get("id") or name),
    )


class NamecheapClient(HttpRegistrarClient):
    registrar = Registrar.NAMECHEAP

    def __init__(
        self,
        api_key: str,
        username: str,
        *,
        settings: AppSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key, settings=settings, transport=transport)
        self.username = username

    def _params(self, command: str, **extra: Any) -> dict[str, Any]:
        return {
            "ApiUser": self.username,
            "ApiKey": self.api_key,
            "UserName": self.username,
            "ClientIp": self._settings.namecheap_client_ip,
            "Command": command,
            **extra,
        }

    async def _request(self, client: httpx.AsyncClient, command: str, **extra: Any) -> httpx.Response:
        return await self._send(
            client,
            "GET",
            self._settings.namecheap_base_url,
            params=self._params(command, **extra),
        )

    async def _call(self, client: httpx.AsyncClient, command: str, **extra: Any) -> Tag:
        response = await self._request(client, command, **extra)
        return self._api_root(response)

    def _api_root(self, response: httpx.Response) -> Tag:
        """Devuelve el nodo `<ApiResponse>` si Status="OK"; si no, lanza."""

        self._raise_for_status(response)

        soup = BeautifulSoup(response.text, "html.parser")
        root = soup.find("apiresponse")
        if not isinstance(root, Tag):
            raise UpstreamAPIError("Malformed Namecheap response", registrar=self.registrar.value)
        if str(root.get("status") or "").upper() == "OK":
            return root

        errors = [
            (str(err.get("number") or ""), err.get_text(strip=True))
            for err in root.find_all("error")
            if isinstance(err, Tag)
        ]
        message = "; ".join(text for _, text in errors if text) or "Namecheap API error"
        if any(number in AUTH_ERROR_NUMBERS for number, _ in errors):
            raise UpstreamAuthError(message, registrar=self.registrar.value)
        raise UpstreamAPIError(message, registrar=self.registrar.value)

    @demo_mode(always(True))
    async def test_connection(self) -> bool:
        try:
            async with self._client({"Accept": "application/xml"}) as client:
                await self._call(client, "namecheap.domains.getList", PageSize=10, Page=1)
        except UpstreamError as exc:
            logger.warning("Namecheap API connection test failed: %s", exc)
            return False
        return True

    async def _list_page(self, client: httpx.AsyncClient, page: int) -> tuple[list[RemoteDomain], int | None]:
        root = await self._call(client, "namecheap.domains.getList", PageSize=PAGE_SIZE, Page=page)
        domains: list[RemoteDomain] = []
        for tag in root.find_all("domain"):
            if not isinstance(tag, Tag):
                continue
            remote = parse_namecheap_domain(tag)
            if remote is None:
                logger.debug("Skipping malformed Namecheap domain entry: %s", tag)
                continue
            domains.append(remote)

        total: int | None = None
        total_tag = root.find("totalitems")
        if isinstance(total_tag, Tag):
            try:
                total = int(total_tag.get_text(strip=True))
            except ValueError:
                total = None
        return domains, total

    async def _fetch_nameservers(self, client: httpx.AsyncClient, domain_name: str) -> list[str]:
        sld, tld = split_domain(domain_name)
        try:
            root = await self._call(client, "namecheap.domains.dns.getList", SLD=sld, TLD=tld)
        except UpstreamError as exc:
            logger.warning("Could not fetch Namecheap nameservers for %s: %s", domain_name, exc)
            return []
        return [
            ns.get_text(strip=True).lower()
            for ns in root.find_all("nameserver")
            if isinstance(ns, Tag) and ns.get_text(strip=True)
        ]

    @demo_mode(always([]))
    async def get_domains(self) -> list[RemoteDomain]:
        domains: list[RemoteDomain] = []
        async with self._client({"Accept": "application/xml"}) as client:
            page = 1
            while True:
                batch, total = await self._list_page(client, page)
                domains.extend(batch)
                if not batch or total is None or page * PAGE_SIZE >= total:
                    break
                page += 1

            # Una llamada extra por dominio (coste O(n)).
            for domain in domains:
                domain.nameservers = await self._fetch_nameservers(client, domain.name)
        return domains

    @validate_nameservers
    @demo_mode(always(True))
    async def update_nameservers(self, domain_name: str, nameservers: list[str]) -> bool:
        sld, tld = split_domain(domain_name)
        async with self._client({"Accept": "application/xml"}) as client:
            response = await self._request(
                client,
                "namecheap.domains.dns.setCustom",
                SLD=sld,
                TLD=tld,
                Nameservers=",".join(nameservers),
            )
        try:
            root = self._api_root(response)
        except UpstreamError as exc:
            logger.warning("Namecheap nameserver update for %s failed: %s", domain_name, exc)
            return False

        result = root.find("domaindnssetcustomresult")
        if isinstance(result, Tag) and result.get("updated") is not None:
            return _is_true(result.get("updated"))
        return True

    async def check_domain_availability(self, domain_name: str) -> dict[str, Any]:
        results = await self.bulk_check_availability([domain_name])
        if not results:
            raise UpstreamAPIError(f"Namecheap returned no result for {domain_name}", registrar=self.registrar.value)
        return results[0]

    @demo_mode(_demo_check)
    async def bulk_check_availability(self, domain_names: list[str]) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        async with self._client({"Accept": "application/xml"}) as client:
            for start in range(0, len(domain_names), CHECK_BATCH_SIZE):
                chunk = domain_names[start : start + CHECK_BATCH_SIZE]
                root = await self._call(client, "namecheap.domains.check", DomainList=",".join(chunk))
                for tag in root.find_all("domaincheckresult"):
                    if not isinstance(tag, Tag):
                        continue
                    price = tag.get("premiumregistrationprice")
                    try:
                        premium_price = float(price) if price not in (None, "") else None
                    except (TypeError, ValueError):
                        premium_price = None
                    out.append(
                        {
                            "domain": str(tag.get("domain") or ""),
                            "available": _is_true(tag.get("available")),
                            "premium_name": _is_true(tag.get("ispremiumname")),
                            "premium_registration_price": premium_price,
                            "error_no": str(tag.get("errorno") or "0"),
                            "description": str(tag.get("description") or ""),
                        }
                    )
        return out
