"""Operaciones sobre el inventario de dominios."""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import ValidationError as PydanticValidationError

from core.domain.errors import NotFoundError, UpstreamAPIError, ValidationError
from core.domain.models import (
    Domain,
    DomainFilters,
    DomainStats,
    DomainStatus,
    DomainUpdate,
    DomainWithConnection,
    NameserverUpdate,
)
from core.interfaces.registrar import ClientFactory
from core.interfaces.storage import Storage

logger = logging.getLogger(__name__)

# Campos que la actualización masiva puede tocar.
BULK_UPDATABLE_FIELDS = frozenset({"auto_renew", "status"})


class DomainService:
    def __init__(self, storage: Storage, client_factory: ClientFactory) -> None:
        self._storage = storage
        self._client_factory = client_factory

    async def list_domains(self, user_id: str, filters: DomainFilters | None = None) -> list[DomainWithConnection]:
        return await self._storage.get_domains(user_id, filters or DomainFilters())

    async def get_domain(self, domain_id: str) -> DomainWithConnection:
        domain = await self._storage.get_domain(domain_id)
        if domain is None:
            raise NotFoundError("Domain", domain_id)
        return domain

    async def update_nameservers(self, domain_id: str, nameservers: list[str]) -> Domain:
        """Aplica nameservers en el registrador y, si acepta, en el almacenamiento."""

        try:
            cleaned = NameserverUpdate(nameservers=list(nameservers)).nameservers
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc

        domain = await self.get_domain(domain_id)
        connection = await self._storage.get_registrar_connection(domain.registrar_connection_id)
        if connection is None:
            raise NotFoundError("Registrar connection", domain.registrar_connection_id)

        client = self._client_factory(connection)
        if not await client.update_nameservers(domain.name, cleaned):
            raise UpstreamAPIError(
                "Failed to update nameservers with registrar",
                registrar=connection.registrar.value,
            )

        updated = await self._storage.update_domain(domain_id, DomainUpdate(nameservers=cleaned))
        if updated is None:
            raise NotFoundError("Domain", domain_id)
        logger.info("Updated nameservers for %s: %s", domain.name, ", ".join(cleaned))
        return updated

    async def bulk_update(self, domain_ids: list[str], updates: DomainUpdate) -> list[Domain]:
        if not domain_ids:
            raise ValidationError("domainIds must be a non-empty array")
        changes = updates.changes()
        if not changes:
            raise ValidationError("no updates given")
        forbidden = set(changes) - BULK_UPDATABLE_FIELDS
        if forbidden:
            raise ValidationError(f"fields not allowed in bulk update: {', '.join(sorted(forbidden))}")
        status = changes.get("status")
        if status is not None and status not in {s.value for s in DomainStatus}:
            allowed = ", ".join(s.value for s in DomainStatus)
            raise ValidationError(f"invalid status '{status}' (expected one of: {allowed})")
        return await self._storage.bulk_update_domains(list(domain_ids), updates)

    async def stats(self, user_id: str, *, now: datetime | None = None) -> DomainStats:
        return await self._storage.get_domain_stats(user_id, now=now)
