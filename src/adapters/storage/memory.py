"""Almacenamiento en memoria.

Implementa `core.interfaces.storage.Storage`. Devuelve copias de los modelos
para que ningún llamador mute el estado interno por referencia.
"""

from __future__ import annotations

from datetime import datetime

from core.domain.models import (
    ConnectionUpdate,
    Domain,
    DomainFilters,
    DomainStats,
    DomainUpdate,
    DomainWithConnection,
    RegistrarConnection,
    User,
    utcnow,
)
from core.services.stats import compute_domain_stats


class MemoryStorage:
    def __init__(self, *, expiring_window_days: int = 30) -> None:
        self._users: dict[str, User] = {}
        self._connections: dict[str, RegistrarConnection] = {}
        self._domains: dict[str, Domain] = {}
        self._expiring_window_days = expiring_window_days

    def _changed(self) -> None:
        """Hook tras cada mutación (los backends persistentes lo sobrescriben)."""

    # Usuarios

    async def get_user(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_user_by_username(self, username: str) -> User | None:
        for user in self._users.values():
            if user.username == username:
                return user.model_copy()
        return None

    async def create_user(self, user: User) -> User:
        self._users[user.id] = user.model_copy()
        self._changed()
        return user.model_copy()

    # Conexiones

    async def get_registrar_connections(self, user_id: str) -> list[RegistrarConnection]:
        return [c.model_copy() for c in self._connections.values() if c.user_id == user_id]

    async def get_registrar_connection(self, connection_id: str) -> RegistrarConnection | None:
        connection = self._connections.get(connection_id)
        return connection.model_copy() if connection else None

    async def create_registrar_connection(self, connection: RegistrarConnection) -> RegistrarConnection:
        self._connections[connection.id] = connection.model_copy()
        self._changed()
        return connection.model_copy()

    async def update_registrar_connection(
        self,
        connection_id: str,
        updates: ConnectionUpdate,
    ) -> RegistrarConnection | None:
        connection = self._connections.get(connection_id)
        if connection is None:
            return None
        updated = connection.model_copy(update=updates.changes())
        self._connections[connection_id] = updated
        self._changed()
        return updated.model_copy()

    async def delete_registrar_connection(self, connection_id: str) -> bool:
        if self._connections.pop(connection_id, None) is None:
            return False
        # Cascada: un dominio siempre referencia una conexión existente.
        for domain_id in [d.id for d in self._domains.values() if d.registrar_connection_id == connection_id]:
            del self._domains[domain_id]
        self._changed()
        return True

    # Dominios

    def _with_connection(self, domain: Domain) -> DomainWithConnection | None:
        connection = self._connections.get(domain.registrar_connection_id)
        if connection is None:
            return None
        return DomainWithConnection(
            **domain.model_dump(),
            registrar_connection=connection.public(),
        )

    async def get_domains(
        self,
        user_id: str,
        filters: DomainFilters | None = None,
    ) -> list[DomainWithConnection]:
        filters = filters or DomainFilters()
        search = filters.search.lower() if filters.search else None

        out: list[DomainWithConnection] = []
        for domain in self._domains.values():
            if domain.user_id != user_id:
                continue
            if filters.registrar and domain.registrar != filters.registrar:
                continue
            if filters.status and domain.status != filters.status:
                continue
            if search and search not in domain.name.lower():
                continue
            joined = self._with_connection(domain)
            if joined is not None:
                out.append(joined)
        return sorted(out, key=lambda d: d.name)

    async def get_domain(self, domain_id: str) -> DomainWithConnection | None:
        domain = self._domains.get(domain_id)
        if domain is None:
            return None
        return self._with_connection(domain)

    async def create_domain(self, domain: Domain) -> Domain:
        stored = domain.model_copy(update={"last_updated": utcnow()}, deep=True)
        self._domains[stored.id] = stored
        self._changed()
        return stored.model_copy(deep=True)

    async def update_domain(self, domain_id: str, updates: DomainUpdate) -> Domain | None:
        domain = self._domains.get(domain_id)
        if domain is None:
            return None
        changes = updates.changes()
        if "nameservers" in changes and changes["nameservers"] is not None:
            changes["nameservers"] = list(changes["nameservers"])
        updated = domain.model_copy(update={**changes, "last_updated": utcnow()}, deep=True)
        self._domains[domain_id] = updated
        self._changed()
        return updated.model_copy(deep=True)

    async def bulk_update_domains(self, domain_ids: list[str], updates: DomainUpdate) -> list[Domain]:
        updated: list[Domain] = []
        for domain_id in domain_ids:
            domain = await self.update_domain(domain_id, updates)
            if domain is not None:
                updated.append(domain)
        return updated

    async def get_domain_stats(self, user_id: str, *, now: datetime | None = None) -> DomainStats:
        return compute_domain_stats(
            (d for d in self._domains.values() if d.user_id == user_id),
            now=now,
            expiring_window_days=self._expiring_window_days,
        )
