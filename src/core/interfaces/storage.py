"""Contrato del almacenamiento (colaborador externo).

El Core solo conoce esta interfaz estrecha; cada llamada es atómica sobre una
única entidad y no se asumen transacciones entre entidades.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from core.domain.models import (
    ConnectionUpdate,
    Domain,
    DomainFilters,
    DomainStats,
    DomainUpdate,
    DomainWithConnection,
    RegistrarConnection,
    User,
)


@runtime_checkable
class Storage(Protocol):
    async def get_user(self, user_id: str) -> User | None: ...

    async def get_user_by_username(self, username: str) -> User | None: ...

    async def create_user(self, user: User) -> User: ...

    async def get_registrar_connections(self, user_id: str) -> list[RegistrarConnection]: ...

    async def get_registrar_connection(self, connection_id: str) -> RegistrarConnection | None: ...

    async def create_registrar_connection(self, connection: RegistrarConnection) -> RegistrarConnection: ...

    async def update_registrar_connection(
        self,
        connection_id: str,
        updates: ConnectionUpdate,
    ) -> RegistrarConnection | None: ...

    async def delete_registrar_connection(self, connection_id: str) -> bool: ...

    async def get_domains(
        self,
        user_id: str,
        filters: DomainFilters | None = None,
    ) -> list[DomainWithConnection]: ...

    async def get_domain(self, domain_id: str) -> DomainWithConnection | None: ...

    async def create_domain(self, domain: Domain) -> Domain: ...

    async def update_domain(self, domain_id: str, updates: DomainUpdate) -> Domain | None: ...

    async def bulk_update_domains(self, domain_ids: list[str], updates: DomainUpdate) -> list[Domain]: ...

    async def get_domain_stats(self, user_id: str, *, now: datetime | None = None) -> DomainStats: ...
