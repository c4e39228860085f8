"""Sincronización/reconciliación del inventario de un registrador.

Flujo de `SyncEngine.sync`:
1. Resolver la conexión (NotFoundError si no existe).
2. Construir el cliente con la factoría y pedir `get_domains()`.
3. Reconciliar por nombre exacto dentro de los dominios del dueño de la
   conexión: actualizar si existe, crear si no.
4. Marcar `last_sync` aunque nada haya cambiado.

Si dos conexiones reportan el mismo nombre, gana la última sincronizada (no hay
detección de conflictos de propiedad).
"""

from __future__ import annotations

import logging

from core.domain.errors import NotFoundError, RegistrarHubError
from core.domain.models import (
    ConnectionUpdate,
    Domain,
    DomainFilters,
    DomainUpdate,
    RegistrarConnection,
    RemoteDomain,
    SyncFailure,
    SyncReport,
    SyncResult,
    utcnow,
)
from core.interfaces.registrar import ClientFactory
from core.interfaces.storage import Storage

logger = logging.getLogger(__name__)


class SyncEngine:
    def __init__(self, storage: Storage, client_factory: ClientFactory) -> None:
        self._storage = storage
        self._client_factory = client_factory

    async def sync(self, connection_id: str) -> SyncResult:
        connection = await self._storage.get_registrar_connection(connection_id)
        if connection is None:
            raise NotFoundError("Registrar connection", connection_id)

        client = self._client_factory(connection)
        remote_domains = await client.get_domains()
        logger.info("%s returned %d domains for connection %s", connection.registrar.value, len(remote_domains), connection.id)

        existing = await self._storage.get_domains(connection.user_id, DomainFilters())
        by_name: dict[str, str] = {d.name: d.id for d in existing}

        result = SyncResult(connection_id=connection.id, registrar=connection.registrar)
        for remote in remote_domains:
            domain_id = by_name.get(remote.name)
            if domain_id is not None:
                updated = await self._storage.update_domain(domain_id, _updates_from(remote))
                if updated is not None:
                    result.updated += 1
                continue

            created = await self._storage.create_domain(_domain_from(remote, connection))
            by_name[created.name] = created.id
            result.created += 1

        result.synced_count = result.created + result.updated
        result.synced_at = utcnow()
        await self._storage.update_registrar_connection(connection.id, ConnectionUpdate(last_sync=result.synced_at))
        return result

    async def sync_all(self, user_id: str) -> SyncReport:
        """Sincroniza todas las conexiones activas; un fallo no aborta las demás."""

        report = SyncReport()
        for connection in await self._storage.get_registrar_connections(user_id):
            if not connection.is_active:
                continue
            try:
                report.results.append(await self.sync(connection.id))
            except RegistrarHubError as exc:
                logger.warning("Sync failed for %s (%s): %s", connection.registrar.value, connection.id, exc)
                report.failures.append(
                    SyncFailure(connection_id=connection.id, registrar=connection.registrar, error=str(exc))
                )
            except Exception as exc:
                logger.exception("Unexpected sync error for %s (%s)", connection.registrar.value, connection.id)
                report.failures.append(
                    SyncFailure(
                        connection_id=connection.id,
                        registrar=connection.registrar,
                        error=f"{exc.__class__.__name__}: {exc}",
                    )
                )
        return report


def _updates_from(remote: RemoteDomain) -> DomainUpdate:
    # auto_renew y los campos de propiedad no se tocan.
    return DomainUpdate(
        status=remote.status,
        expiration_date=remote.expiration_date,
        nameservers=list(remote.nameservers),
        registrar_domain_id=remote.registrar_domain_id,
    )


def _domain_from(remote: RemoteDomain, connection: RegistrarConnection) -> Domain:
    return Domain(
        user_id=connection.user_id,
        registrar_connection_id=connection.id,
        name=remote.name,
        registrar=connection.registrar,
        status=remote.status,
        expiration_date=remote.expiration_date,
        registration_date=remote.registration_date,
        nameservers=list(remote.nameservers),
        auto_renew=False,
        registrar_domain_id=remote.registrar_domain_id,
    )
