"""Gestión de conexiones con registradores.

Una conexión solo se guarda si supera antes un `test_connection()`; las vistas
que se devuelven hacia fuera nunca incluyen credenciales.
"""

from __future__ import annotations

import logging

from core.domain.errors import (
    NotFoundError,
    UnsupportedRegistrarError,
    UpstreamAPIError,
    UpstreamAuthError,
    UpstreamError,
)
from core.domain.models import (
    ConnectionUpdate,
    PublicConnection,
    Registrar,
    RegistrarConnection,
)
from core.interfaces.registrar import ClientFactory
from core.interfaces.storage import Storage

logger = logging.getLogger(__name__)


class ConnectionService:
    def __init__(self, storage: Storage, client_factory: ClientFactory) -> None:
        self._storage = storage
        self._client_factory = client_factory

    async def list_connections(self, user_id: str) -> list[PublicConnection]:
        connections = await self._storage.get_registrar_connections(user_id)
        return [c.public() for c in sorted(connections, key=lambda c: c.created_at)]

    async def create_connection(
        self,
        user_id: str,
        registrar: Registrar | str,
        api_key: str,
        api_secret: str | None = None,
        *,
        is_active: bool = True,
    ) -> PublicConnection:
        try:
            registrar = Registrar(registrar)
        except ValueError as exc:
            raise UnsupportedRegistrarError(registrar) from exc

        connection = RegistrarConnection(
            user_id=user_id,
            registrar=registrar,
            api_key=api_key,
            api_secret=api_secret or None,
            is_active=is_active,
        )

        client = self._client_factory(connection)
        try:
            valid = await client.test_connection()
        except UpstreamError as exc:
            raise UpstreamAPIError(
                "Failed to connect to registrar API",
                registrar=connection.registrar.value,
                status_code=exc.status_code,
            ) from exc
        if not valid:
            raise UpstreamAuthError("Invalid API credentials", registrar=connection.registrar.value)

        stored = await self._storage.create_registrar_connection(connection)
        logger.info("Created %s connection %s", stored.registrar.value, stored.id)
        return stored.public()

    async def get_connection(self, connection_id: str) -> RegistrarConnection:
        connection = await self._storage.get_registrar_connection(connection_id)
        if connection is None:
            raise NotFoundError("Registrar connection", connection_id)
        return connection

    async def set_active(self, connection_id: str, active: bool) -> PublicConnection:
        updated = await self._storage.update_registrar_connection(connection_id, ConnectionUpdate(is_active=active))
        if updated is None:
            raise NotFoundError("Registrar connection", connection_id)
        return updated.public()

    async def delete_connection(self, connection_id: str) -> None:
        if not await self._storage.delete_registrar_connection(connection_id):
            raise NotFoundError("Registrar connection", connection_id)
        logger.info("Deleted connection %s", connection_id)
