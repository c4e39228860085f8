"""Ensamblado explícito de servicios (inyección de dependencias).

El almacenamiento se construye una vez al arrancar y se pasa a cada servicio;
nada en el Core accede a un almacenamiento global.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass

import httpx

from adapters.registrars.factory import create_client
from adapters.storage import JsonFileStorage, MemoryStorage
from core.config import AppSettings
from core.interfaces.registrar import ClientFactory
from core.interfaces.storage import Storage
from core.services.connections import ConnectionService
from core.services.domains import DomainService
from core.services.search import SearchAggregator
from core.services.sync import SyncEngine


@dataclass
class Services:
    settings: AppSettings
    storage: Storage
    connections: ConnectionService
    domains: DomainService
    sync: SyncEngine
    search: SearchAggregator


def build_storage(settings: AppSettings, *, in_memory: bool = False) -> Storage:
    if in_memory:
        return MemoryStorage(expiring_window_days=settings.expiring_window_days)
    return JsonFileStorage(
        settings.resolved_storage_path(),
        expiring_window_days=settings.expiring_window_days,
    )


def build_services(
    settings: AppSettings | None = None,
    *,
    storage: Storage | None = None,
    client_factory: ClientFactory | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Services:
    settings = settings or AppSettings()
    storage = storage if storage is not None else build_storage(settings)
    factory = client_factory or functools.partial(create_client, settings=settings, transport=transport)
    return Services(
        settings=settings,
        storage=storage,
        connections=ConnectionService(storage, factory),
        domains=DomainService(storage, factory),
        sync=SyncEngine(storage, factory),
        search=SearchAggregator(storage, factory, max_concurrency=settings.search_max_concurrency),
    )
