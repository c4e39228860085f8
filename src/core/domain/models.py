"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Facilita la normalización de datos de registradores con formatos muy
  distintos (JSON, XML, timestamps Unix) hacia una única forma.

Nota:
- Estos modelos describen *qué* es un dominio o una conexión, no *cómo* se
  obtiene de cada registrador.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class Registrar(str, Enum):
    """Registradores soportados (enum cerrado)."""

    GODADDY = "godaddy"
    NAMECHEAP = "namecheap"
    DYNADOT = "dynadot"

    def label(self) -> str:
        return {"godaddy": "GoDaddy", "namecheap": "Namecheap", "dynadot": "Dynadot"}[self.value]


class DomainStatus(str, Enum):
    ACTIVE = "active"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    PENDING = "pending"


class Availability(str, Enum):
    """Vocabulario normalizado de disponibilidad."""

    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"
    ERROR = "error"


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    username: str = Field(..., min_length=1, max_length=128)


class RegistrarConnection(BaseModel):
    """Credenciales que vinculan a un usuario con una cuenta de registrador.

    `api_secret` cambia de significado según el registrador:
    - GoDaddy: secreto de la API key.
    - Namecheap: nombre de usuario de la cuenta (ApiUser/UserName).
    - Dynadot: no se usa.
    """

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    registrar: Registrar
    api_key: str = Field(..., min_length=1)
    api_secret: str | None = None
    is_active: bool = True
    last_sync: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)

    def public(self) -> PublicConnection:
        """Vista sin credenciales (para listar/mostrar)."""

        return PublicConnection.model_validate(self.model_dump(exclude={"api_key", "api_secret"}))


class PublicConnection(BaseModel):
    id: str
    user_id: str
    registrar: Registrar
    is_active: bool
    last_sync: datetime | None = None
    created_at: datetime


class Domain(BaseModel):
    """Dominio en el inventario local.

    Invariante: `registrar_connection_id` apunta a una conexión existente cuyo
    `registrar` coincide con el de este dominio.
    """

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    registrar_connection_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=253)
    registrar: Registrar
    status: str = Field(
        default=DomainStatus.ACTIVE.value,
        description="active | expiring | expired | pending (o el estado del registrador en minúsculas).",
    )
    expiration_date: datetime
    registration_date: datetime
    nameservers: list[str] = Field(default_factory=list)
    auto_renew: bool = False
    last_updated: datetime = Field(default_factory=utcnow)
    registrar_domain_id: str | None = Field(
        default=None,
        description="Identificador externo (opaco) en el registrador.",
    )


class DomainWithConnection(Domain):
    registrar_connection: PublicConnection


class RemoteDomain(BaseModel):
    """Forma uniforme de un dominio tal como lo reporta un registrador."""

    name: str = Field(..., min_length=1)
    status: str = Field(default=DomainStatus.ACTIVE.value)
    expiration_date: datetime
    registration_date: datetime
    nameservers: list[str] = Field(default_factory=list)
    registrar_domain_id: str | None = None

    @field_validator("status")
    @classmethod
    def _lower_status(cls, value: str) -> str:
        return value.strip().lower()


class DomainFilters(BaseModel):
    registrar: Registrar | None = None
    status: str | None = None
    search: str | None = None


class DomainUpdate(BaseModel):
    """Campos mutables de un dominio (actualización parcial)."""

    model_config = ConfigDict(extra="forbid")

    status: str | None = None
    expiration_date: datetime | None = None
    nameservers: list[str] | None = None
    registrar_domain_id: str | None = None
    auto_renew: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ConnectionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api_key: str | None = Field(default=None, min_length=1)
    api_secret: str | None = None
    is_active: bool | None = None
    last_sync: datetime | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class NameserverUpdate(BaseModel):
    """Conjunto de nameservers a aplicar (1..10 hosts no vacíos)."""

    nameservers: list[str] = Field(..., max_length=10)

    @field_validator("nameservers")
    @classmethod
    def _clean(cls, value: list[str]) -> list[str]:
        cleaned = [ns.strip().lower().rstrip(".") for ns in value]
        if not cleaned:
            raise ValueError("at least one nameserver required")
        if any(not ns for ns in cleaned):
            raise ValueError("nameserver hosts must not be empty")
        return cleaned


class DomainStats(BaseModel):
    total_domains: int = 0
    expiring_soon: int = 0
    active_domains: int = 0
    this_month: int = 0


class SearchResult(BaseModel):
    """Resultado normalizado de disponibilidad (transitorio, no se persiste)."""

    domain_name: str
    available: Availability
    premium: bool | None = None
    price_list: list[dict[str, Any]] | None = None
    message: str | None = None


class RegistrarSearchResult(BaseModel):
    registrar: Registrar
    result: SearchResult


class SearchResponse(BaseModel):
    results: list[RegistrarSearchResult] = Field(default_factory=list)


class RegistrarBulkSearchResult(BaseModel):
    registrar: Registrar
    results: list[SearchResult] = Field(default_factory=list)


class BulkSearchResponse(BaseModel):
    results: list[RegistrarBulkSearchResult] = Field(default_factory=list)


class SyncResult(BaseModel):
    connection_id: str
    registrar: Registrar
    synced_count: int = 0
    created: int = 0
    updated: int = 0
    synced_at: datetime = Field(default_factory=utcnow)


class SyncFailure(BaseModel):
    connection_id: str
    registrar: Registrar
    error: str


class SyncReport(BaseModel):
    """Resultado de sincronizar todas las conexiones activas de un usuario."""

    results: list[SyncResult] = Field(default_factory=list)
    failures: list[SyncFailure] = Field(default_factory=list)

    @property
    def synced_count(self) -> int:
        return sum(r.synced_count for r in self.results)
