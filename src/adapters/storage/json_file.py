"""Almacenamiento persistente en un fichero JSON.

Por qué JSON:
- La CLI necesita estado entre ejecuciones sin depender de un servidor de BD.
- Reutiliza la serialización de Pydantic (`model_dump(mode="json")`) con
  formato estable (indentado, claves ordenadas).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from adapters.storage.memory import MemoryStorage
from core.domain.errors import StorageError
from core.domain.models import Domain, RegistrarConnection, User

logger = logging.getLogger(__name__)


class StorageSnapshot(BaseModel):
    users: list[User] = Field(default_factory=list)
    connections: list[RegistrarConnection] = Field(default_factory=list)
    domains: list[Domain] = Field(default_factory=list)


class JsonFileStorage(MemoryStorage):
    """`MemoryStorage` que vuelca su estado a disco tras cada mutación."""

    def __init__(self, path: Path, *, expiring_window_days: int = 30) -> None:
        super().__init__(expiring_window_days=expiring_window_days)
        self.path = path
        if path.exists():
            self._load()

    def _load(self) -> None:
        try:
            raw = self.path.read_text(encoding="utf-8")
            snapshot = StorageSnapshot.model_validate(json.loads(raw) if raw.strip() else {})
        except OSError as exc:
            raise StorageError(self.path, exc.strerror or str(exc)) from exc
        except json.JSONDecodeError as exc:
            raise StorageError(self.path, f"invalid JSON (line {exc.lineno}, column {exc.colno})") from exc
        except PydanticValidationError as exc:
            raise StorageError(self.path, f"unexpected layout ({exc.error_count()} invalid field(s))") from exc
        self._users = {u.id: u for u in snapshot.users}
        self._connections = {c.id: c for c in snapshot.connections}
        self._domains = {d.id: d for d in snapshot.domains}
        logger.debug(
            "Loaded storage from %s (%d connections, %d domains)",
            self.path,
            len(self._connections),
            len(self._domains),
        )

    def _changed(self) -> None:
        snapshot = StorageSnapshot(
            users=list(self._users.values()),
            connections=list(self._connections.values()),
            domains=list(self._domains.values()),
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(
            json.dumps(snapshot.model_dump(mode="json"), ensure_ascii=False, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        tmp.replace(self.path)
