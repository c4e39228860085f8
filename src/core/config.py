"""Settings de registrar-hub.

Las credenciales de cada registrador viven en el almacenamiento (una conexión
por cuenta); aquí sólo hay parámetros de transporte, demo y almacenamiento,
leídos desde `REGISTRAR_HUB_*` o desde el `.env` del usuario.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR_NAME = "registrar-hub"


def get_user_config_dir() -> Path:
    """Carpeta por usuario donde guardamos `.env` y `storage.json`."""

    if sys.platform.startswith("win"):
        return Path(os.environ.get("APPDATA") or Path.home()) / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _read_env_file(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}

    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        entry = line.strip()
        if entry.startswith("#") or "=" not in entry:
            continue
        name, _, raw = entry.partition("=")
        name = name.strip()
        if name:
            values[name] = raw.strip().strip("\"'")
    return values


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Fusiona `values` con el `.env` del usuario y lo reescribe ordenado.

    Las claves con valor None se ignoran; las existentes que no se pasan se
    conservan tal cual.
    """

    target = env_path or get_user_env_file()
    merged = _read_env_file(target)
    merged.update({name: value for name, value in values.items() if value is not None})

    target.parent.mkdir(parents=True, exist_ok=True)
    body = "\n".join(f"{name}={merged[name]}" for name in sorted(merged))
    target.write_text(f"# {APP_DIR_NAME} user config\n{body}\n", encoding="utf-8")
    return target


class AppSettings(BaseSettings):
    """Parámetros compartidos por clientes, servicios y CLI.

    Por qué un solo objeto: los clientes de registrador, el motor de sync y la
    CLI reciben la misma instancia, así los tests pueden fijar reintentos,
    timeouts y la ruta de almacenamiento en un único fixture.
    """

    model_config = SettingsConfigDict(
        env_prefix="REGISTRAR_HUB_",
        extra="ignore",
        case_sensitive=False,
        # El .env del proyecto gana sobre el global del usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request hacia un registrador (segundos).",
    )
    user_agent: str = Field(
        default="registrar-hub/0.1",
        min_length=1,
        description="User-Agent para peticiones a registradores.",
    )
    registrar_max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Reintentos ante fallos transitorios (red, 429, 5xx de gateway).",
    )
    registrar_backoff_seconds: float = Field(
        default=0.75,
        ge=0.0,
        description="Base del backoff exponencial entre reintentos (segundos).",
    )

    demo_key_prefix: str = Field(
        default="demo-",
        min_length=1,
        description="Prefijo de API key que activa el modo demo (sin red).",
    )

    godaddy_base_url: str = Field(default="https://api.godaddy.com", min_length=8)
    namecheap_base_url: str = Field(default="https://api.namecheap.com/xml.response", min_length=8)
    dynadot_base_url: str = Field(default="https://api.dynadot.com/api3.json", min_length=8)
    namecheap_client_ip: str = Field(
        default="127.0.0.1",
        min_length=1,
        description="IP de salida registrada en la allowlist de Namecheap.",
    )

    search_max_concurrency: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Máximo de registradores consultados en paralelo al buscar.",
    )
    expiring_window_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Ventana (días) para contar un dominio como 'expiring soon'.",
    )

    storage_path: Path | None = Field(
        default=None,
        description="Ruta del almacenamiento JSON (por defecto en el directorio de config).",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )

    def resolved_storage_path(self) -> Path:
        return self.storage_path or (get_user_config_dir() / "storage.json")

    def is_demo_key(self, api_key: str | None) -> bool:
        return bool(api_key) and str(api_key).startswith(self.demo_key_prefix)
