"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.storage import JsonFileStorage
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.domain.errors import StorageError
from core.domain.models import Registrar

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _base_urls(settings: AppSettings) -> dict[Registrar, str]:
    return {
        Registrar.GODADDY: settings.godaddy_base_url,
        Registrar.NAMECHEAP: settings.namecheap_base_url,
        Registrar.DYNADOT: settings.dynadot_base_url,
    }


async def _check_http(settings: AppSettings, url: str) -> tuple[bool, str]:
    # Cualquier respuesta HTTP (incluso 4xx sin credenciales) demuestra alcance de red.
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or exc.__class__.__name__


async def _check_all(settings: AppSettings) -> dict[Registrar, tuple[bool, str]]:
    urls = _base_urls(settings)
    checks = await asyncio.gather(*(_check_http(settings, url) for url in urls.values()))
    return dict(zip(urls.keys(), checks))


def _check_storage(settings: AppSettings) -> tuple[bool, str]:
    path = settings.resolved_storage_path()
    if not path.exists():
        return True, f"{path} (not created yet, run `init-demo` or `connections add`)"
    try:
        JsonFileStorage(path)
    except StorageError as exc:
        return False, str(exc)
    return True, str(path)


def _settings_from(ctx: typer.Context) -> AppSettings:
    # Reusa los settings del callback raíz (respeta `--storage`).
    settings = getattr(ctx.find_root().obj, "settings", None)
    return settings if isinstance(settings, AppSettings) else AppSettings()


@app.command()
def run(
    ctx: typer.Context,
    offline: bool = typer.Option(False, "--offline", help="Skip registrar connectivity checks."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = _settings_from(ctx)

    table = Table(title="registrar-hub Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    env_file = get_user_env_file()
    table.add_row("User config", "OK" if env_file.exists() else "OPTIONAL", str(env_file))
    table.add_row("HTTP timeout", "OK", f"{settings.http_timeout_seconds}s")
    table.add_row("Retries", "OK", f"{settings.registrar_max_retries} (backoff {settings.registrar_backoff_seconds}s)")
    table.add_row("Demo key prefix", "OK", settings.demo_key_prefix)
    table.add_row("Namecheap client IP", "OK", settings.namecheap_client_ip)

    ok_storage, detail_storage = _check_storage(settings)
    table.add_row("Storage", "OK" if ok_storage else "FAIL", detail_storage)

    # Connectivity (best-effort)
    if offline:
        table.add_row("Registrar APIs", "SKIPPED", "--offline")
    else:
        for registrar, (ok, detail) in asyncio.run(_check_all(settings)).items():
            table.add_row(f"{registrar.label()} API", "OK" if ok else "FAIL", detail)

    _console.print(table)

    if settings.namecheap_client_ip == "127.0.0.1":
        _console.print(
            "\n[yellow]Note:[/yellow] Namecheap requires your whitelisted public IP. "
            "Run `registrar-hub doctor setup` to store it."
        )


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    settings = AppSettings()

    client_ip = typer.prompt(
        "Namecheap whitelisted client IP",
        default=settings.namecheap_client_ip,
        show_default=True,
    ).strip()
    timeout = typer.prompt(
        "HTTP timeout (seconds)",
        default=str(settings.http_timeout_seconds),
        show_default=True,
    ).strip()
    log_level = typer.prompt("Log level", default=settings.log_level, show_default=True).strip().upper()

    if not client_ip:
        raise typer.BadParameter("client IP is required")
    try:
        if float(timeout) <= 0:
            raise ValueError(timeout)
    except ValueError as exc:
        raise typer.BadParameter("timeout must be a positive number") from exc

    env_path = write_user_env_vars(
        {
            "REGISTRAR_HUB_NAMECHEAP_CLIENT_IP": client_ip,
            "REGISTRAR_HUB_HTTP_TIMEOUT_SECONDS": timeout,
            "REGISTRAR_HUB_LOG_LEVEL": log_level,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
