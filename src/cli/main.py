"""CLI principal (Typer).

Por qué la CLI es delgada:
- Solo traduce argumentos a llamadas de servicios (`core.services`) y pinta
  resultados con Rich; toda la lógica de registradores vive en el Core.
- Los errores del dominio se traducen aquí a mensajes y códigos de salida.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler

from cli import doctor
from cli.ui_components import (
    build_bulk_search_table,
    build_connections_table,
    build_domain_panel,
    build_domains_table,
    build_search_table,
    build_stats_panel,
    build_sync_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.errors import NotFoundError, RegistrarHubError
from core.domain.models import DomainFilters, DomainStatus, DomainUpdate, Registrar, SyncReport, User
from core.services.container import Services, build_services
from core.services.demo_data import DEMO_USERNAME, seed_demo_data

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Unified inventory for GoDaddy, Namecheap and Dynadot domains.")
connections_app = typer.Typer(no_args_is_help=True, help="Manage registrar connections.")
domains_app = typer.Typer(no_args_is_help=True, help="Browse and update domains.")
app.add_typer(connections_app, name="connections")
app.add_typer(domains_app, name="domains")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


@dataclass
class CliState:
    settings: AppSettings
    username: str
    _services: Services | None = field(default=None, repr=False)

    @property
    def services(self) -> Services:
        # Se construyen al primer uso: `doctor` debe poder diagnosticar un storage roto.
        if self._services is None:
            try:
                self._services = build_services(self.settings)
            except RegistrarHubError as exc:
                _err_console.print(f"[red]Error:[/red] {exc}")
                raise typer.Exit(code=1) from exc
        return self._services


def _configure_logging(settings: AppSettings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, rich_tracebacks=False, show_path=False)],
        force=True,
    )
    # httpx loguea cada request en INFO; solo lo queremos en modo verbose.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Ejecuta una corrutina y traduce errores del dominio a salida de la CLI."""

    try:
        return asyncio.run(coro)
    except NotFoundError as exc:
        _err_console.print(f"[red]Not found:[/red] {exc}")
        raise typer.Exit(code=2) from exc
    except RegistrarHubError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _state(ctx: typer.Context) -> CliState:
    state = ctx.obj
    if not isinstance(state, CliState):
        raise typer.BadParameter("CLI state not initialised")
    return state


async def _user(state: CliState) -> User:
    storage = state.services.storage
    user = await storage.get_user_by_username(state.username)
    if user is None:
        user = await storage.create_user(User(username=state.username))
    return user


def _print_json(payload: Any) -> None:
    if isinstance(payload, BaseModel):
        data = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        data = [p.model_dump(mode="json") if isinstance(p, BaseModel) else p for p in payload]
    else:
        data = payload
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True))


@app.callback()
def main(
    ctx: typer.Context,
    storage_path: Optional[Path] = typer.Option(None, "--storage", help="Path to the JSON storage file."),
    user: str = typer.Option(DEMO_USERNAME, "--user", "-u", help="Local user that owns the inventory."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """registrar-hub: connect registrar accounts, sync domains, search availability."""

    settings = AppSettings()
    if storage_path is not None:
        settings = settings.model_copy(update={"storage_path": storage_path})
    _configure_logging(settings, verbose)
    ctx.obj = CliState(settings=settings, username=user)


@app.command("init-demo")
def init_demo(ctx: typer.Context) -> None:
    """Create the demo user with one connection per registrar and sample domains."""

    state = _state(ctx)
    user = _run(seed_demo_data(state.services.storage, state.services.settings))
    print_banner(_console)
    _console.print(f"[green]Demo data ready for user[/green] {user.username} ({user.id})")


# Conexiones


@connections_app.command("list")
def connections_list(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """List registrar connections (credentials are never shown)."""

    state = _state(ctx)

    async def _go() -> list[Any]:
        user = await _user(state)
        return await state.services.connections.list_connections(user.id)

    connections = _run(_go())
    if as_json:
        _print_json(connections)
        return
    _console.print(build_connections_table(connections))


@connections_app.command("add")
def connections_add(
    ctx: typer.Context,
    registrar: Registrar = typer.Argument(..., help="godaddy | namecheap | dynadot"),
    api_key: str = typer.Option(..., "--api-key", prompt=True, hide_input=True),
    api_secret: Optional[str] = typer.Option(
        None,
        "--api-secret",
        help="GoDaddy secret or Namecheap username (unused for Dynadot).",
    ),
) -> None:
    """Test credentials against the registrar and store the connection."""

    state = _state(ctx)

    async def _go() -> Any:
        user = await _user(state)
        return await state.services.connections.create_connection(user.id, registrar, api_key, api_secret)

    connection = _run(_go())
    _console.print(f"[green]Connected[/green] {connection.registrar.label()} ({connection.id})")


@connections_app.command("remove")
def connections_remove(ctx: typer.Context, connection_id: str) -> None:
    """Delete a connection and the domains it owns."""

    state = _state(ctx)
    _run(state.services.connections.delete_connection(connection_id))
    _console.print(f"[green]Deleted connection[/green] {connection_id}")


@connections_app.command("enable")
def connections_enable(ctx: typer.Context, connection_id: str) -> None:
    state = _state(ctx)
    conn = _run(state.services.connections.set_active(connection_id, True))
    _console.print(f"[green]Enabled[/green] {conn.registrar.label()} ({conn.id})")


@connections_app.command("disable")
def connections_disable(ctx: typer.Context, connection_id: str) -> None:
    state = _state(ctx)
    conn = _run(state.services.connections.set_active(connection_id, False))
    _console.print(f"[yellow]Disabled[/yellow] {conn.registrar.label()} ({conn.id})")


# Sync


@app.command()
def sync(
    ctx: typer.Context,
    connection_id: Optional[str] = typer.Argument(None, help="Connection to sync (omit with --all)."),
    all_connections: bool = typer.Option(False, "--all", help="Sync every active connection."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """Pull the registrar inventory and reconcile it into local storage."""

    state = _state(ctx)
    if not connection_id and not all_connections:
        raise typer.BadParameter("Pass a CONNECTION_ID or --all")

    async def _go() -> SyncReport:
        if connection_id:
            return SyncReport(results=[await state.services.sync.sync(connection_id)])
        user = await _user(state)
        return await state.services.sync.sync_all(user.id)

    report = _run(_go())
    if as_json:
        _print_json({**report.model_dump(mode="json"), "synced_count": report.synced_count})
        return
    _console.print(build_sync_table(report))
    _console.print(f"Synced [bold]{report.synced_count}[/bold] domains")
    if report.failures:
        raise typer.Exit(code=1)


# Dominios


@domains_app.command("list")
def domains_list(
    ctx: typer.Context,
    registrar: Optional[Registrar] = typer.Option(None, "--registrar"),
    status: Optional[str] = typer.Option(None, "--status"),
    search: Optional[str] = typer.Option(None, "--search", help="Case-insensitive substring of the name."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """List domains with optional filters."""

    state = _state(ctx)
    filters = DomainFilters(registrar=registrar, status=status, search=search)

    async def _go() -> list[Any]:
        user = await _user(state)
        return await state.services.domains.list_domains(user.id, filters)

    domains = _run(_go())
    if as_json:
        _print_json(domains)
        return
    _console.print(build_domains_table(domains))


@domains_app.command("show")
def domains_show(ctx: typer.Context, domain_id: str) -> None:
    state = _state(ctx)
    domain = _run(state.services.domains.get_domain(domain_id))
    _console.print(build_domain_panel(domain))


@domains_app.command("stats")
def domains_stats(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a panel."),
) -> None:
    """Totals, domains expiring soon, active domains and registrations this month."""

    state = _state(ctx)

    async def _go() -> Any:
        user = await _user(state)
        return await state.services.domains.stats(user.id)

    stats = _run(_go())
    if as_json:
        _print_json(stats)
        return
    _console.print(build_stats_panel(stats))


@domains_app.command("nameservers")
def domains_nameservers(
    ctx: typer.Context,
    domain_id: str,
    nameservers: list[str] = typer.Argument(..., help="New nameserver hosts (1-10)."),
) -> None:
    """Replace a domain's nameservers at the registrar and locally."""

    state = _state(ctx)
    domain = _run(state.services.domains.update_nameservers(domain_id, nameservers))
    _console.print(f"[green]Updated[/green] {domain.name}: {', '.join(domain.nameservers)}")


@domains_app.command("bulk-update")
def domains_bulk_update(
    ctx: typer.Context,
    domain_ids: list[str] = typer.Argument(..., help="Domain IDs to update."),
    auto_renew: Optional[bool] = typer.Option(None, "--auto-renew/--no-auto-renew"),
    status: Optional[DomainStatus] = typer.Option(None, "--status", case_sensitive=False),
) -> None:
    """Update auto-renew and/or status on several domains at once."""

    state = _state(ctx)
    changes: dict[str, Any] = {}
    if auto_renew is not None:
        changes["auto_renew"] = auto_renew
    if status is not None:
        changes["status"] = status.value
    updated = _run(state.services.domains.bulk_update(domain_ids, DomainUpdate(**changes)))
    _console.print(f"[green]Updated {len(updated)} domain(s)[/green]")


# Búsqueda


@app.command()
def search(
    ctx: typer.Context,
    domain_name: str,
    registrar: Optional[Registrar] = typer.Option(None, "--registrar"),
    show_price: bool = typer.Option(False, "--show-price"),
    currency: str = typer.Option("USD", "--currency"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """Check availability of a domain across active connections."""

    state = _state(ctx)

    async def _go() -> Any:
        user = await _user(state)
        return await state.services.search.search_domain(user.id, domain_name, registrar, show_price, currency)

    response = _run(_go())
    if as_json:
        _print_json(response)
        return
    _console.print(build_search_table(response))


@app.command("bulk-search")
def bulk_search(
    ctx: typer.Context,
    domain_names: list[str] = typer.Argument(..., help="Domain names to check."),
    registrar: Optional[Registrar] = typer.Option(None, "--registrar"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """Check availability of several domains across active connections."""

    state = _state(ctx)

    async def _go() -> Any:
        user = await _user(state)
        return await state.services.search.bulk_search(user.id, domain_names, registrar)

    response = _run(_go())
    if as_json:
        _print_json(response)
        return
    _console.print(build_bulk_search_table(response))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
