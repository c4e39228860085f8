"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import (
    Availability,
    BulkSearchResponse,
    DomainStats,
    DomainWithConnection,
    PublicConnection,
    SearchResponse,
    SyncReport,
)

_AVAILABILITY_STYLE = {
    Availability.YES: "green",
    Availability.NO: "red",
    Availability.UNKNOWN: "yellow",
    Availability.ERROR: "bold red",
}

_STATUS_STYLE = {
    "active": "green",
    "expiring": "yellow",
    "expired": "red",
    "pending": "cyan",
}


def _fmt_date(value: datetime | None) -> str:
    if value is None:
        return "never"
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d")


def _fmt_datetime(value: datetime | None) -> str:
    if value is None:
        return "never"
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("registrar-hub", style="bold cyan")
    subtitle = Text("GoDaddy • Namecheap • Dynadot", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_connections_table(connections: Iterable[PublicConnection]) -> Table:
    table = Table(title="Registrar Connections")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Registrar", style="cyan")
    table.add_column("Active", style="white")
    table.add_column("Last sync", style="magenta")
    for conn in connections:
        table.add_row(
            conn.id,
            conn.registrar.label(),
            "yes" if conn.is_active else "no",
            _fmt_datetime(conn.last_sync),
        )
    return table


def build_domains_table(domains: Iterable[DomainWithConnection]) -> Table:
    table = Table(title="Domains")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="bold white")
    table.add_column("Registrar", style="cyan")
    table.add_column("Status")
    table.add_column("Expires", style="magenta")
    table.add_column("Auto-renew")
    table.add_column("Nameservers", style="dim")
    for domain in domains:
        style = _STATUS_STYLE.get(domain.status, "white")
        table.add_row(
            domain.id,
            domain.name,
            domain.registrar.label(),
            Text(domain.status, style=style),
            _fmt_date(domain.expiration_date),
            "yes" if domain.auto_renew else "no",
            ", ".join(domain.nameservers),
        )
    return table


def build_domain_panel(domain: DomainWithConnection) -> Panel:
    body = Text()
    body.append(f"Registrar: {domain.registrar.label()} ({domain.registrar_connection_id})\n")
    body.append("Status: ")
    body.append(domain.status + "\n", style=_STATUS_STYLE.get(domain.status, "white"))
    body.append(f"Registered: {_fmt_date(domain.registration_date)}\n")
    body.append(f"Expires: {_fmt_date(domain.expiration_date)}\n")
    body.append(f"Auto-renew: {'yes' if domain.auto_renew else 'no'}\n")
    body.append(f"Registrar ID: {domain.registrar_domain_id or '-'}\n")
    body.append("Nameservers:\n", style="bold")
    for ns in domain.nameservers or ["(none)"]:
        body.append(f"- {ns}\n")
    body.append(f"\nLast updated: {_fmt_datetime(domain.last_updated)}", style="dim")
    return Panel(body, title=Text(domain.name, style="bold cyan"), border_style="cyan")


def build_stats_panel(stats: DomainStats) -> Panel:
    table = Table.grid(padding=(0, 3))
    table.add_column(style="bold")
    table.add_column(justify="right")
    table.add_row("Total domains", str(stats.total_domains))
    table.add_row("Expiring soon", Text(str(stats.expiring_soon), style="yellow" if stats.expiring_soon else "white"))
    table.add_row("Active", str(stats.active_domains))
    table.add_row("Registered this month", str(stats.this_month))
    return Panel(table, title="Domain Stats", border_style="green")


def build_search_table(response: SearchResponse) -> Table:
    table = Table(title="Availability")
    table.add_column("Registrar", style="cyan", no_wrap=True)
    table.add_column("Domain", style="white")
    table.add_column("Available")
    table.add_column("Premium")
    table.add_column("Price", style="magenta")
    table.add_column("Message", style="dim")
    for entry in sorted(response.results, key=lambda r: r.registrar.value):
        result = entry.result
        table.add_row(
            entry.registrar.label(),
            result.domain_name,
            Text(result.available.value, style=_AVAILABILITY_STYLE[result.available]),
            "" if result.premium is None else ("yes" if result.premium else "no"),
            _fmt_prices(result.price_list),
            result.message or "",
        )
    return table


def build_bulk_search_table(response: BulkSearchResponse) -> Table:
    table = Table(title="Bulk Availability")
    table.add_column("Registrar", style="cyan", no_wrap=True)
    table.add_column("Domain", style="white")
    table.add_column("Available")
    table.add_column("Message", style="dim")
    for entry in sorted(response.results, key=lambda r: r.registrar.value):
        for result in entry.results:
            table.add_row(
                entry.registrar.label(),
                result.domain_name,
                Text(result.available.value, style=_AVAILABILITY_STYLE[result.available]),
                result.message or "",
            )
    return table


def build_sync_table(report: SyncReport) -> Table:
    table = Table(title="Sync")
    table.add_column("Registrar", style="cyan")
    table.add_column("Connection", style="dim")
    table.add_column("Created", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Error", style="red")
    for result in report.results:
        table.add_row(result.registrar.label(), result.connection_id, str(result.created), str(result.updated), "")
    for failure in report.failures:
        table.add_row(failure.registrar.label(), failure.connection_id, "-", "-", failure.error)
    return table


def _fmt_prices(price_list: list[dict[str, object]] | None) -> str:
    if not price_list:
        return ""
    parts = []
    for item in price_list:
        if "registration" in item:
            parts.append(f"{item.get('registration')} {item.get('currency', '')}".strip())
        elif "price" in item:
            parts.append(str(item["price"]))
    return ", ".join(parts)
