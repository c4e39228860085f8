"""Estadísticas derivadas del inventario (nunca se persisten)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

from core.domain.models import Domain, DomainStats, DomainStatus


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Inicio del mes actual y del siguiente (intervalo semiabierto)."""

    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def compute_domain_stats(
    domains: Iterable[Domain],
    *,
    now: datetime | None = None,
    expiring_window_days: int = 30,
) -> DomainStats:
    """Calcula `DomainStats`.

    - expiring_soon: now < expiración <= now + ventana (los ya expirados no cuentan).
    - this_month: registro dentro del mes calendario de `now` (UTC).
    """

    now = _aware(now or datetime.now(timezone.utc))
    horizon = now + timedelta(days=expiring_window_days)
    month_start, month_end = month_bounds(now.astimezone(timezone.utc))

    stats = DomainStats()
    for domain in domains:
        expires = _aware(domain.expiration_date)
        registered = _aware(domain.registration_date)
        stats.total_domains += 1
        if now < expires <= horizon:
            stats.expiring_soon += 1
        if domain.status == DomainStatus.ACTIVE.value:
            stats.active_domains += 1
        if month_start <= registered < month_end:
            stats.this_month += 1
    return stats
