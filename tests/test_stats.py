"""Tests for derived domain statistics."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from adapters.storage import MemoryStorage
from core.config import AppSettings
from core.domain.models import Domain, Registrar, RegistrarConnection, User
from core.services.demo_data import seed_demo_data
from core.services.stats import compute_domain_stats, month_bounds

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _domain(name: str, *, expires: datetime, registered: datetime | None = None, status: str = "active") -> Domain:
    return Domain(
        user_id="u1",
        registrar_connection_id="c1",
        name=name,
        registrar=Registrar.DYNADOT,
        status=status,
        expiration_date=expires,
        registration_date=registered or NOW - timedelta(days=365),
    )


class TestMonthBounds:
    def test_regular_month(self):
        start, end = month_bounds(NOW)
        assert start == datetime(2026, 10, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 11, 1, tzinfo=timezone.utc)

    def test_december_rolls_over(self):
        start, end = month_bounds(datetime(2026, 12, 31, 23, 59, tzinfo=timezone.utc))
        assert start == datetime(2026, 12, 1, tzinfo=timezone.utc)
        assert end == datetime(2027, 1, 1, tzinfo=timezone.utc)


class TestComputeDomainStats:
    def test_expiring_window_boundaries(self):
        domains = [
            _domain("in-30.com", expires=NOW + timedelta(days=30)),
            _domain("in-31.com", expires=NOW + timedelta(days=31)),
            _domain("yesterday.com", expires=NOW - timedelta(days=1), status="expired"),
            _domain("tomorrow.com", expires=NOW + timedelta(days=1), status="expiring"),
        ]
        stats = compute_domain_stats(domains, now=NOW)

        assert stats.total_domains == 4
        assert stats.expiring_soon == 2
        assert stats.active_domains == 2

    def test_custom_window(self):
        domains = [_domain("in-31.com", expires=NOW + timedelta(days=31))]
        assert compute_domain_stats(domains, now=NOW, expiring_window_days=45).expiring_soon == 1

    @pytest.mark.parametrize(
        "registered, counted",
        [
            (datetime(2026, 10, 1, tzinfo=timezone.utc), True),
            (datetime(2026, 10, 31, 23, 59, tzinfo=timezone.utc), True),
            (datetime(2026, 9, 30, 23, 59, tzinfo=timezone.utc), False),
            (datetime(2026, 11, 1, tzinfo=timezone.utc), False),
            (datetime(2025, 10, 15, tzinfo=timezone.utc), False),
        ],
    )
    def test_this_month_uses_calendar_month(self, registered: datetime, counted: bool):
        stats = compute_domain_stats([_domain("x.com", expires=NOW + timedelta(days=300), registered=registered)], now=NOW)
        assert stats.this_month == (1 if counted else 0)

    def test_naive_datetimes_are_utc(self):
        naive = _domain("naive.com", expires=(NOW + timedelta(days=5)).replace(tzinfo=None))
        assert compute_domain_stats([naive], now=NOW).expiring_soon == 1

    def test_empty_inventory(self):
        stats = compute_domain_stats([], now=NOW)
        assert stats.model_dump() == {"total_domains": 0, "expiring_soon": 0, "active_domains": 0, "this_month": 0}


class TestStorageStats:
    def test_single_dynadot_domain(self):
        storage = MemoryStorage()

        async def _go():
            user = await storage.create_user(User(username="owner"))
            conn = await storage.create_registrar_connection(
                RegistrarConnection(user_id=user.id, registrar=Registrar.DYNADOT, api_key="demo-dynadot")
            )
            await storage.create_domain(
                Domain(
                    user_id=user.id,
                    registrar_connection_id=conn.id,
                    name="mysite.org",
                    registrar=Registrar.DYNADOT,
                    status="active",
                    expiration_date=NOW + timedelta(days=180),
                    registration_date=NOW - timedelta(days=180),
                )
            )
            return await storage.get_domain_stats(user.id, now=NOW)

        stats = asyncio.run(_go())
        assert (stats.total_domains, stats.expiring_soon, stats.active_domains, stats.this_month) == (1, 0, 1, 0)

    def test_demo_inventory(self, settings: AppSettings):
        storage = MemoryStorage()
        user = asyncio.run(seed_demo_data(storage, settings, now=NOW))
        stats = asyncio.run(storage.get_domain_stats(user.id, now=NOW))

        assert stats.total_domains == 5
        assert stats.expiring_soon == 1
        assert stats.active_domains == 4
        assert stats.this_month == 0

    def test_stats_are_per_user(self, settings: AppSettings):
        storage = MemoryStorage()
        asyncio.run(seed_demo_data(storage, settings, now=NOW))
        assert asyncio.run(storage.get_domain_stats("someone-else", now=NOW)).total_domains == 0
