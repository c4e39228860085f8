"""Tests for the availability search aggregator and result normalization."""

from __future__ import annotations

import asyncio
import functools
from typing import Any

import pytest

from adapters.registrars import create_client
from adapters.storage import MemoryStorage
from core.config import AppSettings
from core.domain.errors import NotFoundError, UnsupportedRegistrarError, UpstreamAPIError, ValidationError
from core.domain.models import Availability, ConnectionUpdate, Registrar, RegistrarConnection
from core.services.demo_data import seed_demo_data
from core.services.search import (
    UNSUPPORTED_MESSAGE,
    SearchAggregator,
    coerce_availability,
    normalize_result,
)


class FailingSearchClient:
    """Dynadot stand-in whose every search fails upstream."""

    registrar = Registrar.DYNADOT

    async def search_domain(self, domain_name: str, show_price: bool = False, currency: str = "USD") -> dict:
        raise UpstreamAPIError("Dynadot API error: 500", registrar="dynadot", status_code=500)

    async def bulk_search_domains(self, domain_names: list[str]) -> list[dict]:
        raise UpstreamAPIError("Dynadot API error: 500", registrar="dynadot", status_code=500)


class FlakyAvailabilityClient:
    """GoDaddy stand-in without bulk support; one name always fails."""

    registrar = Registrar.GODADDY

    def __init__(self) -> None:
        self.checked: list[str] = []

    async def check_domain_availability(self, domain_name: str) -> dict:
        self.checked.append(domain_name)
        if domain_name == "bad.com":
            raise UpstreamAPIError("GoDaddy API error: 500", registrar="godaddy", status_code=500)
        return {"domain": domain_name, "available": domain_name != "taken.com"}


class PartialBulkClient:
    registrar = Registrar.DYNADOT

    async def bulk_search_domains(self, domain_names: list[str]) -> list[dict]:
        return [{"DomainName": domain_names[0].upper(), "Available": "no"}]


class MalformedBulkClient:
    """Dynadot stand-in that returns a price list of bare strings."""

    registrar = Registrar.DYNADOT

    async def bulk_search_domains(self, domain_names: list[str]) -> list[dict]:
        return [{"DomainName": name, "Available": "yes", "PriceList": ["8.99"]} for name in domain_names]


class NoSearchClient:
    registrar = Registrar.NAMECHEAP


def _seeded(settings: AppSettings, overrides: dict[Registrar, Any] | None = None):
    storage = MemoryStorage()
    user = asyncio.run(seed_demo_data(storage, settings))
    base_factory = functools.partial(create_client, settings=settings)
    overrides = overrides or {}

    def factory(connection: RegistrarConnection):
        if connection.registrar in overrides:
            return overrides[connection.registrar]
        return base_factory(connection)

    return storage, user, SearchAggregator(storage, factory, max_concurrency=2)


class TestNormalization:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, Availability.YES),
            (False, Availability.NO),
            ("yes", Availability.YES),
            ("Available", Availability.YES),
            ("taken", Availability.NO),
            ("no", Availability.NO),
            ("maybe", Availability.UNKNOWN),
            (None, Availability.UNKNOWN),
        ],
    )
    def test_coerce_availability(self, value, expected):
        assert coerce_availability(value) is expected

    def test_godaddy_prices_are_micro_units(self):
        result = normalize_result(
            Registrar.GODADDY,
            "new.com",
            {"domain": "new.com", "available": True, "price": 11990000, "currency": "USD", "definitive": False},
        )
        assert result.available is Availability.YES
        assert result.price_list == [{"currency": "USD", "registration": 11.99, "period": 1}]
        assert result.message == "Availability is not definitive"

    def test_namecheap_error_number_is_unknown(self):
        result = normalize_result(
            Registrar.NAMECHEAP,
            "bad.tld",
            {"domain": "bad.tld", "available": False, "error_no": "3031510", "description": "TLD not supported"},
        )
        assert result.available is Availability.UNKNOWN
        assert result.message == "TLD not supported"

    def test_namecheap_premium(self):
        result = normalize_result(
            Registrar.NAMECHEAP,
            "premium.io",
            {"domain": "premium.io", "available": True, "premium_name": True, "premium_registration_price": 1200.0},
        )
        assert result.premium is True
        assert result.price_list == [{"currency": "USD", "registration": 1200.0, "period": 1}]

    def test_dynadot_native_shape(self):
        result = normalize_result(
            Registrar.DYNADOT,
            "mysite.org",
            {"DomainName": "mysite.org", "Available": "no", "Price": "8.99 in USD", "Premium": "no"},
        )
        assert result.available is Availability.NO
        assert result.premium is False
        assert result.price_list == [{"price": "8.99 in USD"}]

    def test_non_dict_payload(self):
        result = normalize_result(Registrar.DYNADOT, "x.com", ["unexpected"])
        assert result.available is Availability.UNKNOWN


class TestSearchDomain:
    def test_fans_out_to_every_active_connection(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings)
        response = asyncio.run(aggregator.search_domain(user.id, " New-Domain.COM "))

        assert {r.registrar for r in response.results} == set(Registrar)
        for entry in response.results:
            assert entry.result.domain_name == "new-domain.com"
            assert entry.result.available is Availability.YES

    def test_one_failing_registrar_is_isolated(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings, {Registrar.DYNADOT: FailingSearchClient()})
        response = asyncio.run(aggregator.search_domain(user.id, "new.com"))

        assert len(response.results) == 3
        by_registrar = {r.registrar: r.result for r in response.results}
        assert by_registrar[Registrar.DYNADOT].available is Availability.ERROR
        assert by_registrar[Registrar.DYNADOT].message == "Search failed: Dynadot API error: 500"
        assert by_registrar[Registrar.GODADDY].available is Availability.YES
        assert by_registrar[Registrar.NAMECHEAP].available is Availability.YES

    def test_registrar_filter(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings)
        response = asyncio.run(aggregator.search_domain(user.id, "new.com", registrar="namecheap"))
        assert [r.registrar for r in response.results] == [Registrar.NAMECHEAP]

    def test_client_without_search_capability(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings, {Registrar.NAMECHEAP: NoSearchClient()})
        response = asyncio.run(aggregator.search_domain(user.id, "new.com", registrar=Registrar.NAMECHEAP))
        result = response.results[0].result
        assert result.available is Availability.UNKNOWN
        assert result.message == UNSUPPORTED_MESSAGE

    def test_inactive_connections_are_skipped(self, settings: AppSettings):
        storage, user, aggregator = _seeded(settings)
        connections = asyncio.run(storage.get_registrar_connections(user.id))
        godaddy = next(c for c in connections if c.registrar is Registrar.GODADDY)
        asyncio.run(storage.update_registrar_connection(godaddy.id, ConnectionUpdate(is_active=False)))

        response = asyncio.run(aggregator.search_domain(user.id, "new.com"))
        assert Registrar.GODADDY not in {r.registrar for r in response.results}
        with pytest.raises(NotFoundError):
            asyncio.run(aggregator.search_domain(user.id, "new.com", registrar="godaddy"))

    def test_unknown_registrar_filter(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings)
        with pytest.raises(UnsupportedRegistrarError):
            asyncio.run(aggregator.search_domain(user.id, "new.com", registrar="enom"))

    def test_empty_name_rejected(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings)
        with pytest.raises(ValidationError, match="domain name required"):
            asyncio.run(aggregator.search_domain(user.id, "   "))

    def test_user_without_connections(self, settings: AppSettings):
        _, _, aggregator = _seeded(settings)
        assert asyncio.run(aggregator.search_domain("nobody", "new.com")).results == []


class TestBulkSearch:
    def test_native_bulk_and_fallback(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings)
        response = asyncio.run(aggregator.bulk_search(user.id, ["a.com", "B.com", "a.com", " "]))

        by_registrar = {r.registrar: r.results for r in response.results}
        assert set(by_registrar) == set(Registrar)
        for results in by_registrar.values():
            assert [r.domain_name for r in results] == ["a.com", "b.com"]
            assert all(r.available is Availability.YES for r in results)

    def test_sequential_fallback_marks_single_failure(self, settings: AppSettings):
        flaky = FlakyAvailabilityClient()
        _, user, aggregator = _seeded(settings, {Registrar.GODADDY: flaky})
        response = asyncio.run(aggregator.bulk_search(user.id, ["ok.com", "bad.com", "taken.com"], registrar="godaddy"))

        results = {r.domain_name: r for r in response.results[0].results}
        assert flaky.checked == ["ok.com", "bad.com", "taken.com"]
        assert results["ok.com"].available is Availability.YES
        assert results["bad.com"].available is Availability.ERROR
        assert "GoDaddy API error: 500" in (results["bad.com"].message or "")
        assert results["taken.com"].available is Availability.NO

    def test_bulk_failure_marks_every_name(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings, {Registrar.DYNADOT: FailingSearchClient()})
        response = asyncio.run(aggregator.bulk_search(user.id, ["a.com", "b.com"]))

        by_registrar = {r.registrar: r.results for r in response.results}
        assert [r.available for r in by_registrar[Registrar.DYNADOT]] == [Availability.ERROR, Availability.ERROR]
        assert all(r.available is Availability.YES for r in by_registrar[Registrar.NAMECHEAP])

    def test_malformed_native_payload_is_isolated(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings, {Registrar.DYNADOT: MalformedBulkClient()})
        response = asyncio.run(aggregator.bulk_search(user.id, ["a.com"]))

        by_registrar = {r.registrar: r.results for r in response.results}
        assert set(by_registrar) == set(Registrar)
        (dynadot,) = by_registrar[Registrar.DYNADOT]
        assert dynadot.available is Availability.ERROR
        assert (dynadot.message or "").startswith("Search failed:")
        assert by_registrar[Registrar.GODADDY][0].available is Availability.YES
        assert by_registrar[Registrar.NAMECHEAP][0].available is Availability.YES

    def test_missing_names_in_native_response(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings, {Registrar.DYNADOT: PartialBulkClient()})
        response = asyncio.run(aggregator.bulk_search(user.id, ["a.com", "b.com"], registrar="dynadot"))

        first, second = response.results[0].results
        assert first.available is Availability.NO
        assert second.available is Availability.UNKNOWN
        assert second.message == "No result returned"

    def test_empty_input_rejected(self, settings: AppSettings):
        _, user, aggregator = _seeded(settings)
        with pytest.raises(ValidationError, match="non-empty"):
            asyncio.run(aggregator.bulk_search(user.id, []))
        with pytest.raises(ValidationError):
            asyncio.run(aggregator.bulk_search(user.id, ["  "]))
