from __future__ import annotations

import asyncio

import pytest

from ptu_estimator.classifier import RawPriceRecord
from ptu_estimator.config import PricingSettings
from ptu_estimator.feed import RetailFeedError
from ptu_estimator.orchestrator import PricingOrchestrator
from ptu_estimator.resolver import ResolvedPricing
from ptu_estimator.service import PricingService, build_default_service
from ptu_estimator.store import PricingStore


def _record(sku: str, meter: str, unit: str, price: float, region: str = "eastus") -> RawPriceRecord:
    return RawPriceRecord(
        product_name="Azure OpenAI",
        sku_name=sku,
        meter_name=meter,
        unit_of_measure=unit,
        retail_price=price,
        arm_region_name=region,
    )


def _feed(records: list[RawPriceRecord]):
    async def query(filter_expression: str, top: int) -> list[RawPriceRecord]:
        return list(records)

    return query


async def _failing_query(filter_expression: str, top: int) -> list[RawPriceRecord]:
    raise RetailFeedError("feed down")


FALLBACK = {
    "gpt-4o": {
        "paygo": {"eastus2": {"global": {"input": 2.5, "output": 10.0, "cached_input": 1.25}}},
        "ptu": {"eastus2": {"global": 1.0}},
    }
}


def _service(query, fallback=None, strategy: str = "merged") -> PricingService:
    orchestrator = PricingOrchestrator(
        query=query,
        store=PricingStore(),
        fallback=FALLBACK if fallback is None else fallback,
        settings=PricingSettings(strategy=strategy),
    )
    return PricingService(orchestrator)


@pytest.mark.parametrize("strategy", ["merged", "per_model"])
def test_live_feed_only_prices_slot(strategy: str) -> None:
    records = [
        _record("GPT-4o-mini Global", "Input Tokens", "1K", 0.00015),
        _record("GPT-4o-mini Global", "Output Tokens", "1K", 0.0006),
    ]
    service = _service(_feed(records), fallback={}, strategy=strategy)
    pricing = asyncio.run(service.get_pricing("gpt-4o-mini", "eastus", "global"))
    assert pricing.source == "live"
    assert pricing.paygo_input == pytest.approx(0.15)
    assert pricing.paygo_output == pytest.approx(0.6)
    assert pricing.paygo_cached_input == pytest.approx(0.15)
    assert pricing.reserved_hourly == 0.0


@pytest.mark.parametrize("strategy", ["merged", "per_model"])
def test_feed_outage_serves_fallback(strategy: str) -> None:
    service = _service(_failing_query, strategy=strategy)
    pricing = asyncio.run(service.get_pricing("GPT-4o", "East US 2", "Global"))
    assert pricing == ResolvedPricing(2.5, 10.0, 1.25, 1.0, source="fallback")
    assert pricing.reserved_monthly == 720.0


def test_unknown_model_is_unavailable() -> None:
    service = _service(_failing_query)
    pricing = asyncio.run(service.get_pricing("gpt-7", "eastus2", "global"))
    assert pricing.source == "unavailable"
    assert not pricing.is_priced


def test_unknown_deployment_is_unavailable() -> None:
    service = _service(_feed([]))
    pricing = asyncio.run(service.get_pricing("gpt-4o", "eastus2", "edge"))
    assert pricing.source == "unavailable"


def test_unexpected_orchestrator_error_degrades_to_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    service = _service(_feed([]))

    async def _boom() -> None:
        raise RuntimeError("bug")

    monkeypatch.setattr(service.orchestrator, "resolve_catalog", _boom)
    pricing = asyncio.run(service.get_pricing("gpt-4o", "eastus2", "global"))
    assert pricing.source == "fallback"
    assert pricing.paygo_input == 2.5


def test_invalid_strategy_rejected() -> None:
    orchestrator = PricingOrchestrator(query=_feed([]), fallback={})
    with pytest.raises(ValueError, match="Unknown strategy"):
        PricingService(orchestrator, strategy="cheapest")


def test_status_includes_fallback_metadata() -> None:
    service = _service(_feed([]))
    status = service.pricing_status()
    assert status["strategy"] == "merged"
    assert status["fallback"]["schema_version"] == "1.0.0"
    assert status["cache_size"] == 0


def test_refresh_all_delegates_to_orchestrator() -> None:
    service = _service(_failing_query)
    result = asyncio.run(service.refresh_all())
    # gpt-4o x 3 default regions x 3 deployment types
    assert result["refreshed"] == 9
    assert result["failed"] == 0


def test_build_default_service_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PTU_ESTIMATOR_STRATEGY", "per_model")
    monkeypatch.setenv("PTU_ESTIMATOR_FEED_TIMEOUT_SECONDS", "2.5")
    service = build_default_service()
    assert service.strategy == "per_model"
    assert service.orchestrator.settings.feed_timeout_seconds == 2.5
    assert "gpt-4o" in service.orchestrator.fallback


MIXED_FALLBACK = {
    "gpt-4o": FALLBACK["gpt-4o"],
    "gpt-4o-mini": {
        "paygo": {"eastus2": {"global": {"input": 0.15, "output": 0.6, "cached_input": 0.075}}},
        "ptu": {"eastus2": {"global": 1.0}},
    },
}
MINI_INPUT_EASTUS2 = _record("GPT-4o-mini Global", "Input Tokens", "1M", 0.2, region="eastus2")


def test_merged_catalog_tags_each_slot_by_origin() -> None:
    service = _service(_feed([MINI_INPUT_EASTUS2]), fallback=MIXED_FALLBACK)

    untouched = asyncio.run(service.get_pricing("gpt-4o", "eastus2", "global"))
    assert untouched.source == "fallback"
    assert untouched.paygo_input == 2.5

    empty_region = asyncio.run(service.get_pricing("gpt-4o", "westeurope", "global"))
    assert empty_region.source == "fallback"
    assert not empty_region.is_priced

    mixed = asyncio.run(service.get_pricing("gpt-4o-mini", "eastus2", "global"))
    assert mixed.source == "merged"
    assert mixed.paygo_input == 0.2
    assert mixed.paygo_output == 0.6


def test_per_model_live_slot_is_tagged_live() -> None:
    service = _service(_feed([MINI_INPUT_EASTUS2]), fallback=MIXED_FALLBACK, strategy="per_model")
    pricing = asyncio.run(service.get_pricing("gpt-4o-mini", "eastus2", "global"))
    assert pricing.source == "live"
    assert pricing.paygo_input == 0.2
    assert pricing.paygo_output == 0.0
    assert pricing.paygo_cached_input == 0.2
