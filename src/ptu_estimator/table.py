"""Pricing table construction and live/fallback merge.

A pricing table maps model -> {"paygo": region -> deployment -> {direction:
$/1M tokens}, "ptu": region -> deployment -> $/hour}. Tables are built fresh
for every fetch cycle and never mutated after they are handed out.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Iterable

from ptu_estimator.classifier import CAPACITY_PRICE_KIND, TOKEN_PRICE_KIND, ClassifiedRecord
from ptu_estimator.units import normalize_capacity_price, normalize_token_price

PricingTable = dict[str, dict[str, Any]]

LIVE_SOURCE = "Azure Retail Prices API"
MERGED_SOURCE = "Azure Retail Prices API + bundled fallback"
FALLBACK_SOURCE = "Bundled fallback pricing"


@dataclass(frozen=True)
class PricingSnapshot:
    """`models` is what callers resolve against; `live_models` is the feed-derived
    part of it, kept so a resolved slot can report where its prices came from.
    """

    models: PricingTable
    fetched_at: float
    source: str
    record_count: int = 0
    live_models: PricingTable = field(default_factory=dict)


def _empty_model() -> dict[str, Any]:
    return {"paygo": {}, "ptu": {}}


def build_live_table(records: Iterable[ClassifiedRecord]) -> PricingTable:
    """Group classified records into a normalized table.

    Later records for the same slot overwrite earlier ones.
    """
    models: PricingTable = {}
    for record in records:
        model = models.setdefault(record.model_key, _empty_model())
        if record.price_kind == TOKEN_PRICE_KIND:
            slot = model["paygo"].setdefault(record.region, {}).setdefault(
                record.deployment_type, {}
            )
            slot[record.token_direction] = normalize_token_price(
                record.retail_price, record.unit_of_measure
            )
        elif record.price_kind == CAPACITY_PRICE_KIND:
            model["ptu"].setdefault(record.region, {})[record.deployment_type] = (
                normalize_capacity_price(record.retail_price, record.unit_of_measure)
            )
    return models


def merge_pricing_tables(live: PricingTable, fallback: PricingTable) -> PricingTable:
    """Overlay strictly positive live values onto a copy of the fallback.

    Zero or missing live values never erase a fallback price.
    """
    merged = deepcopy(fallback)
    for model_key, live_model in live.items():
        target = merged.setdefault(model_key, _empty_model())
        target.setdefault("paygo", {})
        target.setdefault("ptu", {})

        for region, deployments in live_model.get("paygo", {}).items():
            for deployment, prices in deployments.items():
                for direction, price in prices.items():
                    if price > 0:
                        target["paygo"].setdefault(region, {}).setdefault(deployment, {})[
                            direction
                        ] = price

        for region, deployments in live_model.get("ptu", {}).items():
            for deployment, price in deployments.items():
                if price > 0:
                    target["ptu"].setdefault(region, {})[deployment] = price
    return merged


def has_positive_price(model_pricing: dict[str, Any], region: str, deployment: str) -> bool:
    """True if the model carries a real input or reserved price for the slot."""
    paygo = model_pricing.get("paygo", {}).get(region, {}).get(deployment, {})
    ptu = model_pricing.get("ptu", {}).get(region, {}).get(deployment, 0.0)
    paygo_input = paygo.get("input") or paygo.get("general") or 0.0
    return paygo_input > 0 or ptu > 0


def count_prices(table: PricingTable) -> int:
    """Number of populated price slots, used in diagnostics."""
    total = 0
    for model in table.values():
        for deployments in model.get("paygo", {}).values():
            for prices in deployments.values():
                total += len(prices)
        for deployments in model.get("ptu", {}).values():
            total += len(deployments)
    return total
