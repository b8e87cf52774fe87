"""Resolve a (model, region, deployment) triple to a price quadruple."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

from ptu_estimator.config import DEPLOYMENT_TYPES
from ptu_estimator.units import hourly_to_monthly

DEPLOYMENT_ALIASES = {
    "global": "global",
    "glbl": "global",
    "data-zone": "data-zone",
    "data zone": "data-zone",
    "datazone": "data-zone",
    "data_zone": "data-zone",
    "dzone": "data-zone",
    "regional": "regional",
    "regnl": "regional",
    "standard": "regional",
}


@dataclass(frozen=True)
class ResolvedPricing:
    """Canonical prices: token fields in $/1M tokens, reserved in $/hour.

    An all-zero result means no real pricing was found for the slot; it is
    indistinguishable from a genuinely free offering by value alone.
    """

    paygo_input: float
    paygo_output: float
    paygo_cached_input: float
    reserved_hourly: float
    source: str = "live"

    @property
    def reserved_monthly(self) -> float:
        return hourly_to_monthly(self.reserved_hourly)

    @property
    def is_priced(self) -> bool:
        return any(
            value > 0
            for value in (
                self.paygo_input,
                self.paygo_output,
                self.paygo_cached_input,
                self.reserved_hourly,
            )
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = asdict(self)
        payload["reserved_monthly"] = self.reserved_monthly
        payload["is_priced"] = self.is_priced
        return payload


def unavailable_pricing() -> ResolvedPricing:
    return ResolvedPricing(0.0, 0.0, 0.0, 0.0, source="unavailable")


def attribute_source(pricing: ResolvedPricing, live: Optional[ResolvedPricing]) -> str:
    """Tag a resolved slot by where its non-zero prices came from.

    "live" when the feed supplied every non-zero field, "merged" when the feed
    supplied only some of them, "fallback" when it supplied none.
    """
    if live is None or not live.is_priced:
        return "fallback"
    pairs = (
        (pricing.paygo_input, live.paygo_input),
        (pricing.paygo_output, live.paygo_output),
        (pricing.paygo_cached_input, live.paygo_cached_input),
        (pricing.reserved_hourly, live.reserved_hourly),
    )
    if all(value == live_value for value, live_value in pairs if value > 0):
        return "live"
    return "merged"


def normalize_region(region: str) -> str:
    """Canonicalize display region names ("East US 2", "east-us-2") to ARM form."""
    return "".join(ch for ch in region.strip().lower() if ch not in " -_")


def normalize_deployment_type(deployment_type: str) -> str:
    token = deployment_type.strip().lower()
    normalized = DEPLOYMENT_ALIASES.get(token)
    if normalized is None:
        valid = ", ".join(DEPLOYMENT_TYPES)
        raise ValueError(f"Unknown deployment type '{deployment_type}'. Valid options: {valid}")
    return normalized


def resolve(
    table: Mapping[str, Any],
    model: str,
    region: str,
    deployment_type: str,
    source: str = "live",
) -> Optional[ResolvedPricing]:
    """Extract the price quadruple for one slot.

    Returns None when the model is absent from the table. A present model
    with no data for the region/deployment resolves to zeros.
    """
    model_data = table.get(model)
    if model_data is None:
        return None

    paygo = model_data.get("paygo", {}).get(region, {}).get(deployment_type) or {}
    reserved = model_data.get("ptu", {}).get(region, {}).get(deployment_type) or 0.0

    general = paygo.get("general") or 0.0
    paygo_input = paygo.get("input") or general
    paygo_output = paygo.get("output") or general
    return ResolvedPricing(
        paygo_input=float(paygo_input),
        paygo_output=float(paygo_output),
        paygo_cached_input=float(paygo.get("cached_input") or paygo_input),
        reserved_hourly=float(reserved),
        source=source,
    )
