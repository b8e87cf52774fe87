"""Caller-facing pricing lookup.

`PricingService.get_pricing` never raises: every failure degrades through
cache -> live -> fallback, and an unknown model resolves to an all-zero
result tagged `source="unavailable"`.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from ptu_estimator.config import (
    DEFAULT_DEPLOYMENT_TYPE,
    DEFAULT_REGION,
    STRATEGIES,
    PricingSettings,
)
from ptu_estimator.fallback import get_fallback_metadata
from ptu_estimator.feed import RetailPriceFeed
from ptu_estimator.orchestrator import PricingOrchestrator
from ptu_estimator.resolver import (
    ResolvedPricing,
    attribute_source,
    normalize_deployment_type,
    normalize_region,
    resolve,
    unavailable_pricing,
)

logger = logging.getLogger(__name__)


class PricingService:
    """Resolve prices for the UI collaborator using the configured strategy."""

    def __init__(
        self,
        orchestrator: PricingOrchestrator,
        strategy: Optional[str] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.strategy = strategy or orchestrator.settings.strategy
        if self.strategy not in STRATEGIES:
            valid = ", ".join(STRATEGIES)
            raise ValueError(f"Unknown strategy '{self.strategy}'. Valid options: {valid}")

    async def _resolve(self, model: str, region: str, deployment: str) -> Optional[ResolvedPricing]:
        if self.strategy == "per_model":
            snapshot = await self.orchestrator.resolve_model(model, region, deployment)
        else:
            snapshot = await self.orchestrator.resolve_catalog()
        pricing = resolve(snapshot.models, model, region, deployment)
        if pricing is None:
            return None
        live = resolve(snapshot.live_models, model, region, deployment)
        return replace(pricing, source=attribute_source(pricing, live))

    async def get_pricing(
        self,
        model: str,
        region: str = DEFAULT_REGION,
        deployment_type: str = DEFAULT_DEPLOYMENT_TYPE,
    ) -> ResolvedPricing:
        model_key = model.strip().lower()
        region_key = normalize_region(region)
        try:
            deployment = normalize_deployment_type(deployment_type)
        except ValueError as exc:
            logger.warning("Unrecognized deployment type, returning no pricing: %s", exc)
            return unavailable_pricing()

        try:
            pricing = await self._resolve(model_key, region_key, deployment)
        except Exception:  # noqa: BLE001 - lookup must never fail the caller
            logger.exception("Pricing resolution failed for %s/%s/%s", model_key, region_key, deployment)
            pricing = None

        if pricing is None:
            pricing = resolve(
                self.orchestrator.fallback,
                model_key,
                region_key,
                deployment,
                source="fallback",
            )
        if pricing is None:
            logger.info("No pricing available for model '%s'", model_key)
            return unavailable_pricing()
        return pricing

    async def refresh_all(self) -> dict[str, Any]:
        return await self.orchestrator.refresh_all()

    def pricing_status(self) -> dict[str, Any]:
        status = self.orchestrator.status()
        status["fallback"] = get_fallback_metadata()
        return status


def build_default_service(settings: Optional[PricingSettings] = None) -> PricingService:
    """Wire the real retail feed with settings from the environment."""
    settings = settings or PricingSettings.from_env()
    feed = RetailPriceFeed(
        base_url=settings.retail_prices_url,
        timeout_seconds=settings.feed_timeout_seconds,
    )
    orchestrator = PricingOrchestrator(query=feed.query, settings=settings)
    return PricingService(orchestrator)
