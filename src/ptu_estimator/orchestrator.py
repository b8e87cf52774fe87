"""Fetch/merge orchestration over the retail price feed.

Two resolution strategies share the classifier, normalizer and store but keep
independent cache keys and expiries:

- merged: one whole-catalog entry; live values are overlaid field by field
  onto the fallback dataset.
- per_model: one entry per (model, region, deployment); live pricing is used
  wholesale when it prices the slot, otherwise the fallback entry is returned
  wholesale.

Neither path raises for upstream problems. Concurrent callers may trigger
duplicate fetches for the same key; the last one to finish wins the store.
"""

from __future__ import annotations

import asyncio
import logging
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from ptu_estimator.classifier import (
    ClassifiedRecord,
    ClassifierConfig,
    RawPriceRecord,
    RecordClassifier,
)
from ptu_estimator.config import CATALOG_CACHE_KEY, DEPLOYMENT_TYPES, PricingSettings
from ptu_estimator.fallback import get_fallback_pricing
from ptu_estimator.feed import QueryFn, catalog_filters, model_filters
from ptu_estimator.store import PricingStore
from ptu_estimator.table import (
    FALLBACK_SOURCE,
    LIVE_SOURCE,
    MERGED_SOURCE,
    PricingSnapshot,
    PricingTable,
    build_live_table,
    count_prices,
    has_positive_price,
    merge_pricing_tables,
)

logger = logging.getLogger(__name__)


class FeedUnavailableError(RuntimeError):
    """Raised when every query of a fetch cycle failed."""


def model_cache_key(model: str, region: str, deployment_type: str) -> str:
    return f"{model}-{region}-{deployment_type}"


class PricingOrchestrator:
    """Cache-first pricing resolution backed by an injectable query function."""

    def __init__(
        self,
        query: QueryFn,
        store: Optional[PricingStore] = None,
        fallback: Optional[PricingTable] = None,
        classifier: Optional[RecordClassifier] = None,
        settings: Optional[PricingSettings] = None,
    ) -> None:
        self.query = query
        self.settings = settings or PricingSettings()
        self.store = store if store is not None else PricingStore()
        self.fallback = fallback if fallback is not None else get_fallback_pricing()
        self.classifier = classifier or RecordClassifier(
            ClassifierConfig(default_deployment=self.settings.default_deployment)
        )

    async def gather_records(self, filters: Sequence[str], top: int) -> list[RawPriceRecord]:
        """Run every filter concurrently and union the successful results.

        Raises:
            FeedUnavailableError: If all queries failed.
        """
        if not filters:
            return []
        results = await asyncio.gather(
            *(self.query(expression, top) for expression in filters),
            return_exceptions=True,
        )
        records: list[RawPriceRecord] = []
        errors: list[str] = []
        for expression, result in zip(filters, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Retail feed query failed (%s): %s", expression, result)
                errors.append(f"[{type(result).__name__}] {result}")
                continue
            records.extend(result)
        if len(errors) == len(filters):
            raise FeedUnavailableError(
                "All retail feed queries failed. Details: " + " | ".join(errors)
            )
        return records

    def classify_records(self, records: Iterable[RawPriceRecord]) -> list[ClassifiedRecord]:
        classified: list[ClassifiedRecord] = []
        discarded = 0
        for record in records:
            result = self.classifier.classify(record)
            if result is None:
                discarded += 1
                continue
            classified.append(result)
        if discarded:
            logger.debug("Discarded %d unrelated feed records", discarded)
        return classified

    def fallback_snapshot(self) -> PricingSnapshot:
        return PricingSnapshot(
            models=deepcopy(self.fallback),
            fetched_at=self.store.now(),
            source=FALLBACK_SOURCE,
        )

    async def resolve_catalog(self) -> PricingSnapshot:
        """Whole-catalog strategy: live overlaid onto fallback, cached 1 hour."""
        ttl = self.settings.catalog_cache_ttl_seconds
        cached = self.store.get_fresh(CATALOG_CACHE_KEY, ttl)
        if cached is not None:
            return cached.data

        try:
            records = await self.gather_records(
                catalog_filters(), self.settings.catalog_query_top
            )
        except FeedUnavailableError as exc:
            logger.warning("Serving fallback pricing: %s", exc)
            # A concurrent fetch may have landed while this one was failing.
            cached = self.store.get_fresh(CATALOG_CACHE_KEY, ttl)
            if cached is not None:
                return cached.data
            return self.fallback_snapshot()

        classified = self.classify_records(records)
        live = build_live_table(classified)
        snapshot = PricingSnapshot(
            models=merge_pricing_tables(live, self.fallback),
            live_models=live,
            fetched_at=self.store.now(),
            source=MERGED_SOURCE if classified else FALLBACK_SOURCE,
            record_count=len(classified),
        )
        self.store.put(CATALOG_CACHE_KEY, snapshot)
        logger.info(
            "Pricing catalog refreshed: %d feed records, %d classified, %d models, %d prices",
            len(records),
            len(classified),
            len(snapshot.models),
            count_prices(snapshot.models),
        )
        return snapshot

    async def resolve_model(
        self,
        model: str,
        region: str,
        deployment_type: str,
    ) -> PricingSnapshot:
        """Per-model strategy: live-or-fallback wholesale, cached 3 hours."""
        key = model_cache_key(model, region, deployment_type)
        cached = self.store.get_fresh(key, self.settings.model_cache_ttl_seconds)
        if cached is not None:
            return cached.data

        try:
            records = await self.gather_records(
                model_filters(model), self.settings.model_query_top
            )
        except FeedUnavailableError as exc:
            logger.warning("Serving fallback pricing for %s: %s", key, exc)
            cached = self.store.get_fresh(key, self.settings.model_cache_ttl_seconds)
            if cached is not None:
                return cached.data
            records = []

        classified = [
            record for record in self.classify_records(records) if record.model_key == model
        ]
        live_model = build_live_table(classified).get(model)
        if live_model is not None and has_positive_price(live_model, region, deployment_type):
            snapshot = PricingSnapshot(
                models={model: live_model},
                live_models={model: live_model},
                fetched_at=self.store.now(),
                source=LIVE_SOURCE,
                record_count=len(classified),
            )
            self.store.put(key, snapshot)
            return snapshot

        fallback_model = self.fallback.get(model)
        return PricingSnapshot(
            models={model: deepcopy(fallback_model)} if fallback_model is not None else {},
            fetched_at=self.store.now(),
            source=FALLBACK_SOURCE,
        )

    async def refresh_all(
        self,
        models: Optional[Iterable[str]] = None,
        regions: Optional[Iterable[str]] = None,
        deployment_types: Optional[Iterable[str]] = None,
    ) -> dict[str, Any]:
        """Invalidate and re-resolve every per-model key in the grid."""
        model_keys = list(models) if models is not None else sorted(self.fallback)
        region_keys = list(regions) if regions is not None else list(self.settings.refresh_regions)
        deployment_keys = (
            list(deployment_types) if deployment_types is not None else list(DEPLOYMENT_TYPES)
        )

        grid = [
            (model, region, deployment)
            for model in model_keys
            for deployment in deployment_keys
            for region in region_keys
        ]
        for model, region, deployment in grid:
            self.store.invalidate(model_cache_key(model, region, deployment))
        self.store.invalidate(CATALOG_CACHE_KEY)

        results = await asyncio.gather(
            *(self.resolve_model(model, region, deployment) for model, region, deployment in grid),
            return_exceptions=True,
        )
        failed = 0
        for (model, region, deployment), result in zip(grid, results):
            if isinstance(result, Exception):
                failed += 1
                logger.warning(
                    "Failed to refresh %s: %s",
                    model_cache_key(model, region, deployment),
                    result,
                )
        return {
            "refreshed": len(grid),
            "failed": failed,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def status(self) -> dict[str, Any]:
        status = self.store.status(self.settings.model_cache_ttl_seconds)
        status["catalog_cached"] = (
            self.store.get_fresh(CATALOG_CACHE_KEY, self.settings.catalog_cache_ttl_seconds)
            is not None
        )
        status["strategy"] = self.settings.strategy
        return status
