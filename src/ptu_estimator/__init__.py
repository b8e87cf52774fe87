"""PTU Estimator: Azure OpenAI pricing resolution core.

Fetches retail price lines, normalizes their units, merges them with a bundled
fallback dataset and resolves PAYGO token and reserved PTU prices for a
(model, region, deployment type) triple.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from ptu_estimator.classifier import (
    ClassifiedRecord,
    ClassifierConfig,
    RawPriceRecord,
    RecordClassifier,
    classify,
)
from ptu_estimator.config import PricingSettings
from ptu_estimator.fallback import (
    get_fallback_metadata,
    get_fallback_pricing,
    refresh_fallback_cache,
)
from ptu_estimator.feed import RetailFeedError, RetailPriceFeed, catalog_filters, model_filters
from ptu_estimator.orchestrator import FeedUnavailableError, PricingOrchestrator
from ptu_estimator.resolver import (
    ResolvedPricing,
    normalize_deployment_type,
    normalize_region,
    resolve,
)
from ptu_estimator.service import PricingService, build_default_service
from ptu_estimator.store import CacheEntry, PricingStore, is_fresh
from ptu_estimator.table import (
    PricingSnapshot,
    build_live_table,
    merge_pricing_tables,
)
from ptu_estimator.units import (
    is_capacity_unit,
    is_token_unit,
    normalize_capacity_price,
    normalize_token_price,
)

__all__ = [
    # Version
    "__version__",
    # Units
    "normalize_token_price",
    "normalize_capacity_price",
    "is_token_unit",
    "is_capacity_unit",
    # Classification
    "RawPriceRecord",
    "ClassifiedRecord",
    "ClassifierConfig",
    "RecordClassifier",
    "classify",
    # Store
    "CacheEntry",
    "PricingStore",
    "is_fresh",
    # Feed
    "RetailPriceFeed",
    "RetailFeedError",
    "catalog_filters",
    "model_filters",
    # Tables and fallback
    "PricingSnapshot",
    "build_live_table",
    "merge_pricing_tables",
    "get_fallback_pricing",
    "get_fallback_metadata",
    "refresh_fallback_cache",
    # Orchestration and lookup
    "PricingSettings",
    "PricingOrchestrator",
    "FeedUnavailableError",
    "ResolvedPricing",
    "resolve",
    "normalize_region",
    "normalize_deployment_type",
    "PricingService",
    "build_default_service",
]
