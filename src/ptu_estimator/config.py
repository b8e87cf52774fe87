"""Configuration constants for the PTU Estimator pricing core.

This module centralizes timing constants, upstream feed parameters, cache
expiries and the default selection grid used by refresh jobs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

# Time constants (30-day month model)
HOURS_PER_MONTH = 720
HOURS_PER_DAY = 24
SECONDS_PER_HOUR = 3_600

# Upstream retail price feed
RETAIL_PRICES_URL = "https://prices.azure.com/api/retail/prices"
CATALOG_QUERY_TOP = 1000
MODEL_QUERY_TOP = 100
FEED_TIMEOUT_SECONDS = 8.0

# Cache expiries. The two resolution strategies keep independent caches.
CATALOG_CACHE_TTL_SECONDS = 1 * SECONDS_PER_HOUR
MODEL_CACHE_TTL_SECONDS = 3 * SECONDS_PER_HOUR
CATALOG_CACHE_KEY = "openai_pricing"

# Caller defaults
DEFAULT_REGION = "eastus2"
DEFAULT_DEPLOYMENT_TYPE = "data-zone"
DEFAULT_STRATEGY = "merged"
STRATEGIES = ("merged", "per_model")

# Deployment tier assumed for feed lines that carry no explicit tag.
# Most untagged retail lines are global-tier.
DEFAULT_CLASSIFIER_DEPLOYMENT = "global"

DEPLOYMENT_TYPES = ("global", "data-zone", "regional")

# Grid walked by refresh_all().
REFRESH_REGIONS = ("eastus2", "westus2", "northcentralus")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1")
    return value


@dataclass(frozen=True)
class PricingSettings:
    """Runtime settings for the fetch/merge pipeline."""

    retail_prices_url: str = RETAIL_PRICES_URL
    feed_timeout_seconds: float = FEED_TIMEOUT_SECONDS
    catalog_query_top: int = CATALOG_QUERY_TOP
    model_query_top: int = MODEL_QUERY_TOP
    catalog_cache_ttl_seconds: float = CATALOG_CACHE_TTL_SECONDS
    model_cache_ttl_seconds: float = MODEL_CACHE_TTL_SECONDS
    default_deployment: str = DEFAULT_CLASSIFIER_DEPLOYMENT
    strategy: str = DEFAULT_STRATEGY
    refresh_regions: tuple[str, ...] = field(default=REFRESH_REGIONS)

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            valid = ", ".join(STRATEGIES)
            raise ValueError(f"Unknown strategy '{self.strategy}'. Valid options: {valid}")
        if self.default_deployment not in DEPLOYMENT_TYPES:
            valid = ", ".join(DEPLOYMENT_TYPES)
            raise ValueError(
                f"Unknown default deployment '{self.default_deployment}'. Valid options: {valid}"
            )

    @classmethod
    def from_env(cls) -> "PricingSettings":
        """Build settings from PTU_ESTIMATOR_* environment variables."""
        regions_raw = os.getenv("PTU_ESTIMATOR_REFRESH_REGIONS", "")
        regions = tuple(r.strip() for r in regions_raw.split(",") if r.strip())
        return cls(
            retail_prices_url=(
                os.getenv("PTU_ESTIMATOR_RETAIL_PRICES_URL", "").strip() or RETAIL_PRICES_URL
            ),
            feed_timeout_seconds=_env_float(
                "PTU_ESTIMATOR_FEED_TIMEOUT_SECONDS", FEED_TIMEOUT_SECONDS
            ),
            catalog_query_top=_env_int("PTU_ESTIMATOR_CATALOG_QUERY_TOP", CATALOG_QUERY_TOP),
            model_query_top=_env_int("PTU_ESTIMATOR_MODEL_QUERY_TOP", MODEL_QUERY_TOP),
            catalog_cache_ttl_seconds=_env_float(
                "PTU_ESTIMATOR_CATALOG_CACHE_TTL_SECONDS", CATALOG_CACHE_TTL_SECONDS
            ),
            model_cache_ttl_seconds=_env_float(
                "PTU_ESTIMATOR_MODEL_CACHE_TTL_SECONDS", MODEL_CACHE_TTL_SECONDS
            ),
            default_deployment=(
                os.getenv("PTU_ESTIMATOR_DEFAULT_DEPLOYMENT", "").strip().lower()
                or DEFAULT_CLASSIFIER_DEPLOYMENT
            ),
            strategy=(
                os.getenv("PTU_ESTIMATOR_STRATEGY", "").strip().lower() or DEFAULT_STRATEGY
            ),
            refresh_regions=regions or REFRESH_REGIONS,
        )
