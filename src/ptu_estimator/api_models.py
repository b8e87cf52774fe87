"""Pydantic API contracts for backend endpoints."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ptu_estimator.config import DEFAULT_DEPLOYMENT_TYPE, DEFAULT_REGION
from ptu_estimator.resolver import ResolvedPricing, normalize_deployment_type, normalize_region


class PricingQuery(BaseModel):
    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    model: str = Field(min_length=1)
    region: str = Field(min_length=1, default=DEFAULT_REGION)
    deployment_type: str = Field(min_length=1, default=DEFAULT_DEPLOYMENT_TYPE)

    @field_validator("model")
    @classmethod
    def _normalize_model(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("region")
    @classmethod
    def _normalize_region(cls, value: str) -> str:
        normalized = normalize_region(value)
        if not normalized:
            raise ValueError("region must not be blank")
        return normalized

    @field_validator("deployment_type")
    @classmethod
    def _normalize_deployment(cls, value: str) -> str:
        return normalize_deployment_type(value)


class PricingResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    model: str
    region: str
    deployment_type: str
    paygo_input: float = Field(ge=0)
    paygo_output: float = Field(ge=0)
    paygo_cached_input: float = Field(ge=0)
    reserved_hourly: float = Field(ge=0)
    reserved_monthly: float = Field(ge=0)
    source: Literal["live", "merged", "fallback", "unavailable"]
    is_priced: bool

    @classmethod
    def from_resolved(cls, query: PricingQuery, pricing: ResolvedPricing) -> "PricingResponse":
        return cls(
            model=query.model,
            region=query.region,
            deployment_type=query.deployment_type,
            paygo_input=pricing.paygo_input,
            paygo_output=pricing.paygo_output,
            paygo_cached_input=pricing.paygo_cached_input,
            reserved_hourly=pricing.reserved_hourly,
            reserved_monthly=pricing.reserved_monthly,
            source=pricing.source,
            is_priced=pricing.is_priced,
        )


class FallbackMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    schema_version: Optional[str] = None
    source: Optional[str] = None
    source_date: Optional[str] = None
    model_count: int = 0


class PricingStatusResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cache_size: int
    fresh_entries: int
    oldest_entry_utc: Optional[str] = None
    newest_entry_utc: Optional[str] = None
    cache_expiry_hours: float
    catalog_cached: bool
    strategy: str
    fallback: FallbackMetadata


class RefreshResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    refreshed: int
    failed: int = 0
    timestamp: str
