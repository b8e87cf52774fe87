"""Optional FastAPI server exposing pricing lookups to the UI."""

from __future__ import annotations

import os
from typing import Optional

from ptu_estimator.api_models import (
    PricingQuery,
    PricingResponse,
    PricingStatusResponse,
    RefreshResponse,
)
from ptu_estimator.config import DEFAULT_DEPLOYMENT_TYPE, DEFAULT_REGION
from ptu_estimator.service import PricingService, build_default_service


def create_app(service: Optional[PricingService] = None):
    """Create FastAPI app lazily so base package has no hard FastAPI dependency."""
    try:
        from fastapi import FastAPI, HTTPException
        from fastapi.middleware.cors import CORSMiddleware
        from pydantic import ValidationError
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError(
            "FastAPI is not installed. Install with: "
            "pip install 'fastapi>=0.110,<1.0' 'uvicorn>=0.30,<1.0'"
        ) from exc

    pricing_service = service or build_default_service()
    app = FastAPI(title="PTU Estimator Pricing API", version="0.1.0")

    origins_raw = os.getenv("PTU_ESTIMATOR_CORS_ORIGINS", "*")
    allow_origins = [origin.strip() for origin in origins_raw.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/v1/pricing", response_model=PricingResponse)
    async def get_pricing(
        model: str,
        region: str = DEFAULT_REGION,
        deployment_type: str = DEFAULT_DEPLOYMENT_TYPE,
    ) -> PricingResponse:
        try:
            query = PricingQuery(model=model, region=region, deployment_type=deployment_type)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        pricing = await pricing_service.get_pricing(
            query.model, query.region, query.deployment_type
        )
        return PricingResponse.from_resolved(query, pricing)

    @app.get("/api/v1/pricing/status", response_model=PricingStatusResponse)
    def pricing_status() -> PricingStatusResponse:
        try:
            return PricingStatusResponse(**pricing_service.pricing_status())
        except Exception as exc:  # noqa: BLE001
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    @app.post("/api/v1/pricing/refresh", response_model=RefreshResponse)
    async def refresh_pricing() -> RefreshResponse:
        try:
            return RefreshResponse(**await pricing_service.refresh_all())
        except Exception as exc:  # noqa: BLE001
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    return app
