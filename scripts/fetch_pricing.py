#!/usr/bin/env python3
"""Resolve pricing for one model/region/deployment and print it as JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from ptu_estimator.config import (  # noqa: E402
    DEFAULT_DEPLOYMENT_TYPE,
    DEFAULT_REGION,
    STRATEGIES,
    PricingSettings,
)
from ptu_estimator.fallback import list_fallback_models  # noqa: E402
from ptu_estimator.logging_config import configure_logging  # noqa: E402
from ptu_estimator.resolver import ResolvedPricing  # noqa: E402
from ptu_estimator.service import PricingService, build_default_service  # noqa: E402


async def _run(service: PricingService, args: argparse.Namespace) -> ResolvedPricing:
    return await service.get_pricing(args.model, args.region, args.deployment_type)


def main() -> None:
    parser = argparse.ArgumentParser(description="Resolve Azure OpenAI PAYGO/PTU pricing")
    parser.add_argument("model", nargs="?", help="Model key, e.g. gpt-4o-mini")
    parser.add_argument("--region", default=DEFAULT_REGION)
    parser.add_argument("--deployment-type", default=DEFAULT_DEPLOYMENT_TYPE)
    parser.add_argument("--strategy", choices=STRATEGIES, default=None)
    parser.add_argument("--log-level", default=None)
    parser.add_argument(
        "--fail-on-unpriced",
        action="store_true",
        help="Exit non-zero if no real pricing was found.",
    )
    parser.add_argument(
        "--list-models",
        action="store_true",
        help="Print model keys covered by the bundled fallback dataset and exit.",
    )
    args = parser.parse_args()

    if args.list_models:
        print("\n".join(list_fallback_models()))
        return
    if not args.model:
        parser.error("model is required unless --list-models is given")

    configure_logging(args.log_level)
    settings = PricingSettings.from_env()
    service = build_default_service(settings)
    if args.strategy:
        service = PricingService(service.orchestrator, strategy=args.strategy)

    pricing = asyncio.run(_run(service, args))
    payload = pricing.to_dict()
    payload.update(
        {
            "model": args.model,
            "region": args.region,
            "deployment_type": args.deployment_type,
        }
    )
    print(json.dumps(payload, indent=2))
    if args.fail_on_unpriced and not pricing.is_priced:
        raise SystemExit(
            f"no pricing available for {args.model} in {args.region}/{args.deployment_type}"
        )


if __name__ == "__main__":
    main()
