from __future__ import annotations

import json

import pytest

from ptu_estimator.fallback import (
    FALLBACK_PRICING_FILE,
    get_fallback_metadata,
    get_fallback_pricing,
    list_fallback_models,
    refresh_fallback_cache,
    validate_fallback_document,
)


def test_bundled_dataset_validates_against_schema() -> None:
    data = json.loads(FALLBACK_PRICING_FILE.read_text(encoding="utf-8"))
    validate_fallback_document(data)


def test_bundled_dataset_covers_default_lookup() -> None:
    pricing = get_fallback_pricing()
    slot = pricing["gpt-4o"]["paygo"]["eastus2"]["global"]
    assert slot == {"input": 2.5, "output": 10.0, "cached_input": 1.25}
    assert pricing["gpt-4o"]["ptu"]["eastus2"]["global"] == 1.0
    assert "data-zone" in pricing["gpt-4o-mini"]["paygo"]["eastus2"]


def test_callers_get_independent_copies() -> None:
    first = get_fallback_pricing()
    first["gpt-4o"]["paygo"]["eastus2"]["global"]["input"] = 0.0
    second = get_fallback_pricing()
    assert second["gpt-4o"]["paygo"]["eastus2"]["global"]["input"] == 2.5


def test_metadata_and_refresh() -> None:
    metadata = refresh_fallback_cache()
    assert metadata == get_fallback_metadata()
    assert metadata["schema_version"] == "1.0.0"
    assert metadata["model_count"] == len(list_fallback_models())
    assert "gpt-4o" in list_fallback_models()


def test_schema_rejects_missing_output_price() -> None:
    document = {
        "schema_version": "1.0.0",
        "source": "test",
        "models": {
            "gpt-4o": {
                "paygo": {"eastus2": {"global": {"input": 2.5}}},
                "ptu": {},
            }
        },
    }
    with pytest.raises(ValueError, match="failed schema validation"):
        validate_fallback_document(document, source="test")


def test_schema_rejects_unknown_deployment() -> None:
    document = {
        "schema_version": "1.0.0",
        "source": "test",
        "models": {"gpt-4o": {"paygo": {}, "ptu": {"eastus2": {"edge": 1.0}}}},
    }
    with pytest.raises(ValueError, match="failed schema validation"):
        validate_fallback_document(document, source="test")
