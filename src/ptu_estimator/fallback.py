"""Bundled fallback pricing dataset.

The dataset is schema-validated and loaded once per process. Callers always
receive deep copies, so the cached document is never mutated.
"""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft202012Validator

DATA_DIR = Path(__file__).resolve().parent / "data"
FALLBACK_PRICING_FILE = DATA_DIR / "fallback_pricing.json"
FALLBACK_PRICING_SCHEMA_FILE = DATA_DIR / "fallback_pricing.schema.json"

_fallback_cache: Optional[dict[str, Any]] = None


def _load_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Required JSON file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"JSON root for {path} must be an object")
    return payload


def validate_fallback_document(
    data: dict[str, Any],
    schema_path: Path = FALLBACK_PRICING_SCHEMA_FILE,
    source: str = "fallback pricing",
) -> None:
    """Raise ValueError at the first schema violation."""
    validator = Draft202012Validator(_load_json(schema_path))
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
    if errors:
        first = errors[0]
        location = ".".join(str(token) for token in first.path) or "<root>"
        raise ValueError(f"{source} failed schema validation at {location}: {first.message}")


def _load_fallback(path: Path = FALLBACK_PRICING_FILE) -> dict[str, Any]:
    global _fallback_cache
    if _fallback_cache is None:
        data = _load_json(path)
        validate_fallback_document(data, source=str(path))
        _fallback_cache = data
    return _fallback_cache


def get_fallback_pricing() -> dict[str, Any]:
    """Return the fallback pricing table (model -> {paygo, ptu})."""
    return deepcopy(_load_fallback()["models"])


def get_fallback_metadata() -> dict[str, Any]:
    data = _load_fallback()
    return {
        "schema_version": data.get("schema_version"),
        "source": data.get("source"),
        "source_date": data.get("source_date"),
        "model_count": len(data.get("models", {})),
    }


def list_fallback_models() -> list[str]:
    return sorted(_load_fallback()["models"])


def refresh_fallback_cache() -> dict[str, Any]:
    """Force-reload the bundled dataset and return its metadata."""
    global _fallback_cache
    _fallback_cache = None
    _load_fallback()
    return get_fallback_metadata()
