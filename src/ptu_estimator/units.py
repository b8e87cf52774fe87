"""Unit normalization for retail price lines.

Token prices are canonicalized to dollars per 1,000,000 tokens and capacity
prices to dollars per hour. Neither function raises: labels that match no
rule degrade to the named default policies below, which are best-effort
approximations rather than validated units.

Capacity labels priced per day or per month are converted to hourly too,
rather than passed through, so every reserved price in a table is per hour.
"""

from __future__ import annotations

from ptu_estimator.config import HOURS_PER_DAY, HOURS_PER_MONTH

TOKENS_PER_MILLION = 1_000_000.0

# Ordered (substrings, multiplier) rules; first match wins.
TOKEN_UNIT_RULES: tuple[tuple[tuple[str, ...], float], ...] = (
    (("1k", "1000"), 1_000.0),
    (("1m", "million"), 1.0),
    (("token",), TOKENS_PER_MILLION),
)

# Unrecognized token labels are treated as per-1K.
DEFAULT_TOKEN_MULTIPLIER = 1_000.0

CAPACITY_UNIT_RULES: tuple[tuple[tuple[str, ...], float], ...] = (
    (("hour",), 1.0),
    (("minute",), 60.0),
    (("second",), 3_600.0),
    (("day",), 1.0 / HOURS_PER_DAY),
    (("month",), 1.0 / HOURS_PER_MONTH),
)

# Unrecognized capacity labels are assumed to be hourly already.
DEFAULT_CAPACITY_MULTIPLIER = 1.0


def _match_multiplier(
    unit_label: str | None,
    rules: tuple[tuple[tuple[str, ...], float], ...],
    default: float,
) -> float:
    unit = (unit_label or "").strip().lower()
    for needles, multiplier in rules:
        if any(needle in unit for needle in needles):
            return multiplier
    return default


def normalize_token_price(price: float, unit_label: str | None) -> float:
    """Convert a token price into dollars per 1M tokens."""
    return float(price) * _match_multiplier(unit_label, TOKEN_UNIT_RULES, DEFAULT_TOKEN_MULTIPLIER)


def normalize_capacity_price(price: float, unit_label: str | None) -> float:
    """Convert a reserved-capacity price into dollars per hour."""
    return float(price) * _match_multiplier(
        unit_label, CAPACITY_UNIT_RULES, DEFAULT_CAPACITY_MULTIPLIER
    )


def is_token_unit(unit_label: str | None) -> bool:
    unit = (unit_label or "").strip().lower()
    return (
        "token" in unit
        or "1k" in unit
        or "1m" in unit
        or unit == "1000"
        or unit == "1"
    )


def is_capacity_unit(unit_label: str | None) -> bool:
    unit = (unit_label or "").strip().lower()
    return "hour" in unit or "month" in unit


def hourly_to_monthly(hourly: float) -> float:
    """Scale an hourly reserved rate to the 30-day month model."""
    return hourly * HOURS_PER_MONTH
