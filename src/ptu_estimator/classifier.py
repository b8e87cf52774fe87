"""Classification of raw retail price lines into pricing slots.

Every axis (model, token direction, deployment tier) is decided by an ordered
table of substring rules evaluated against the lowercased sku/meter/product
text. New naming variants are added as table rows, not as new branches.

Token direction checks "cached" before "input": cached-input meters also
mention input, and testing input first would file their lower price as the
input price.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ptu_estimator.config import DEFAULT_CLASSIFIER_DEPLOYMENT, DEPLOYMENT_TYPES
from ptu_estimator.units import is_capacity_unit, is_token_unit

# Ordered; more specific keys must precede their prefixes.
MODEL_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("gpt-5-mini", ("gpt-5-mini", "gpt5-mini", "gpt5 mini", "gpt-5 mini")),
    ("gpt-5-nano", ("gpt-5-nano", "gpt5-nano", "gpt5 nano", "gpt-5 nano")),
    ("gpt-5-chat", ("gpt-5-chat", "gpt5-chat", "gpt5 chat", "gpt-5 chat")),
    ("gpt-5", ("gpt-5", "gpt5")),
    ("gpt-4.1-mini", ("gpt-4.1-mini", "gpt4.1-mini", "gpt 4.1 mini", "gpt-4.1 mini")),
    ("gpt-4.1-nano", ("gpt-4.1-nano", "gpt4.1-nano", "gpt 4.1 nano", "gpt-4.1 nano")),
    ("gpt-4.1", ("gpt-4.1", "gpt4.1", "gpt 4.1")),
    ("gpt-4o-mini", ("gpt-4o-mini", "gpt4o-mini", "gpt-4o mini")),
    ("gpt-4o", ("gpt-4o", "gpt4o")),
    ("gpt-4-turbo", ("gpt-4-turbo", "gpt4-turbo", "gpt-4 turbo")),
    ("gpt-4", ("gpt-4", "gpt4")),
    ("gpt-35-turbo", ("gpt-35", "gpt-3.5", "gpt35")),
    ("text-embedding-ada-002", ("ada-002", "embedding-ada", "embedding ada")),
    ("text-embedding-3-large", ("embedding-3-large", "embedding 3 large")),
    ("text-embedding-3-small", ("embedding-3-small", "embedding 3 small")),
    ("whisper", ("whisper",)),
    ("o4-mini", ("o4-mini", "o4 mini")),
    ("o1", ("o1-preview", "o1-mini", "o1")),
    ("o3", ("o3-mini", "o3")),
)

# Cached-input lines also mention "input", so they are tested first.
TOKEN_DIRECTION_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("cached_input", ("cached",)),
    ("input", ("input", "prompt")),
    ("output", ("output", "completion")),
)
GENERAL_DIRECTION = "general"

DEPLOYMENT_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("global", ("global", "glbl")),
    ("regional", ("regional", "regnl")),
    ("data-zone", ("data-zone", "datazone", "data zone", "dzone")),
)

TOKEN_PRICE_KIND = "token"
CAPACITY_PRICE_KIND = "capacity"


@dataclass(frozen=True)
class RawPriceRecord:
    """One line item from the retail price feed."""

    product_name: str
    sku_name: str
    meter_name: str
    unit_of_measure: str
    retail_price: float
    arm_region_name: str
    service_name: str = ""

    @classmethod
    def from_feed_item(cls, item: Mapping[str, Any]) -> "RawPriceRecord":
        """Map a feed item (camelCase keys) into a record.

        Raises:
            ValueError: If the price field is not numeric.
        """
        price_raw = item.get("retailPrice")
        if price_raw is None:
            price_raw = item.get("unitPrice")
        try:
            retail_price = float(price_raw or 0.0)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"non-numeric retail price: {price_raw!r}") from exc
        return cls(
            product_name=str(item.get("productName") or ""),
            sku_name=str(item.get("skuName") or ""),
            meter_name=str(item.get("meterName") or ""),
            unit_of_measure=str(item.get("unitOfMeasure") or ""),
            retail_price=retail_price,
            arm_region_name=str(item.get("armRegionName") or ""),
            service_name=str(item.get("serviceName") or ""),
        )

    def search_text(self) -> str:
        return f"{self.sku_name} {self.meter_name} {self.product_name}".lower()


@dataclass(frozen=True)
class ClassifiedRecord:
    model_key: str
    token_direction: str
    deployment_type: str
    price_kind: str
    region: str
    unit_of_measure: str
    retail_price: float


@dataclass(frozen=True)
class ClassifierConfig:
    """Classifier policy knobs."""

    default_deployment: str = DEFAULT_CLASSIFIER_DEPLOYMENT

    def __post_init__(self) -> None:
        if self.default_deployment not in DEPLOYMENT_TYPES:
            valid = ", ".join(DEPLOYMENT_TYPES)
            raise ValueError(
                f"Unknown default deployment '{self.default_deployment}'. Valid options: {valid}"
            )


def _first_match(
    text: str,
    rules: tuple[tuple[str, tuple[str, ...]], ...],
) -> Optional[str]:
    for label, needles in rules:
        if any(needle in text for needle in needles):
            return label
    return None


def match_model(text: str) -> Optional[str]:
    return _first_match(text.lower(), MODEL_PATTERNS)


def determine_token_direction(text: str) -> str:
    return _first_match(text.lower(), TOKEN_DIRECTION_RULES) or GENERAL_DIRECTION


def determine_price_kind(unit_label: str) -> Optional[str]:
    if is_token_unit(unit_label):
        return TOKEN_PRICE_KIND
    if is_capacity_unit(unit_label):
        return CAPACITY_PRICE_KIND
    return None


class RecordClassifier:
    """Stateless classifier; identical input always yields identical output."""

    def __init__(self, config: Optional[ClassifierConfig] = None) -> None:
        self.config = config or ClassifierConfig()

    def determine_deployment_type(self, text: str) -> str:
        return _first_match(text.lower(), DEPLOYMENT_RULES) or self.config.default_deployment

    def classify(self, record: RawPriceRecord) -> Optional[ClassifiedRecord]:
        """Return the pricing slot for a record, or None if it is not relevant."""
        text = record.search_text()
        model_key = match_model(text)
        if model_key is None:
            return None
        price_kind = determine_price_kind(record.unit_of_measure)
        if price_kind is None:
            return None
        return ClassifiedRecord(
            model_key=model_key,
            token_direction=determine_token_direction(text),
            deployment_type=self.determine_deployment_type(text),
            price_kind=price_kind,
            region=record.arm_region_name.strip().lower(),
            unit_of_measure=record.unit_of_measure,
            retail_price=record.retail_price,
        )


_default_classifier = RecordClassifier()


def classify(record: RawPriceRecord) -> Optional[ClassifiedRecord]:
    """Classify with the default policy."""
    return _default_classifier.classify(record)
