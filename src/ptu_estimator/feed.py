"""Async client for the Azure Retail Prices feed.

The feed accepts an OData-style `$filter` expression and a `$top` result cap
and returns `{"Items": [...]}`. Each query is independent: callers issue
several phrasings and union whatever succeeds.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from ptu_estimator.classifier import RawPriceRecord
from ptu_estimator.config import CATALOG_QUERY_TOP, FEED_TIMEOUT_SECONDS, RETAIL_PRICES_URL

logger = logging.getLogger(__name__)

QueryFn = Callable[[str, int], Awaitable[list[RawPriceRecord]]]

CATALOG_PRODUCT_NAMES = ("Azure OpenAI", "Azure OpenAI Reasoning")

# Product-name phrasing used by the feed for each model key.
MODEL_SEARCH_NAMES = {
    "gpt-5": "GPT5",
    "gpt-5-mini": "GPT5 Mini",
    "gpt-5-nano": "GPT5 Nano",
    "gpt-5-chat": "GPT5 Chat",
    "gpt-4.1": "GPT-4.1",
    "gpt-4.1-mini": "GPT-4.1 Mini",
    "gpt-4.1-nano": "GPT-4.1 Nano",
    "gpt-4o": "GPT-4o",
    "gpt-4o-mini": "GPT-4o Mini",
    "gpt-4": "GPT-4",
    "gpt-4-turbo": "GPT-4 Turbo",
    "gpt-35-turbo": "GPT-3.5 Turbo",
    "text-embedding-ada-002": "Text Embedding Ada 002",
    "text-embedding-3-large": "Text Embedding 3 Large",
    "text-embedding-3-small": "Text Embedding 3 Small",
    "whisper": "Whisper",
    "o1": "o1",
    "o3": "o3",
    "o4-mini": "o4-mini",
}


class RetailFeedError(RuntimeError):
    """Raised when one feed query fails (transport error or bad response)."""


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def catalog_filters() -> list[str]:
    """Filters covering the general and reasoning product lines."""
    return [f"productName eq {_quote(name)}" for name in CATALOG_PRODUCT_NAMES]


def model_filters(model_key: str) -> list[str]:
    """Three phrasings for one model; the feed matches them inconsistently."""
    search = _quote(MODEL_SEARCH_NAMES.get(model_key, model_key))
    return [
        "serviceName eq 'Cognitive Services' and contains(productName, 'Azure OpenAI') "
        f"and contains(productName, {search})",
        f"contains(productName, 'Azure OpenAI') and contains(productName, {search})",
        f"contains(productName, {search}) and contains(serviceName, 'Cognitive')",
    ]


def parse_feed_items(payload: Any) -> list[RawPriceRecord]:
    """Convert a feed payload into records, skipping undecodable items."""
    if not isinstance(payload, dict):
        return []
    items = payload.get("Items")
    if not isinstance(items, list):
        return []
    records: list[RawPriceRecord] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            records.append(RawPriceRecord.from_feed_item(item))
        except ValueError as exc:
            logger.debug("Skipping undecodable feed item: %s", exc)
            continue
    return records


class RetailPriceFeed:
    """Thin async wrapper around the retail price endpoint."""

    def __init__(
        self,
        base_url: str = RETAIL_PRICES_URL,
        timeout_seconds: float = FEED_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0.")
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def _get(self, client: httpx.AsyncClient, params: dict[str, str]) -> httpx.Response:
        try:
            return await client.get(self.base_url, params=params)
        except httpx.HTTPError as exc:
            raise RetailFeedError(f"retail feed request failed: {exc}") from exc

    async def query(
        self,
        filter_expression: str,
        top: int = CATALOG_QUERY_TOP,
    ) -> list[RawPriceRecord]:
        """Run one filter query.

        Raises:
            RetailFeedError: On transport failure, non-success status, or a
                body that is not JSON.
        """
        params = {"$filter": filter_expression, "$top": str(top)}
        if self._client is not None:
            response = await self._get(self._client, params)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await self._get(client, params)

        if not response.is_success:
            raise RetailFeedError(
                f"retail feed returned status={response.status_code} for filter {filter_expression!r}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise RetailFeedError("retail feed returned a non-JSON body") from exc

        records = parse_feed_items(payload)
        logger.debug("Feed query %r returned %d records", filter_expression, len(records))
        return records

    async def __call__(self, filter_expression: str, top: int) -> list[RawPriceRecord]:
        return await self.query(filter_expression, top)
