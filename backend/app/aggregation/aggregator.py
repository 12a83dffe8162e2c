"""Fan-out/fan-in price aggregation over a fixed symbol list."""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Callable, Sequence

from app.providers import ninjas
from app.schemas.quote import (
    AggregateResult,
    OverallStatus,
    PriceQuote,
    QuoteSummary,
    SymbolDescriptor,
    SymbolOutcome,
)

logger = logging.getLogger(__name__)

PriceFetcher = Callable[[str, str], PriceQuote]
Clock = Callable[[], datetime.datetime]


class MissingCredentialError(RuntimeError):
    """Raised when no upstream API key is configured."""


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def _format_timestamp(moment: datetime.datetime) -> str:
    return moment.astimezone(datetime.UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def _to_outcome(symbol: SymbolDescriptor, quote: PriceQuote, timestamp: str) -> SymbolOutcome:
    if quote.ok:
        return SymbolOutcome(
            ticker=symbol.ticker,
            display_name=symbol.display_name,
            price=quote.price,
            timestamp=timestamp,
        )
    return SymbolOutcome(
        ticker=symbol.ticker,
        display_name=symbol.display_name,
        error=quote.message or "Unknown error",
        timestamp=timestamp,
    )


def classify(outcomes: Sequence[SymbolOutcome]) -> OverallStatus:
    failed = sum(1 for outcome in outcomes if outcome.error is not None)
    if failed == len(outcomes):
        return "all-failed"
    if failed == 0:
        return "all-succeeded"
    return "partial-success"


def summarize(outcomes: Sequence[SymbolOutcome]) -> QuoteSummary:
    failed = sum(1 for outcome in outcomes if outcome.error is not None)
    return QuoteSummary(total=len(outcomes), successful=len(outcomes) - failed, failed=failed)


async def fetch_all(
    symbols: Sequence[SymbolDescriptor],
    api_key: str | None,
    fetcher: PriceFetcher | None = None,
    now: Clock | None = None,
) -> AggregateResult:
    """Fetch every symbol concurrently and wait for all of them to settle.

    Individual upstream failures come back as outcomes with ``error`` set.
    Only a missing credential or an exception escaping the fetcher aborts the call.
    """
    if not symbols:
        raise ValueError("symbols must not be empty")
    if not api_key:
        raise MissingCredentialError("API key not configured")

    fetch = fetcher or ninjas.fetch_price
    timestamp = _format_timestamp((now or _utc_now)())

    quotes = await asyncio.gather(
        *(asyncio.to_thread(fetch, symbol.ticker, api_key) for symbol in symbols)
    )
    outcomes = [
        _to_outcome(symbol, quote, timestamp) for symbol, quote in zip(symbols, quotes)
    ]

    result = AggregateResult(
        overall_status=classify(outcomes),
        timestamp=timestamp,
        outcomes=outcomes,
        summary=summarize(outcomes),
    )
    logger.info(
        "Aggregated %d symbols: %s (%d ok, %d failed)",
        result.summary.total,
        result.overall_status,
        result.summary.successful,
        result.summary.failed,
    )
    return result
