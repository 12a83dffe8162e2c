import asyncio
import datetime
import threading
from unittest.mock import Mock, patch

import pytest

from app.aggregation.aggregator import MissingCredentialError, classify, fetch_all
from app.config.companies import COMPANIES
from app.schemas.quote import PriceQuote, SymbolDescriptor

PRICES = {"AAPL": 150.0, "MSFT": 300.0, "GOOGL": 140.0, "META": 280.0, "AMZN": 130.0}
FIXED_NOW = datetime.datetime(2026, 10, 18, 12, 30, 0, 123456, tzinfo=datetime.UTC)


def fixed_clock() -> datetime.datetime:
    return FIXED_NOW


def fake_fetcher(failing: set[str] | None = None):
    failing = failing or set()

    def fetch(ticker: str, api_key: str) -> PriceQuote:
        if ticker in failing:
            return PriceQuote.failure(ticker, "HTTP 429: Too Many Requests")
        return PriceQuote.success(ticker, PRICES[ticker])

    return fetch


def test_all_succeeded_preserves_order_and_prices() -> None:
    result = asyncio.run(fetch_all(COMPANIES, "key", fetcher=fake_fetcher(), now=fixed_clock))

    assert result.overall_status == "all-succeeded"
    assert [outcome.ticker for outcome in result.outcomes] == ["AAPL", "MSFT", "GOOGL", "META", "AMZN"]
    assert [outcome.price for outcome in result.outcomes] == [150.0, 300.0, 140.0, 280.0, 130.0]
    assert all(outcome.error is None for outcome in result.outcomes)
    assert result.summary.model_dump() == {"total": 5, "successful": 5, "failed": 0}


def test_single_failure_is_partial_success() -> None:
    result = asyncio.run(
        fetch_all(COMPANIES, "key", fetcher=fake_fetcher({"META"}), now=fixed_clock)
    )

    assert result.overall_status == "partial-success"
    assert result.summary.model_dump() == {"total": 5, "successful": 4, "failed": 1}
    meta = result.outcomes[3]
    assert meta.ticker == "META"
    assert meta.price is None
    assert "429" in meta.error


def test_all_failed() -> None:
    result = asyncio.run(
        fetch_all(COMPANIES, "key", fetcher=fake_fetcher(set(PRICES)), now=fixed_clock)
    )

    assert result.overall_status == "all-failed"
    assert result.summary.successful == 0
    assert len(result.outcomes) == len(COMPANIES)


def test_timestamp_is_shared_across_outcomes() -> None:
    result = asyncio.run(fetch_all(COMPANIES, "key", fetcher=fake_fetcher(), now=fixed_clock))

    assert result.timestamp == "2026-10-18T12:30:00.123Z"
    assert {outcome.timestamp for outcome in result.outcomes} == {result.timestamp}


def test_outcome_order_follows_input_not_completion() -> None:
    delays = {"AAPL": 0.2, "MSFT": 0.0, "GOOGL": 0.1}
    symbols = [SymbolDescriptor(ticker=ticker, display_name=ticker) for ticker in delays]

    def slow_fetch(ticker: str, api_key: str) -> PriceQuote:
        threading.Event().wait(delays[ticker])
        return PriceQuote.success(ticker, 1.0)

    result = asyncio.run(fetch_all(symbols, "key", fetcher=slow_fetch))

    assert [outcome.ticker for outcome in result.outcomes] == ["AAPL", "MSFT", "GOOGL"]


def test_fetches_run_concurrently() -> None:
    barrier = threading.Barrier(len(COMPANIES), timeout=5)

    def rendezvous_fetch(ticker: str, api_key: str) -> PriceQuote:
        barrier.wait()
        return PriceQuote.success(ticker, PRICES[ticker])

    result = asyncio.run(fetch_all(COMPANIES, "key", fetcher=rendezvous_fetch))

    assert result.overall_status == "all-succeeded"


def test_missing_credential_never_calls_fetcher() -> None:
    fetcher = Mock()
    for api_key in (None, ""):
        with pytest.raises(MissingCredentialError):
            asyncio.run(fetch_all(COMPANIES, api_key, fetcher=fetcher))
    fetcher.assert_not_called()


def test_empty_symbols_rejected() -> None:
    with pytest.raises(ValueError):
        asyncio.run(fetch_all([], "key", fetcher=fake_fetcher()))


def test_fetcher_exception_escalates() -> None:
    def broken_fetch(ticker: str, api_key: str) -> PriceQuote:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(fetch_all(COMPANIES, "key", fetcher=broken_fetch))


def test_default_fetcher_receives_credential() -> None:
    with patch(
        "app.aggregation.aggregator.ninjas.fetch_price", side_effect=fake_fetcher()
    ) as fetch_mock:
        asyncio.run(fetch_all(COMPANIES, "injected-key"))

    assert fetch_mock.call_count == len(COMPANIES)
    assert {call.args[1] for call in fetch_mock.call_args_list} == {"injected-key"}


def test_repeated_runs_are_deterministic() -> None:
    first = asyncio.run(fetch_all(COMPANIES, "key", fetcher=fake_fetcher({"AMZN"})))
    second = asyncio.run(fetch_all(COMPANIES, "key", fetcher=fake_fetcher({"AMZN"})))

    def strip(result) -> list[dict]:
        return [outcome.model_dump(exclude={"timestamp"}) for outcome in result.outcomes]

    assert strip(first) == strip(second)
    assert first.summary == second.summary


def test_single_failing_symbol_is_all_failed() -> None:
    result = asyncio.run(
        fetch_all(COMPANIES[:1], "key", fetcher=fake_fetcher({"AAPL"}), now=fixed_clock)
    )
    assert classify(result.outcomes) == "all-failed"
