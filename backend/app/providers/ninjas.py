from __future__ import annotations

import json
import logging
import math
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from app.config.settings import settings
from app.schemas.quote import PriceQuote

logger = logging.getLogger(__name__)

_STOCKPRICE_PATH = "/v1/stockprice"
_INVALID_FORMAT = "Invalid response format from API"


def _build_url(params: dict[str, str]) -> str:
    base_url = settings.providers.upstream_base_url.rstrip("/")
    return f"{base_url}{_STOCKPRICE_PATH}?{urlencode(params)}"


def _failure(ticker: str, message: str) -> PriceQuote:
    logger.warning("Error fetching %s: %s", ticker, message)
    return PriceQuote.failure(ticker, message)


def fetch_price(ticker: str, api_key: str) -> PriceQuote:
    url = _build_url({"ticker": ticker})
    request = Request(
        url,
        headers={"X-Api-Key": api_key, "Content-Type": "application/json"},
        method="GET",
    )
    try:
        with urlopen(request, timeout=settings.providers.request_timeout_seconds) as response:
            body = response.read().decode("utf-8")
        payload = json.loads(body)
    except HTTPError as exc:
        return _failure(ticker, f"HTTP {exc.code}: {exc.reason}")
    except URLError as exc:
        return _failure(ticker, f"Network error: {exc.reason}")
    except (TimeoutError, OSError) as exc:
        return _failure(ticker, f"Network error: {exc}")
    except ValueError:
        # json.JSONDecodeError and UnicodeDecodeError
        return _failure(ticker, _INVALID_FORMAT)

    if not isinstance(payload, dict):
        return _failure(ticker, _INVALID_FORMAT)

    price = payload.get("price")
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        return _failure(ticker, _INVALID_FORMAT)
    try:
        value = float(price)
    except OverflowError:
        return _failure(ticker, _INVALID_FORMAT)
    # json.loads accepts NaN and Infinity literals
    if not math.isfinite(value):
        return _failure(ticker, _INVALID_FORMAT)

    return PriceQuote.success(ticker, value)
