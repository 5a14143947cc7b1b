"""Quote fetching from the Yahoo-style v7 quote endpoint.

One request per update cycle covers every configured symbol. Failures never
raise out of ``QuoteClient.fetch()``: they come back as a ``QuoteResult``
with ``error`` populated so the scheduler can keep showing the previous table.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Final

import httpx
import orjson
from loguru import logger

from pticker.engine.config import DEFAULT_ENDPOINT
from pticker.engine.primitives import MarketState, MaybePrice

# Fields requested from the provider (the response carries more, but these
# are all we display or compute from).
FIELDS: Final = (
    "symbol",
    "marketState",
    "regularMarketPrice",
    "regularMarketChange",
    "regularMarketChangePercent",
    "regularMarketVolume",
    "preMarketPrice",
    "preMarketChange",
    "preMarketChangePercent",
    "postMarketPrice",
    "postMarketChange",
    "postMarketChangePercent",
)

BASE_PARAMS: Final = dict(lang="en-US", region="US", corsDomain="finance.yahoo.com")

# the endpoint rejects requests without a browser-ish agent
HEADERS: Final = {"User-Agent": "Mozilla/5.0 (pticker)", "Accept": "application/json"}


def _num(record: dict[str, Any], key: str) -> MaybePrice:
    val = record.get(key)

    # some providers wrap numbers as {"raw": 1.23, "fmt": "1.23"}
    if isinstance(val, dict):
        val = val.get("raw")

    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return None

    return float(val)


@dataclass(slots=True)
class Quote:
    """A snapshot of one symbol's trading state. Any number may be missing."""

    symbol: str
    marketState: MarketState = MarketState.CLOSED

    regularMarketPrice: MaybePrice = None
    regularMarketChange: MaybePrice = None
    regularMarketChangePercent: MaybePrice = None
    regularMarketVolume: MaybePrice = None

    preMarketPrice: MaybePrice = None
    preMarketChange: MaybePrice = None
    preMarketChangePercent: MaybePrice = None

    postMarketPrice: MaybePrice = None
    postMarketChange: MaybePrice = None
    postMarketChangePercent: MaybePrice = None

    @classmethod
    def fromRecord(cls, record: dict[str, Any]) -> Quote:
        return cls(
            symbol=str(record.get("symbol") or "").upper(),
            marketState=MarketState.parse(record.get("marketState")),
            **{k: _num(record, k) for k in FIELDS[2:]},
        )


@dataclass(slots=True)
class QuoteResult:
    quotes: list[Quote] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def decodeQuoteResponse(body: bytes | str) -> QuoteResult:
    """Unwrap ``{"quoteResponse": {"result": [...], "error": ...}}`` into a QuoteResult."""
    try:
        doc = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        return QuoteResult(error=f"Invalid JSON from quote provider: {e}")

    # error responses sometimes come back as {"finance": {"error": {...}}} instead
    if not isinstance(doc, dict) or not isinstance(
        resp := doc.get("quoteResponse"), dict
    ):
        if isinstance(doc, dict) and (fin := doc.get("finance")):
            return QuoteResult(error=f"Quote provider error: {fin.get('error')}")

        return QuoteResult(error="Quote provider response missing 'quoteResponse'")

    if err := resp.get("error"):
        return QuoteResult(error=f"Quote provider error: {err}")

    results = resp.get("result") or []
    if not isinstance(results, list):
        return QuoteResult(error="Quote provider 'result' is not a list")

    return QuoteResult(
        quotes=[Quote.fromRecord(r) for r in results if isinstance(r, dict)]
    )


class QuoteClient:
    """Async quote fetcher.

    Parameters
    ----------
    endpoint:
        Quote URL (without query string).
    timeout:
        Seconds before a request is abandoned. The scheduler holds its
        single-flight guard for the whole fetch, so this must be finite.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests pass one with a
        ``MockTransport``).
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(headers=HEADERS, timeout=timeout)

    @staticmethod
    def params(symbols: Iterable[str]) -> dict[str, str]:
        return BASE_PARAMS | dict(
            fields=",".join(FIELDS),
            symbols=",".join(sorted({s.upper() for s in symbols})),
        )

    async def fetch(self, symbols: Iterable[str]) -> QuoteResult:
        symbols = set(symbols)
        if not symbols:
            return QuoteResult()

        try:
            got = await self.client.get(
                self.endpoint, params=self.params(symbols), timeout=self.timeout
            )
            got.raise_for_status()
        except httpx.HTTPStatusError as e:
            return QuoteResult(
                error=f"Quote request failed: HTTP {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            return QuoteResult(
                error=f"Quote request failed: {type(e).__name__}: {e}"
            )

        result = decodeQuoteResponse(got.content)
        logger.trace(
            "Fetched {} quotes for {} symbols (error: {})",
            len(result.quotes),
            len(symbols),
            result.error,
        )

        return result

    async def aclose(self) -> None:
        await self.client.aclose()
