"""Shared test fixtures for the pticker test suite.

FakeQuoteClient stands in for the HTTP quote client so update cycles run
without network access; RecordingRenderer captures frames instead of
clearing the terminal.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest
import whenever

from pticker.engine.alerts import AlertEvent
from pticker.engine.clock import AppClock
from pticker.engine.config import TickerSettings
from pticker.engine.primitives import MarketState, Position, SymbolConfig
from pticker.engine.quotes import Quote, QuoteResult


def make_quote(symbol: str = "X", price: float | None = 110.0, **kwargs: Any) -> Quote:
    """Regular-session quote with sensible defaults; kwargs override any field."""
    defaults = dict(
        symbol=symbol,
        marketState=MarketState.REGULAR,
        regularMarketPrice=price,
        regularMarketChange=1.5,
        regularMarketChangePercent=1.38,
        regularMarketVolume=1_234_567,
    )
    defaults.update(kwargs)
    return Quote(**defaults)


def pinned_clock(*args: int, tz: str = "US/Eastern") -> AppClock:
    """AppClock frozen at ZonedDateTime(*args)."""
    at = whenever.ZonedDateTime(*args, tz=tz)
    return AppClock(tz=tz, source=lambda: at)


class FakeQuoteClient:
    """Test double for QuoteClient.

    Returns queued results in order (repeating the last one). If 'gate' is
    set, fetch() waits on it first so tests can hold a cycle in flight.
    """

    def __init__(self, *results: QuoteResult) -> None:
        self.results = list(results) or [QuoteResult()]
        self.calls: list[set[str]] = []
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def fetch(self, symbols) -> QuoteResult:
        self.calls.append(set(symbols))
        if self.gate is not None:
            await self.gate.wait()

        if len(self.results) > 1:
            return self.results.pop(0)

        return self.results[0]

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class RecordingRenderer:
    """Stores every render() call instead of printing."""

    frames: list[tuple[Any, Any, Any]] = field(default_factory=list)

    def render(self, table, previousTable, now) -> None:
        self.frames.append((table, previousTable, now))


@dataclass
class FakeNotifier:
    events: list[AlertEvent] = field(default_factory=list)

    def notify(self, event: AlertEvent) -> None:
        self.events.append(event)


# ── Fixtures ──


@pytest.fixture
def settings(tmp_path) -> TickerSettings:
    config = tmp_path / "pticker.json"
    config.write_text('{"X": {"positions": [{"amount": 10, "price": 100}]}}')
    return TickerSettings(config=config, frequency=10, logdir=tmp_path / "logs")


@pytest.fixture
def symbols() -> dict[str, SymbolConfig]:
    return {
        "X": SymbolConfig("X", positions=(Position(10, 100),), alerts=(100.0,)),
        "Y": SymbolConfig("Y"),
    }


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()
