"""Tests for the Ticker update cycle and scheduler.

Every test runs against FakeQuoteClient and RecordingRenderer, so nothing
touches the network or the terminal.
"""
import asyncio

import pytest
import whenever
from loguru import logger

from pticker.engine.clock import AppClock
from pticker.engine.columns import PRICE, TOTAL_CHANGE
from pticker.engine.primitives import MarketState, Position, SymbolConfig
from pticker.engine.quotes import QuoteResult
from pticker.engine.ticker import Ticker
from tests.conftest import FakeQuoteClient, make_quote, pinned_clock

pytestmark = pytest.mark.asyncio


def result(*prices):
    return QuoteResult([make_quote("X", p) for p in prices])


def make_ticker(settings, symbols, renderer, notifier, client, clock=None):
    return Ticker(
        settings,
        symbols,
        client=client,
        renderer=renderer,
        notifier=notifier,
        clock=clock or pinned_clock(2026, 10, 20, 10),
    )


async def until(predicate, timeout=2.0):
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.01)


@pytest.fixture
def messages():
    got = []
    handler = logger.add(got.append, level="INFO", format="{message}")
    yield got
    logger.remove(handler)


class TestUpdate:
    async def test_renders_table(self, settings, symbols, renderer, notifier):
        client = FakeQuoteClient(result(110))
        ticker = make_ticker(settings, symbols, renderer, notifier, client)

        table = await ticker.update()

        assert client.calls == [{"X", "Y"}]
        assert table[0][PRICE] == 110
        assert table[0][TOTAL_CHANGE] == 100
        assert ticker.previousTable is table
        assert ticker.updates == 1

        ((frameTable, previous, now),) = renderer.frames
        assert frameTable is table
        assert previous is None
        assert now == ticker.clock.now.py_datetime()

    async def test_second_cycle_sees_previous_table(self, settings, symbols, renderer, notifier):
        client = FakeQuoteClient(result(110), result(111))
        ticker = make_ticker(settings, symbols, renderer, notifier, client)

        first = await ticker.update()
        second = await ticker.update()

        assert renderer.frames[1][1] is first
        assert second[0][PRICE] == 111

    async def test_fetch_error_keeps_previous_table(self, settings, symbols, renderer, notifier):
        client = FakeQuoteClient(result(110), QuoteResult(error="boom"))
        ticker = make_ticker(settings, symbols, renderer, notifier, client)

        first = await ticker.update()
        assert await ticker.update() is first

        assert len(renderer.frames) == 1
        assert ticker.updates == 1
        assert not ticker.running

    async def test_render_failure_keeps_previous_table(self, settings, symbols, notifier):
        class BrokenRenderer:
            def render(self, table, previousTable, now):
                raise RuntimeError("terminal went away")

        ticker = make_ticker(
            settings, symbols, BrokenRenderer(), notifier, FakeQuoteClient(result(110))
        )

        assert await ticker.update() is None
        assert ticker.previousTable is None
        assert not ticker.running

    async def test_single_flight(self, settings, symbols, renderer, notifier):
        client = FakeQuoteClient(result(110))
        client.gate = asyncio.Event()
        ticker = make_ticker(settings, symbols, renderer, notifier, client)

        first = asyncio.create_task(ticker.update())
        await until(lambda: client.calls)

        # while the first cycle is waiting on its fetch, more triggers do nothing
        assert ticker.running
        assert await ticker.update() is None
        assert len(client.calls) == 1

        client.gate.set()
        table = await first

        assert table is ticker.previousTable
        assert len(client.calls) == 1
        assert not ticker.running


class TestMarketHours:
    @pytest.mark.parametrize(
        "when",
        [
            (2026, 10, 20, 21),  # Tuesday evening
            (2026, 10, 24, 10),  # Saturday
        ],
    )
    async def test_outside_hours_skips(self, settings, symbols, renderer, notifier, when):
        settings.limitHours = True
        at = [whenever.ZonedDateTime(2026, 10, 20, 10, tz="US/Eastern")]
        client = FakeQuoteClient(result(110), result(120))
        ticker = make_ticker(
            settings, symbols, renderer, notifier, client, AppClock(source=lambda: at[0])
        )

        previous = await ticker.update()
        assert previous is not None

        at[0] = whenever.ZonedDateTime(*when, tz="US/Eastern")
        assert await ticker.update() is previous
        assert ticker.previousTable is previous
        assert previous[0][PRICE] == 110
        assert len(client.calls) == 1
        assert len(renderer.frames) == 1

    async def test_outside_hours_before_first_cycle(self, settings, symbols, renderer, notifier):
        settings.limitHours = True
        client = FakeQuoteClient(result(110))
        ticker = make_ticker(
            settings, symbols, renderer, notifier, client, pinned_clock(2026, 10, 24, 10)
        )

        assert await ticker.update() is None
        assert client.calls == []
        assert renderer.frames == []

    async def test_inside_hours_runs(self, settings, symbols, renderer, notifier):
        settings.limitHours = True
        client = FakeQuoteClient(result(110))
        ticker = make_ticker(
            settings, symbols, renderer, notifier, client, pinned_clock(2026, 10, 20, 10)
        )

        assert await ticker.update() is not None
        assert len(client.calls) == 1

    async def test_unlimited_ignores_hours(self, settings, symbols, renderer, notifier):
        client = FakeQuoteClient(result(110))
        ticker = make_ticker(
            settings, symbols, renderer, notifier, client, pinned_clock(2026, 10, 25, 2)
        )

        assert await ticker.update() is not None

    async def test_logs_transitions_once(self, settings, symbols, renderer, notifier, messages):
        settings.limitHours = True
        at = [whenever.ZonedDateTime(2026, 10, 20, 21, tz="US/Eastern")]
        clock = AppClock(source=lambda: at[0])
        client = FakeQuoteClient(result(110))
        ticker = make_ticker(settings, symbols, renderer, notifier, client, clock)

        await ticker.update()
        await ticker.update()
        assert sum("Outside market hours" in m for m in messages) == 1

        at[0] = whenever.ZonedDateTime(2026, 10, 21, 4, tz="US/Eastern")
        await ticker.update()
        await ticker.update()
        assert sum("Market hours started" in m for m in messages) == 1
        assert len(client.calls) == 2


class TestAlerts:
    async def test_crossings_notify(self, settings, symbols, renderer, notifier):
        client = FakeQuoteClient(result(100), result(105), result(95), result(94))
        ticker = make_ticker(settings, symbols, renderer, notifier, client)

        for _ in range(4):
            await ticker.update()

        assert [e.direction for e in notifier.events] == [1, -1]
        assert [e.price for e in notifier.events] == [105, 95]
        assert notifier.events[0].message == "X has gone above 100: 105.00"

    async def test_uses_session_price(self, settings, symbols, renderer, notifier):
        pre = MarketState.PRE
        client = FakeQuoteClient(
            result(90),
            QuoteResult([make_quote("X", 90, marketState=pre, preMarketPrice=101.0)]),
            # no pre-market price: the row falls back, but alerts must not
            QuoteResult([make_quote("X", 90, marketState=pre)]),
        )
        ticker = make_ticker(settings, symbols, renderer, notifier, client)

        for _ in range(3):
            await ticker.update()

        assert [e.price for e in notifier.events] == [101.0]
        assert ticker.previousTable[0][PRICE] == 101.0


class TestConfig:
    async def test_reload(self, settings, symbols, renderer, notifier):
        ticker = make_ticker(settings, symbols, renderer, notifier, FakeQuoteClient())

        assert ticker.reload()
        assert ticker.symbols == {"X": SymbolConfig("X", positions=(Position(10, 100),))}

    async def test_bad_reload_keeps_config(self, settings, symbols, renderer, notifier):
        ticker = make_ticker(settings, symbols, renderer, notifier, FakeQuoteClient())
        settings.config.write_text("{broken")

        assert not ticker.reload()
        assert ticker.symbols == symbols

    async def test_config_change_triggers_update(self, settings, symbols, renderer, notifier):
        ticker = make_ticker(settings, symbols, renderer, notifier, FakeQuoteClient())
        settings.config.write_text('{"Z": {}}')

        ticker.configChanged()

        assert list(ticker.symbols) == ["Z"]
        assert ticker.triggers.get_nowait() == "config"

    async def test_malformed_entry_keeps_previous_and_watching(
        self, settings, symbols, renderer, notifier
    ):
        ticker = make_ticker(settings, symbols, renderer, notifier, FakeQuoteClient())
        settings.config.write_text('{"X": {"alerts": 100}, "Y": {"positions": 5}}')

        ticker.configChanged()

        assert ticker.symbols == symbols
        assert ticker.triggers.get_nowait() == "config"

        # a corrected save is picked up on the next change
        settings.config.write_text('{"X": {"alerts": [120]}}')
        ticker.configChanged()

        assert ticker.symbols == {"X": SymbolConfig("X", alerts=(120.0,))}


class TestRun:
    async def test_triggers_coalesce(self, settings, symbols, renderer, notifier):
        ticker = make_ticker(settings, symbols, renderer, notifier, FakeQuoteClient())

        ticker.trigger("timer")
        ticker.trigger("config")
        ticker.trigger("timer")

        assert ticker.triggers.qsize() == 1
        assert ticker.triggers.get_nowait() == "timer"

    async def test_zero_frequency_runs_once(self, settings, symbols, renderer, notifier):
        settings.frequency = 0
        client = FakeQuoteClient(result(110))
        ticker = make_ticker(settings, symbols, renderer, notifier, client)

        await ticker.run()

        assert len(client.calls) == 1
        assert len(renderer.frames) == 1
        assert client.closed

    async def test_run_until_stopped(self, settings, symbols, renderer, notifier):
        settings.frequency = 3600
        client = FakeQuoteClient(result(110), result(111))
        ticker = make_ticker(settings, symbols, renderer, notifier, client)

        task = asyncio.create_task(ticker.run())
        await until(lambda: ticker.updates == 1)

        ticker.trigger("timer")
        await until(lambda: ticker.updates == 2)

        ticker.stop()
        async with asyncio.timeout(5):
            await task

        assert ticker.previousTable[0][PRICE] == 111
        assert client.closed
