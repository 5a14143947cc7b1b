"""The update scheduler.

One ``Ticker`` owns all cycle state: the previous table, alert crossing
state, the single-flight guard, and the outside-hours notice flag.

Event flow in ``run()``::

    timer task ---+
                  +--> triggers queue (max 1 pending) --> update()
    config watch -+

Extra triggers arriving while one is already pending are dropped, and
``update()`` itself refuses to start while another cycle is running, so a
slow fetch only ever causes skipped refreshes, never stacked ones.
"""
from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Literal

from loguru import logger

from pticker.engine.alerts import AlertEvaluator, DesktopNotifier, Notifier
from pticker.engine.calendar import marketHoursOpen
from pticker.engine.clock import AppClock
from pticker.engine.config import ConfigError, TickerSettings, loadSymbols
from pticker.engine.primitives import SymbolConfig, Table
from pticker.engine.quotes import Quote, QuoteClient
from pticker.engine.rows import buildTable
from pticker.engine.session import selectSession
from pticker.engine.table import TableRenderer
from pticker.engine.watcher import watchConfig

type Trigger = Literal["timer", "config"] | None


class Ticker:
    """Periodically fetch, compute, and render the portfolio table.

    Parameters
    ----------
    settings:
        Process settings (frequency, hours limiting, config path, ...).
    symbols:
        Initial symbol configuration (``config.loadSymbols()`` output).
    client, renderer, notifier, clock:
        Collaborators; defaults are built from 'settings'.
    """

    def __init__(
        self,
        settings: TickerSettings,
        symbols: Mapping[str, SymbolConfig] | None = None,
        client: QuoteClient | None = None,
        renderer: TableRenderer | None = None,
        notifier: Notifier | None = None,
        clock: AppClock | None = None,
    ) -> None:
        self.settings = settings
        self.symbols: Mapping[str, SymbolConfig] = dict(symbols or {})

        self.client = client or QuoteClient(settings.endpoint, settings.timeout)
        self.renderer = renderer or TableRenderer()
        self.notifier: Notifier = notifier or DesktopNotifier()
        self.clock = clock or AppClock(tz=settings.timezone)

        self.alerts = AlertEvaluator()
        self.previousTable: Table | None = None

        # single-flight guard: only mutated on the event loop thread with no
        # await between check and set
        self.running = False

        # so we log "outside market hours" once per transition, not every tick
        self.outsideHours = False

        # count of completed (rendered) cycles
        self.updates = 0

        self.triggers: asyncio.Queue[Trigger] = asyncio.Queue(maxsize=1)
        self.stopping = asyncio.Event()

    # ------------------------------------------------------------------
    # Update cycle
    # ------------------------------------------------------------------

    async def update(self) -> Table | None:
        """Run one fetch-compute-render cycle and return the current table.

        Returns the previous table unchanged when a cycle is already
        running, when outside market hours (with limitHours), or when
        anything in the cycle fails.
        """
        if self.running:
            logger.debug("Update already running, dropping trigger")
            return self.previousTable

        self.clock.tick()
        if self.settings.limitHours and not marketHoursOpen(self.clock.now):
            if not self.outsideHours:
                logger.info(
                    "Outside market hours ({}), pausing updates",
                    self.clock.now.py_datetime().strftime("%a %H:%M %Z"),
                )
                self.outsideHours = True

            return self.previousTable

        if self.outsideHours:
            logger.info("Market hours started, resuming updates")
            self.outsideHours = False

        self.running = True
        try:
            return await self.cycle()
        except Exception:
            logger.exception("Update failed, keeping previous table")
            return self.previousTable
        finally:
            self.running = False

    async def cycle(self) -> Table | None:
        # config may be swapped by a reload while we await the fetch,
        # so use one snapshot for the whole cycle
        symbols = self.symbols

        result = await self.client.fetch(symbols.keys())
        if result.error:
            logger.warning("Quote fetch failed, keeping previous table: {}", result.error)
            return self.previousTable

        self.checkAlerts(result.quotes, symbols)

        table = buildTable(result.quotes, symbols, self.previousTable)
        self.renderer.render(table, self.previousTable, self.clock.now.py_datetime())

        self.previousTable = table
        self.updates += 1

        return table

    def checkAlerts(
        self, quotes: list[Quote], symbols: Mapping[str, SymbolConfig]
    ) -> None:
        for quote in quotes:
            config = symbols.get(quote.symbol)
            if not (config and config.alerts):
                continue

            price = selectSession(quote).price
            for event in self.alerts.evaluate(quote.symbol, price, config.alerts):
                self.notifier.notify(event)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def reload(self) -> bool:
        """Re-read the config file, keeping the current config on any failure."""
        try:
            symbols = loadSymbols(self.settings.config, self.symbols)
        except ConfigError as e:
            logger.error("Config reload failed, keeping previous config: {}", e)
            return False

        self.symbols = symbols
        logger.info("Loaded {} symbols from {}", len(symbols), self.settings.config)

        return True

    def configChanged(self) -> None:
        self.reload()
        self.trigger("config")

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def trigger(self, reason: Trigger) -> None:
        try:
            self.triggers.put_nowait(reason)
        except asyncio.QueueFull:
            logger.trace("Update already pending, dropping {} trigger", reason)

    async def timer(self) -> None:
        while True:
            await asyncio.sleep(self.settings.frequency)
            self.trigger("timer")

    async def watch(self) -> None:
        try:
            await watchConfig(self.settings.config, self.configChanged, self.stopping)
        except Exception:
            # losing the watcher shouldn't stop the ticker
            logger.exception("Config watcher stopped, hot reload disabled")

    async def run(self) -> None:
        """Update now, then keep updating on every timer tick or config change until stop()."""
        try:
            await self.update()

            if self.settings.frequency <= 0:
                return

            tasks = [
                asyncio.create_task(self.timer(), name="pticker-timer"),
                asyncio.create_task(self.watch(), name="pticker-watch"),
            ]

            try:
                while (reason := await self.triggers.get()) is not None:
                    logger.trace("Update triggered by {}", reason)
                    await self.update()
            finally:
                for task in tasks:
                    task.cancel()

                await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            await self.client.aclose()

    def stop(self) -> None:
        """Ask run() to exit after any in-flight cycle completes."""
        self.stopping.set()

        # make room for the stop sentinel
        while not self.triggers.empty():
            self.triggers.get_nowait()

        self.triggers.put_nowait(None)
