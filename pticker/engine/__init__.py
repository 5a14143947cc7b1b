"""pticker engine layer: everything between the quote provider and the terminal.

All modules use ``from __future__ import annotations`` and modern
Python typing (``str | None``, ``@dataclass(slots=True)``, etc.).

Modules
-------
primitives
    Pure types, constants and tiny helpers (stdlib-only).
    - ``nan``, ``PLACEHOLDER``, ``MarketState``
    - ``Position``, ``SymbolConfig``, ``Row``, ``Table``
    - ``sign``: ternary sign used by alerting and colouring

config
    ``TickerSettings`` (process settings from env / ``.env.pticker``) and the
    symbol configuration parser (``parseSymbols``, ``loadSymbols``).

quotes
    ``QuoteClient``: async httpx client for the quote endpoint returning
    ``QuoteResult`` soft-failure records instead of raising.

session
    ``selectSession``: picks pre/regular/post price figures for a quote.

portfolio
    ``valuePositions``: cost basis, current value and total change.

alerts
    ``AlertEvaluator`` crossing state machine and ``DesktopNotifier``.

columns
    Column styles, value formatting, colour rules, width measurement and
    the ``highlightChange`` digit-flash helper.

rows
    ``buildRow`` / ``fillFromPrevious`` / ``buildTable``: quote -> table row.

table
    ``TableRenderer``: prompt_toolkit formatted frame output.

calendar / clock
    ``marketHoursOpen`` trading window and the ``AppClock`` time source.

ticker
    ``Ticker``: the update scheduler (single-flight guard, hours gating,
    timer + config-watch event loop).

watcher
    ``watchConfig``: watchfiles-based config change feed.
"""

# Convenience re-exports for common usage:
# from pticker.engine import Ticker, TickerSettings
from pticker.engine.config import TickerSettings
from pticker.engine.ticker import Ticker

__all__ = [
    "Ticker",
    "TickerSettings",
]
