"""Quote -> table row conversion, including previous-cycle fallback."""
from __future__ import annotations

from collections.abc import Mapping, Sequence

from pticker.engine.columns import (
    CHANGE,
    CHANGE_PCT,
    CURRENT_VALUE,
    PRICE,
    SESSION,
    SYMBOL,
    TOTAL_CHANGE,
    TOTAL_PCT,
    VOLUME,
)
from pticker.engine.portfolio import valuePositions
from pticker.engine.primitives import Row, SymbolConfig, Table
from pticker.engine.quotes import Quote
from pticker.engine.session import SessionFigures, selectSession


def buildRow(
    quote: Quote,
    config: SymbolConfig | None,
    figures: SessionFigures | None = None,
) -> Row:
    """Build the raw (unformatted) row for one quote.

    Session selection happens first because valuation uses the selected price.
    Symbols returned by the provider but missing from the config are shown
    without positions.
    """
    if figures is None:
        figures = selectSession(quote)

    value = valuePositions(config.positions if config else (), figures.price)

    return {
        SYMBOL: quote.symbol,
        PRICE: figures.price,
        CHANGE: figures.change,
        CHANGE_PCT: figures.changePercent,
        VOLUME: quote.regularMarketVolume,
        TOTAL_CHANGE: value.totalChange,
        TOTAL_PCT: value.totalPercent,
        CURRENT_VALUE: value.currentValue,
        SESSION: figures.marker,
    }


def fillFromPrevious(row: Row, previousTable: Table | None, index: int) -> Row:
    """Replace missing cells with the previous cycle's raw value at the same index."""
    if not previousTable or index >= len(previousTable):
        return row

    prev = previousTable[index]
    for column, value in row.items():
        if value is None:
            row[column] = prev.get(column)

    return row


def buildTable(
    quotes: Sequence[Quote],
    symbols: Mapping[str, SymbolConfig],
    previousTable: Table | None = None,
) -> Table:
    """One row per quote, in provider order, with gaps filled from 'previousTable'."""
    return [
        fillFromPrevious(buildRow(quote, symbols.get(quote.symbol)), previousTable, index)
        for index, quote in enumerate(quotes)
    ]
