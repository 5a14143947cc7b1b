"""Market-session selection: which price triple a quote should display."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from pticker.engine.primitives import MarketState, MaybePrice
from pticker.engine.quotes import Quote

# marker column contents so extended-hours prices are obvious at a glance
SESSION_MARKERS: Final = {
    MarketState.PRE: "<",
    MarketState.POST: ">",
}


@dataclass(slots=True, frozen=True)
class SessionFigures:
    """Price, change, and change percent for the active session of a quote."""

    price: MaybePrice
    change: MaybePrice
    changePercent: MaybePrice
    marker: str = ""


def selectSession(quote: Quote) -> SessionFigures:
    """Return the figures for the quote's current market session.

    PRE and POST use the extended-hours fields; every other state (REGULAR,
    CLOSED, anything unknown) uses the regular-market fields.
    """
    match quote.marketState:
        case MarketState.PRE:
            return SessionFigures(
                quote.preMarketPrice,
                quote.preMarketChange,
                quote.preMarketChangePercent,
                SESSION_MARKERS[MarketState.PRE],
            )
        case MarketState.POST:
            return SessionFigures(
                quote.postMarketPrice,
                quote.postMarketChange,
                quote.postMarketChangePercent,
                SESSION_MARKERS[MarketState.POST],
            )
        case _:
            return SessionFigures(
                quote.regularMarketPrice,
                quote.regularMarketChange,
                quote.regularMarketChangePercent,
            )
