"""Pure types, constants, and utility functions (no dependencies beyond stdlib)."""

from __future__ import annotations

import decimal
import enum
import math
from dataclasses import dataclass, field
from typing import Final

nan: Final = float("nan")

# shown in place of values which exist but can't be represented (nan/inf),
# e.g. "Total %" for a symbol with a zero cost basis.
PLACEHOLDER: Final = "n/a"

# every value a table cell can hold before formatting
type CellValue = float | int | str | None

# one rendered row is keyed by column label (see columns.COLUMNS for the order)
type Row = dict[str, CellValue]
type Table = list[Row]

type FPrice = float
type MaybePrice = FPrice | None
type Sign = int


class MarketState(enum.Enum):
    """Trading session a quote's active price belongs to.

    The provider sends more states than we care about (PREPRE, POSTPOST,
    CLOSED, ...) so anything unrecognized collapses into CLOSED which
    displays regular-market figures.
    """

    PRE = "PRE"
    REGULAR = "REGULAR"
    POST = "POST"
    CLOSED = "CLOSED"

    @classmethod
    def parse(cls, value: str | None) -> MarketState:
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.CLOSED


@dataclass(slots=True, frozen=True)
class Position:
    """One lot held: quantity and the per-unit price paid."""

    amount: float
    price: float

    @property
    def cost(self) -> float:
        return self.amount * self.price


@dataclass(slots=True, frozen=True)
class SymbolConfig:
    """Everything configured for one symbol.

    Multiple positions are summed (not pre-averaged) and alerts are
    independent price thresholds in configured order.
    """

    symbol: str
    positions: tuple[Position, ...] = field(default_factory=tuple)
    alerts: tuple[float, ...] = field(default_factory=tuple)


def sign(x: float) -> Sign:
    """Return -1, 0, or 1 matching the direction of 'x'."""
    if x > 0:
        return 1

    if x < 0:
        return -1

    return 0


def isfinite(x: CellValue) -> bool:
    """True for real numbers we can do math on (excludes None, str, nan, inf)."""
    return isinstance(x, (int, float)) and not isinstance(x, bool) and math.isfinite(x)


def decimalPlaces(x: float) -> int:
    """Digits after the point in the shortest exact repr of 'x' (0 for whole numbers)."""
    if not math.isfinite(x):
        return 0

    exponent = decimal.Decimal(repr(float(x))).normalize().as_tuple().exponent
    return max(0, -exponent)  # type: ignore[operator]
