"""Position valuation against the current display price."""
from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from pticker.engine.primitives import MaybePrice, Position, nan


@dataclass(slots=True, frozen=True)
class Valuation:
    costValue: float | None = None
    currentValue: float | None = None
    totalChange: float | None = None
    totalPercent: float | None = None


def valuePositions(positions: Iterable[Position], price: MaybePrice) -> Valuation:
    """Aggregate all positions for a symbol at 'price'.

    Positions are summed lot by lot (no pre-averaging):
        cost basis    = sum(amount * cost price)
        current value = sum(amount * price)

    With no price we return an empty Valuation so the row falls back to the
    previous cycle's values.

    With a zero cost basis (no positions, or only free shares) the percent
    change is undefined: nan if nothing changed, else +/-inf.
    """
    if price is None:
        return Valuation()

    costValue = 0.0
    currentValue = 0.0
    for p in positions:
        costValue += p.cost
        currentValue += p.amount * price

    totalChange = currentValue - costValue

    if costValue:
        totalPercent = (totalChange / costValue) * 100
    elif totalChange:
        totalPercent = math.copysign(math.inf, totalChange)
    else:
        totalPercent = nan

    return Valuation(costValue, currentValue, totalChange, totalPercent)
