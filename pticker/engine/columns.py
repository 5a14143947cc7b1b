"""Column styles, cell formatting, colour decisions, and width measurement.

Cells hold raw values (floats, strings, or None) until render time so the
previous table can be re-formatted for fallback and delta highlighting.
Colours are prompt_toolkit style strings; nothing here writes to a terminal.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final

from pticker.engine.primitives import (
    PLACEHOLDER,
    CellValue,
    Row,
    Sign,
    Table,
    isfinite,
    sign,
)

POSITIVE: Final = "fg:ansigreen"
NEGATIVE: Final = "fg:ansired"

TREND_STYLES: Final = {1: POSITIVE, -1: NEGATIVE}

# compact notation suffixes, each step is x1000
UNITS: Final = ("", "K", "M", "B", "T")

type Fragments = list[tuple[str, str]]


@dataclass(slots=True, frozen=True)
class Column:
    label: str

    # text around the number: "$1.00", "5.00%"
    prefix: str = ""
    postfix: str = ""

    # abbreviate large values: 1234567 -> 1.23M
    compact: bool = False
    decimals: int = 2

    # explicit style always wins over sign colouring
    style: str | None = None

    # colour positive green, negative red (when no explicit style)
    signed: bool = True

    # flash the changed digits against the previous cycle
    highlight: bool = False


SYMBOL: Final = "Symbol"
PRICE: Final = "Price"
CHANGE: Final = "Change"
CHANGE_PCT: Final = "Change %"
VOLUME: Final = "Volume"
TOTAL_CHANGE: Final = "Total Change"
TOTAL_PCT: Final = "Total %"
CURRENT_VALUE: Final = "Current Value"
SESSION: Final = " "

# display order
COLUMNS: Final = (
    Column(SYMBOL, style="bold"),
    Column(PRICE, prefix="$", style="bold", highlight=True),
    Column(CHANGE),
    Column(CHANGE_PCT, postfix="%"),
    Column(VOLUME, compact=True, signed=False),
    Column(TOTAL_CHANGE, prefix="$"),
    Column(TOTAL_PCT, postfix="%"),
    Column(CURRENT_VALUE, prefix="$", style="bold"),
    Column(SESSION, signed=False),
)


def fmtCompact(n: float, decimals: int = 2) -> str:
    """Abbreviate 'n' using K/M/B/T suffixes.

    Values under 1,000 are left alone (whole numbers without decimals).
    Rounding is checked before choosing a suffix so 999,999 shows as
    1.00M instead of 1000.00K.
    """
    mag = abs(n)
    idx = 0
    while idx < len(UNITS) - 1 and round(mag, decimals) >= 1000:
        mag /= 1000
        idx += 1

    neg = "-" if n < 0 else ""
    if idx == 0:
        if mag == int(mag):
            return f"{neg}{mag:.0f}"

        return f"{neg}{mag:.{decimals}f}"

    return f"{neg}{mag:.{decimals}f}{UNITS[idx]}"


def formatValue(value: CellValue, column: Column) -> str:
    """Render one cell value as plain text (no padding, no colour)."""
    if value is None:
        return ""

    if isinstance(value, str):
        return value

    if not math.isfinite(value):
        return PLACEHOLDER

    if column.compact:
        body = fmtCompact(abs(value), column.decimals)
    else:
        body = f"{abs(value):,.{column.decimals}f}"

    # don't show "-0.00" when the negative part was rounded away
    neg = "-" if value < 0 and any(c in "123456789" for c in body) else ""

    return f"{neg}{column.prefix}{body}{column.postfix}"


def colorFor(value: CellValue, column: Column) -> str:
    if column.style is not None:
        return column.style

    if not column.signed or not isfinite(value):
        return ""

    return TREND_STYLES.get(sign(value), "")  # type: ignore[arg-type]


def trendOf(value: CellValue, previous: CellValue) -> Sign:
    """Direction of change from 'previous' to 'value', 0 if either isn't a number."""
    if isfinite(value) and isfinite(previous):
        return sign(value - previous)  # type: ignore[operator]

    return 0


def joinStyles(*styles: str) -> str:
    return " ".join(s for s in styles if s)


def highlightChange(
    new: str, old: str | None, width: int, trend: Sign, style: str = ""
) -> Fragments:
    """Right-align 'new' to 'width' and colour the part that changed from 'old'.

    - different lengths: the whole new value takes the trend colour
    - same lengths: colour from the first differing character to the end
    - identical, no previous, or no trend: base style only

    Only the value is coloured, never the padding.
    """
    padding = " " * max(0, width - len(new))
    frags: Fragments = [("", padding)] if padding else []

    trendStyle = TREND_STYLES.get(trend)
    if old is None or trendStyle is None or new == old:
        return frags + [(style, new)]

    colored = joinStyles(style, trendStyle)
    if len(new) != len(old):
        return frags + [(colored, new)]

    start = next(i for i, (a, b) in enumerate(zip(new, old)) if a != b)
    if start:
        frags.append((style, new[:start]))

    frags.append((colored, new[start:]))

    return frags


def renderCell(
    column: Column, value: CellValue, width: int, previousRow: Row | None = None
) -> Fragments:
    """Format, pad, and colour one cell."""
    text = formatValue(value, column)
    style = colorFor(value, column)

    if column.highlight and previousRow is not None:
        prev = previousRow.get(column.label)
        return highlightChange(
            text, formatValue(prev, column), width, trendOf(value, prev), style
        )

    padding = " " * max(0, width - len(text))
    if padding:
        return [("", padding), (style, text)]

    return [(style, text)]


def measureColumns(
    table: Table, columns: tuple[Column, ...] = COLUMNS
) -> dict[str, int]:
    """Max width per column across the header label and every formatted cell."""
    widths = {c.label: len(c.label) for c in columns}
    for row in table:
        for c in columns:
            widths[c.label] = max(widths[c.label], len(formatValue(row.get(c.label), c)))

    return widths
