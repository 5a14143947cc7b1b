"""Terminal table renderer.

Builds one frame per update cycle:

- bold header line with every column label
- one line per symbol (cells right-aligned, joined by two spaces)
- blank line
- localized timestamp

``frame()`` is pure (returns prompt_toolkit ``FormattedText`` lines) so it can
be tested without a terminal; ``render()`` clears the screen and prints it.
"""
from __future__ import annotations

import datetime
from collections.abc import Callable

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.shortcuts import clear

from pticker.engine.columns import COLUMNS, Column, renderCell, measureColumns
from pticker.engine.primitives import Row, Table

SEPARATOR = "  "


class TableRenderer:
    """Render rows to the terminal.

    Parameters
    ----------
    columns:
        Column definitions in display order.
    output:
        Called once per line (defaults to prompt_toolkit's print_formatted_text).
    clearScreen:
        Called once per frame before any output.
    """

    def __init__(
        self,
        columns: tuple[Column, ...] = COLUMNS,
        output: Callable[[FormattedText], None] | None = None,
        clearScreen: Callable[[], None] | None = None,
    ) -> None:
        self.columns = columns
        self.output = output or print_formatted_text
        self.clearScreen = clearScreen or clear

    def header(self, widths: dict[str, int]) -> FormattedText:
        # header labels pad on the opposite side from data cells, but both
        # use the same width so the columns still line up
        return FormattedText(
            [
                (
                    "bold",
                    SEPARATOR.join(c.label.ljust(widths[c.label]) for c in self.columns),
                )
            ]
        )

    def line(
        self, row: Row, widths: dict[str, int], previousRow: Row | None = None
    ) -> FormattedText:
        frags: list[tuple[str, str]] = []
        for idx, c in enumerate(self.columns):
            if idx:
                frags.append(("", SEPARATOR))

            frags.extend(renderCell(c, row.get(c.label), widths[c.label], previousRow))

        return FormattedText(frags)

    def frame(
        self,
        table: Table,
        previousTable: Table | None,
        now: datetime.datetime,
    ) -> list[FormattedText]:
        widths = measureColumns(table, self.columns)

        lines = [self.header(widths)]
        for index, row in enumerate(table):
            prev = (
                previousTable[index]
                if previousTable and index < len(previousTable)
                else None
            )
            lines.append(self.line(row, widths, prev))

        lines.append(FormattedText([]))
        lines.append(FormattedText([("", now.strftime("%c"))]))

        return lines

    def render(
        self,
        table: Table,
        previousTable: Table | None,
        now: datetime.datetime,
    ) -> None:
        lines = self.frame(table, previousTable, now)

        self.clearScreen()
        for line in lines:
            self.output(line)
