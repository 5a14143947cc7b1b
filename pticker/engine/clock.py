"""Coordinated application clock for consistent time across one update cycle."""
from __future__ import annotations

import dataclasses
from collections.abc import Callable

import whenever


@dataclasses.dataclass
class AppClock:
    """Shared time source updated once per update cycle.

    The scheduler calls tick() at the top of each cycle and both the hours
    gate and the rendered timestamp read the same snapshot.

    'source' exists so tests can pin the time.
    """

    tz: str = "US/Eastern"
    source: Callable[[], whenever.ZonedDateTime] | None = None
    now: whenever.ZonedDateTime = dataclasses.field(init=False)

    def __post_init__(self) -> None:
        self.tick()

    def tick(self) -> None:
        """Advance to current wall-clock time."""
        if self.source:
            self.now = self.source()
        else:
            self.now = whenever.ZonedDateTime.now(self.tz)
