"""Price threshold alerts.

Each (symbol, threshold) pair remembers which side of the threshold the last
seen price was on. The first observation only records a baseline, so
restarting the ticker never fires alerts for prices already past a level.
After that, any change of side fires exactly one alert.
"""

from __future__ import annotations

import asyncio
import platform
import shutil
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final, Protocol

from loguru import logger

from pticker.engine.primitives import MaybePrice, Sign, decimalPlaces, sign

DIRECTIONS: Final = {
    1: "gone above",
    -1: "gone below",
    0: "reached",
}

# provider prices sometimes carry float noise (0.30000000000000004)
MAX_PRICE_DIGITS: Final = 8


@dataclass(slots=True, frozen=True)
class AlertEvent:
    symbol: str
    threshold: float
    price: float
    direction: Sign

    @property
    def message(self) -> str:
        # thresholds print exactly as configured; prices keep at least cents
        # and never fewer digits than the threshold they crossed
        levelDigits = decimalPlaces(self.threshold)
        priceDigits = max(2, levelDigits, min(decimalPlaces(self.price), MAX_PRICE_DIGITS))

        level = f"{self.threshold:,.{levelDigits}f}"
        price = f"{self.price:,.{priceDigits}f}"

        return f"{self.symbol} has {DIRECTIONS[self.direction]} {level}: {price}"


class AlertEvaluator:
    """Crossing state for every configured alert threshold.

    State is never reset (except by creating a new evaluator), so removing
    then re-adding a threshold in the config keeps its last known side.
    """

    def __init__(self) -> None:
        # symbol -> threshold -> side of threshold the last price was on
        self.state: defaultdict[str, dict[float, Sign]] = defaultdict(dict)

    def evaluate(
        self, symbol: str, price: MaybePrice, thresholds: Iterable[float]
    ) -> list[AlertEvent]:
        if price is None:
            return []

        events = []
        seen = self.state[symbol]

        # duplicate thresholds share one state entry, so only look at each once
        for threshold in dict.fromkeys(thresholds):
            current = sign(price - threshold)
            prev = seen.get(threshold)
            seen[threshold] = current

            if prev is None or prev == current:
                continue

            events.append(AlertEvent(symbol, threshold, price, current))

        return events


class Notifier(Protocol):
    def notify(self, event: AlertEvent) -> None: ...


class DesktopNotifier:
    """Fire-and-forget desktop notifications.

    Uses ``notify-send`` on Linux and ``osascript`` on macOS. If neither is
    available the alert is only logged.
    """

    def __init__(self, title: str = "pticker") -> None:
        self.title = title
        self.system = platform.system()

        # hold references so running notification tasks aren't garbage collected
        self.tasks: set[asyncio.Task] = set()

    def command(self, event: AlertEvent) -> list[str] | None:
        if self.system == "Darwin" and shutil.which("osascript"):
            body = event.message.replace('"', '\\"')
            return [
                "osascript",
                "-e",
                f'display notification "{body}" with title "{self.title}"',
            ]

        if shutil.which("notify-send"):
            return ["notify-send", self.title, event.message]

        return None

    def notify(self, event: AlertEvent) -> None:
        logger.warning("[{}] ALERT: {}", event.symbol, event.message)

        if not (cmd := self.command(event)):
            return

        try:
            task = asyncio.get_running_loop().create_task(self._run(cmd))
        except RuntimeError:
            # not inside an event loop (e.g. synchronous callers), log only
            return

        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

    async def _run(self, cmd: list[str]) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await proc.wait()
        except OSError:
            logger.exception("Desktop notification failed: {}", cmd[0])
