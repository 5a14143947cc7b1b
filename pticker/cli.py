#!/usr/bin/env python3
"""pticker command line entry point.

Usage::

    pticker [CONFIG.json]

Everything else is configured by PTICKER_* environment variables (or a
``.env.pticker`` file in the working directory); see
``pticker.engine.config.TickerSettings``.
"""

import asyncio
import locale  # localized timestamp in the table footer
import pathlib
import sys

import whenever
from loguru import logger

from pticker.engine.config import ConfigError, TickerSettings, loadSymbols
from pticker.engine.ticker import Ticker


def setupLogging(settings: TickerSettings) -> None:
    """Console logging on stderr plus a full TRACE log file per session.

    The console level defaults to WARNING because every frame clears the
    screen, so chatty INFO lines would only flicker.
    """
    now = whenever.ZonedDateTime.now(settings.timezone).py_datetime()
    LOGDIR = settings.logdir / f"{now.year}" / f"{now.month:02}"
    LOGDIR.mkdir(exist_ok=True, parents=True)
    LOG_FILE = str(LOGDIR / f"pticker-{now:%Y-%m-%dT%H-%M-%S}.log")

    logger.remove()
    logger.add(sys.stderr, colorize=True, level=settings.loglevel)
    logger.add(sink=LOG_FILE, level="TRACE", colorize=False)

    logger.info("Logging session to: {}", LOG_FILE)


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    # "%c" timestamps use the user's locale
    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error:
        # LANG names a locale which isn't installed, stay with "C"
        pass

    settings = TickerSettings.fromEnvironment()
    if argv:
        settings.config = pathlib.Path(argv[0]).expanduser()

    setupLogging(settings)

    try:
        symbols = loadSymbols(settings.config)
    except ConfigError as e:
        logger.error("Can't start without a config: {}", e)
        return 1

    logger.info(
        "Tracking {} symbols every {} seconds (hours limited: {})",
        len(symbols),
        settings.frequency,
        settings.limitHours,
    )

    ticker = Ticker(settings, symbols)
    try:
        asyncio.run(ticker.run())
    except KeyboardInterrupt:
        # Control-C pressed
        logger.info("Exiting...")

    return 0


if __name__ == "__main__":
    sys.exit(main())
