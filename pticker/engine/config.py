"""Process settings and the symbol/position configuration file.

Process settings come from environment variables layered over an optional
``.env.pticker`` file over built-in defaults.

The symbol file is JSON shaped like::

    {
        "AAPL": {"alerts": [180, 200], "positions": [{"amount": 10, "price": 150.5}]},
        "BTC-USD": {"positions": [{"amount": 0.25, "price": 31000}]},
        "GME": [{"amount": 16, "price": 34.98}]
    }

A bare list is accepted as a positions list (the oldest file format).
"""

from __future__ import annotations

import math
import os
import pathlib
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

import orjson
from dotenv import dotenv_values
from loguru import logger

from pticker.engine.primitives import Position, SymbolConfig

ENV_FILE: Final = ".env.pticker"

DEFAULT_ENDPOINT: Final = "https://query1.finance.yahoo.com/v7/finance/quote"

DEFAULTS: Final = dict(
    PTICKER_CONFIG="pticker.json",
    PTICKER_FREQUENCY="10",
    PTICKER_LIMIT_HOURS="0",
    PTICKER_TIMEZONE="US/Eastern",
    PTICKER_TIMEOUT="10",
    PTICKER_ENDPOINT=DEFAULT_ENDPOINT,
    PTICKER_LOGDIR="runlogs",
    PTICKER_LOGLEVEL="WARNING",
)


class ConfigError(Exception):
    """The symbol configuration file can't be read or isn't the right shape."""


def envbool(val: str | None) -> bool:
    return (val or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class TickerSettings:
    # symbol/position JSON file (watched for changes)
    config: pathlib.Path = pathlib.Path(DEFAULTS["PTICKER_CONFIG"])

    # seconds between refreshes; <= 0 means "update once then exit"
    frequency: float = 10.0

    # only update Monday-Friday 04:00-20:00 (in 'timezone')
    limitHours: bool = False
    timezone: str = DEFAULTS["PTICKER_TIMEZONE"]

    # seconds before giving up on a quote request
    timeout: float = 10.0
    endpoint: str = DEFAULT_ENDPOINT

    logdir: pathlib.Path = pathlib.Path(DEFAULTS["PTICKER_LOGDIR"])
    loglevel: str = DEFAULTS["PTICKER_LOGLEVEL"]

    @classmethod
    def fromEnvironment(
        cls, environ: Mapping[str, str] | None = None, envfile: str = ENV_FILE
    ) -> TickerSettings:
        """Build settings from defaults < dotenv file < process environment."""
        found = {
            **DEFAULTS,
            **{k: v for k, v in dotenv_values(envfile).items() if v is not None},
            **(os.environ if environ is None else environ),
        }

        return cls(
            config=pathlib.Path(found["PTICKER_CONFIG"]).expanduser(),
            frequency=float(found["PTICKER_FREQUENCY"]),
            limitHours=envbool(found["PTICKER_LIMIT_HOURS"]),
            timezone=found["PTICKER_TIMEZONE"],
            timeout=float(found["PTICKER_TIMEOUT"]),
            endpoint=found["PTICKER_ENDPOINT"],
            logdir=pathlib.Path(found["PTICKER_LOGDIR"]).expanduser(),
            loglevel=found["PTICKER_LOGLEVEL"].upper(),
        )


def _number(val: Any, what: str) -> float:
    # bool is an int subclass, but "amount: true" is never what someone meant
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        raise ConfigError(f"{what} must be a number, got {val!r}")

    if not math.isfinite(val):
        raise ConfigError(f"{what} must be finite, got {val!r}")

    return float(val)


def _list(spec: dict[str, Any], key: str, symbol: str) -> list[Any]:
    val = spec.get(key)
    if val is None:
        return []

    if not isinstance(val, list):
        raise ConfigError(f"{symbol}: {key} must be a list, got {type(val).__name__}")

    return val


def parseSymbol(symbol: str, spec: Any) -> SymbolConfig:
    """Validate one symbol entry and return its typed config."""
    if isinstance(spec, list):
        spec = dict(positions=spec)
    elif spec is None:
        spec = {}

    if not isinstance(spec, dict):
        raise ConfigError(f"{symbol}: entry must be an object, got {type(spec).__name__}")

    positions = []
    for idx, p in enumerate(_list(spec, "positions", symbol)):
        if not isinstance(p, dict):
            raise ConfigError(f"{symbol}: position {idx} must be an object")

        amount = _number(p.get("amount"), f"{symbol}: position {idx} amount")
        price = _number(p.get("price"), f"{symbol}: position {idx} price")
        if price < 0:
            raise ConfigError(f"{symbol}: position {idx} price can't be negative")

        positions.append(Position(amount=amount, price=price))

    alerts = tuple(
        _number(a, f"{symbol}: alert {idx}")
        for idx, a in enumerate(_list(spec, "alerts", symbol))
    )

    return SymbolConfig(symbol=symbol, positions=tuple(positions), alerts=alerts)


def parseSymbols(
    raw: bytes | str, previous: Mapping[str, SymbolConfig] | None = None
) -> dict[str, SymbolConfig]:
    """Parse the whole symbol file.

    Malformed symbol entries are dropped with a warning; if 'previous' holds
    a config for that symbol, the previous entry is kept instead.
    A file which isn't a JSON object at all raises ConfigError.
    """
    try:
        doc = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON: {e}") from e

    if not isinstance(doc, dict):
        raise ConfigError(f"Top level must be an object, got {type(doc).__name__}")

    previous = previous or {}
    symbols: dict[str, SymbolConfig] = {}
    for name, spec in doc.items():
        symbol = str(name).strip().upper()
        if not symbol:
            logger.warning("Ignoring empty symbol name in config")
            continue

        try:
            symbols[symbol] = parseSymbol(symbol, spec)
        except ConfigError as e:
            if old := previous.get(symbol):
                logger.warning("{} (keeping previous entry)", e)
                symbols[symbol] = old
            else:
                logger.warning("{} (skipping symbol)", e)

    return symbols


def loadSymbols(
    path: pathlib.Path, previous: Mapping[str, SymbolConfig] | None = None
) -> dict[str, SymbolConfig]:
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigError(f"Can't read {path}: {e}") from e

    return parseSymbols(raw, previous)
