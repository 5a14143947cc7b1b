"""Tests for pticker.engine.primitives: pure types and helpers."""
import math

import pytest

from pticker.engine.primitives import (
    MarketState,
    Position,
    SymbolConfig,
    decimalPlaces,
    isfinite,
    nan,
    sign,
)


class TestMarketStateParse:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("PRE", MarketState.PRE),
            ("pre", MarketState.PRE),
            ("POST", MarketState.POST),
            ("REGULAR", MarketState.REGULAR),
            ("CLOSED", MarketState.CLOSED),
            ("PREPRE", MarketState.CLOSED),
            ("POSTPOST", MarketState.CLOSED),
            ("", MarketState.CLOSED),
            (None, MarketState.CLOSED),
        ],
    )
    def test_parse(self, raw, expected):
        assert MarketState.parse(raw) is expected


class TestSign:
    @pytest.mark.parametrize("x,expected", [(5, 1), (0.0001, 1), (0, 0), (-0.0, 0), (-3, -1)])
    def test_sign(self, x, expected):
        assert sign(x) == expected


class TestIsfinite:
    @pytest.mark.parametrize("x", [0, 1.5, -2])
    def test_numbers(self, x):
        assert isfinite(x)

    @pytest.mark.parametrize("x", [None, "1.0", nan, math.inf, -math.inf, True])
    def test_not_numbers(self, x):
        assert not isfinite(x)


class TestPosition:
    def test_cost(self):
        assert Position(amount=2.5, price=10).cost == 25.0

    def test_symbol_config_defaults_empty(self):
        cfg = SymbolConfig("AAPL")
        assert cfg.positions == ()
        assert cfg.alerts == ()


@pytest.mark.parametrize(
    "x,expected",
    [
        (100.0, 0),
        (1_500_000, 0),
        (31250.5, 1),
        (65432.17, 2),
        (0.00002, 5),
        (0.000021, 6),
        (0.0, 0),
        (math.inf, 0),
        (nan, 0),
    ],
)
def test_decimalPlaces(x, expected):
    assert decimalPlaces(x) == expected
