"""pticker: a terminal portfolio ticker with live quotes, gain/loss and price alerts."""

__version__ = "0.3.0"
