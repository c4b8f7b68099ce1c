"""Signal & insight scoring core for the trading dashboard."""

__version__ = "0.1.0"
