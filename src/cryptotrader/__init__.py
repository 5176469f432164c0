"""Command-line crypto portfolio manager: balances, conversions and diversified trades."""

__version__ = "0.1.0"
