"""Cryptofolio - paper trading portfolio tracker for crypto assets."""

__version__ = "1.0.0"
