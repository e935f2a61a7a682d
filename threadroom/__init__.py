"""Threadroom - turn chat threads into discussions with /discuss."""

__version__ = "0.1.0"
