"""Metrics and containers, parsers that produce them, a module registry and logging setup."""

__version__ = "0.1.0"