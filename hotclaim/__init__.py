"""Periodic HOT claims for multiple accounts through per-account proxies."""

__version__ = "0.1.0"
