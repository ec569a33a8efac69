"""Covenant Gate: wallet-ownership verification for community role grants."""

__version__ = "0.1.0"
