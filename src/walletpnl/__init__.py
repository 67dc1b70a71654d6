"""Wallet portfolio P&L reconstruction service."""

__version__ = "0.1.0"
