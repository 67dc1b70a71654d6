"""HTTP surface for the P&L engine."""

from walletpnl.dashboard.app import create_app

__all__ = ["create_app"]
