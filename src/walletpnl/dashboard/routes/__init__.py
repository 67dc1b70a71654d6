"""Route modules for the P&L API."""
