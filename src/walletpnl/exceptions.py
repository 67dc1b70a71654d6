"""Custom exceptions for the wallet P&L service.

Only ConfigurationError and InvalidRequestError ever reach the HTTP layer.
UpstreamError is raised by collaborator clients and converted to
"no data" at the component boundary that called them.
"""


class PnlError(Exception):
    """Base exception for all P&L service errors."""


class ConfigurationError(PnlError):
    """Raised when a required external credential or setting is missing."""


class InvalidRequestError(PnlError):
    """Raised when a request lacks a required field (e.g. wallet address)."""


class UpstreamError(PnlError):
    """Raised when an external service times out, errors, or returns junk."""
