"""
Error types raised by the IS Lead tools and the Twenty CRM client.
"""


class IsLeadError(Exception):
    """Base class for IS Lead errors."""


class ValidationError(IsLeadError):
    """Input failed validation. Raised before any request is sent."""


class NotFoundError(IsLeadError):
    """The requested IS Lead does not exist in the CRM."""


class RemoteError(IsLeadError):
    """Transport, authentication or unexpected CRM failure."""
