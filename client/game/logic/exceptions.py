"""Typed client-side errors.

Every error raised by the table client derives from ClientError so callers
can catch the whole family at the UI boundary. None of them is fatal: each
one maps to a recoverable state (re-select, retry join, wait).
"""


class ClientError(Exception):
    """Base exception for table-client errors."""


class StaleSelectionError(ClientError):
    """A user choice no longer matches a concrete tile in the current hand.

    Raised instead of sending a command built from an outdated snapshot.
    The user is expected to choose again from the refreshed options.
    """


class ActionNotAvailableError(ClientError):
    """The requested action is not exposed in the current phase and capabilities."""


class BootstrapError(ClientError):
    """Room create/join request failed at the transport or HTTP level."""


class JoinInFlightError(ClientError):
    """A join request is already pending; duplicate submissions are refused."""
