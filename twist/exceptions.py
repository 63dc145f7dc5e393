"""
Exception hierarchy for the twist package.
"""

from typing import Optional


class TwistError(Exception):
    """Base exception for all library errors.

    ``phase`` is set when the error was raised inside a chunked media upload
    and names the step (INIT, APPEND or FINALIZE) that failed.
    """

    def __init__(self, message: str, *, phase: Optional[str] = None):
        super().__init__(message)
        self.phase = phase


class NetworkError(TwistError):
    """Raised when no HTTP response was received (DNS, reset, timeout)."""


class RemoteApiError(TwistError):
    """Raised when the API answers with a status outside 2xx."""

    def __init__(self, status: int, body: str, *, phase: Optional[str] = None):
        super().__init__(f"Twitter API returned HTTP {status}: {body}", phase=phase)
        self.status = status
        self.body = body


class ProtocolError(TwistError):
    """Raised when a response lacks a field the protocol requires."""


class InvalidStateError(TwistError):
    """Raised when an operation is called in a state that cannot serve it."""
