"""
biddingcrease/errors.py - Exception types shared across the client.
"""


class BiddingCreaseError(Exception):
    """Base class for every error raised by this package."""


class APIError(BiddingCreaseError):
    """Raised when the auction server rejects a request or can't be reached.

    ``message`` is the server's own ``message`` field when the response body
    carries one, otherwise an operation-specific fallback. ``status_code`` is
    None for transport failures (refused connection, timeout).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}

    def __repr__(self) -> str:
        return f"APIError({self.message!r}, status_code={self.status_code})"


class SocketConnectionError(BiddingCreaseError):
    """Raised when the Socket.IO connection can't be established."""
