"""
Exception classes for the CDP Python client.

Exception Hierarchy:
    CdpError (root)
    ├── KeyFormatError
    ├── SigningError
    ├── TransportError
    ├── ResponseShapeError
    └── ConfigurationError
"""

from typing import Optional


class CdpError(Exception):
    """Base exception for all CDP client errors."""

    pass


class KeyFormatError(CdpError):
    """Raised when a configured credential cannot be parsed or is inconsistent.

    Fatal at construction time and not retryable. Covers unparseable PEM,
    bad base64, unsupported key lengths or curves, and Ed25519 bundles whose
    embedded public key does not match the seed.
    """

    pass


class SigningError(CdpError):
    """Raised when producing a token signature fails.

    Indicates a corrupted key or an algorithm mismatch.
    """

    pass


class TransportError(CdpError):
    """Raised when the API returns a non-2xx status or the request fails.

    Attributes:
        status_code: HTTP status, or None for network-level failures.
        body: Raw response text, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"TransportError [{self.status_code}]: {self.args[0]}"
        return f"TransportError: {self.args[0]}"


class ResponseShapeError(CdpError):
    """Raised when a 2xx response is missing a field or has a malformed one."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ConfigurationError(CdpError):
    """Raised when configuration is missing or invalid.

    This includes missing environment variables and unknown networks.
    """

    pass
