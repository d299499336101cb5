"""
API errors.

Everything the HTTP client raises derives from APIError, and every APIError
carries a human-readable message: stores show str(error) to the user as-is.
"""


class APIError(Exception):
    """Base class for trainer backend failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NetworkError(APIError):
    """Transport failure: connection refused, DNS, timeout."""


class DecodingError(APIError):
    """Response body was not valid JSON or did not match the expected shape."""


class AuthenticationRequiredError(APIError):
    """No session token available for an authenticated call."""

    def __init__(self, message: str = "Please sign in to access this feature"):
        super().__init__(message)


class HTTPStatusError(APIError):
    """Non-2xx response."""

    def __init__(self, status_code: int, message: str | None = None):
        super().__init__(message or f"HTTP error: {status_code}")
        self.status_code = status_code


class UnauthorizedError(HTTPStatusError):
    def __init__(self, message: str | None = None):
        super().__init__(401, message or "Authentication token is invalid or expired")


class ForbiddenError(HTTPStatusError):
    def __init__(self, message: str | None = None):
        super().__init__(403, message or "Access denied - insufficient permissions")


class VersionConflictError(HTTPStatusError):
    """409 from an optimistic-concurrency command; the server's version is attached."""

    def __init__(self, message: str | None = None, current_payload_version: int | None = None):
        super().__init__(409, message or "Version conflict")
        self.current_payload_version = current_payload_version


class ServerReportedError(APIError):
    """2xx response whose body says success=false."""
