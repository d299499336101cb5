"""
Trainer - Backend API.

HTTP/SSE client, typed response mirrors and the error taxonomy.
"""

from trainer.api.client import TrainerAPIClient
from trainer.api.errors import (
    APIError,
    AuthenticationRequiredError,
    DecodingError,
    ForbiddenError,
    HTTPStatusError,
    NetworkError,
    ServerReportedError,
    UnauthorizedError,
    VersionConflictError,
)

__all__ = [
    "TrainerAPIClient",
    "APIError",
    "AuthenticationRequiredError",
    "DecodingError",
    "ForbiddenError",
    "HTTPStatusError",
    "NetworkError",
    "ServerReportedError",
    "UnauthorizedError",
    "VersionConflictError",
]
