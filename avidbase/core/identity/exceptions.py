"""Avidbase-specific exceptions for error handling."""
from __future__ import annotations
from typing import Optional


class AvidbaseError(Exception):
    """Base exception for all Avidbase operations."""
    pass


class MissingInputError(AvidbaseError, ValueError):
    """A required argument (account, identifier, password, user id) is empty."""
    pass


class RequestBuildError(AvidbaseError):
    """Request payload could not be encoded."""
    pass


class TransportError(AvidbaseError):
    """Network failure before a response was received.

    Attributes:
        endpoint: URL that was being called
    """

    def __init__(self, message: str, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"{endpoint}: {message}")


class AvidbaseAPIError(AvidbaseError):
    """Non-success HTTP status from the Avidbase API.

    Attributes:
        status_code: HTTP status code
        message: Raw response body text
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class UserNotFoundError(AvidbaseAPIError):
    """User lookup failed - id does not exist."""
    pass


class ResponseDecodeError(AvidbaseError):
    """Response body is not valid JSON or has an unexpected shape."""

    def __init__(self, message: str, endpoint: str = "", body: str = ""):
        self.endpoint = endpoint
        self.body = body
        super().__init__(f"{endpoint}: {message}" if endpoint else message)


class TokenAcquisitionError(AvidbaseError):
    """Machine access token could not be obtained with the API key.

    Attributes:
        status_code: HTTP status of the token call, None when no response
        message: Response body text or failure reason
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(f"Unable to acquire machine access token: {message}")
        else:
            super().__init__(f"Unable to acquire machine access token: [{status_code}] {message}")


class AccessTokenMissingError(AvidbaseError):
    """Authentication succeeded but the response carried no access token."""
    pass


class NotAuthenticatedError(AvidbaseError):
    """Operation requires a user session token but no user is logged in."""
    pass
