"""Avidbase identity API client library.

This package provides a small, testable interface to the Avidbase identity
service.

Architecture:
- client.py: HTTP client with machine token acquisition and rotation
- auth.py: End-user login (email or username + password)
- users.py: User list, lookup, create and update
- models.py: Identity, AuthOutput and partial UserInput
- exceptions.py: Typed exceptions for error handling

Usage:
    from avidbase.core.identity import initialize, AuthService, UserService, UserInput

    client = initialize("acct-123", "api-key", environment="development")

    users = UserService(client)
    alice = users.create_user(UserInput(username="alice", email="alice@example.com"))

    auth = AuthService(client)
    session = auth.authenticate("alice@example.com", "secret")
"""
from .client import (
    AvidbaseClient,
    initialize,
    create_client_with_token,
    resolve_base_url,
    REQUEST_TIMEOUT,
    ACCESS_TOKEN_HEADER,
    BASE_URLS,
    AUTH_MACHINE,
    AUTH_USER,
)
from .exceptions import (
    AvidbaseError,
    MissingInputError,
    RequestBuildError,
    TransportError,
    AvidbaseAPIError,
    UserNotFoundError,
    ResponseDecodeError,
    TokenAcquisitionError,
    AccessTokenMissingError,
    NotAuthenticatedError,
)
from .models import (
    Identity,
    AuthOutput,
    UserInput,
    UNSET,
)
from .auth import AuthService, build_auth_payload
from .users import UserService

__all__ = [
    # Client
    "AvidbaseClient",
    "initialize",
    "create_client_with_token",
    "resolve_base_url",
    "REQUEST_TIMEOUT",
    "ACCESS_TOKEN_HEADER",
    "BASE_URLS",
    "AUTH_MACHINE",
    "AUTH_USER",

    # Exceptions
    "AvidbaseError",
    "MissingInputError",
    "RequestBuildError",
    "TransportError",
    "AvidbaseAPIError",
    "UserNotFoundError",
    "ResponseDecodeError",
    "TokenAcquisitionError",
    "AccessTokenMissingError",
    "NotAuthenticatedError",

    # Models
    "Identity",
    "AuthOutput",
    "UserInput",
    "UNSET",

    # Services
    "AuthService",
    "UserService",
    "build_auth_payload",
]
