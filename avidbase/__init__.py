"""Avidbase identity service client.

To use the client:
    from avidbase import initialize, UserService, AuthService

To load credentials from the environment:
    from avidbase.config import load_settings
"""
from .core.identity import (
    AvidbaseClient,
    AuthService,
    UserService,
    Identity,
    AuthOutput,
    UserInput,
    UNSET,
    AvidbaseError,
    AvidbaseAPIError,
    initialize,
    create_client_with_token,
)

__version__ = "0.1.0"

__all__ = [
    "AvidbaseClient",
    "AuthService",
    "UserService",
    "Identity",
    "AuthOutput",
    "UserInput",
    "UNSET",
    "AvidbaseError",
    "AvidbaseAPIError",
    "initialize",
    "create_client_with_token",
]
