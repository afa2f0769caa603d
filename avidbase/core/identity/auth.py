"""End-user authentication against Avidbase."""
from __future__ import annotations
import logging

from ..validators import is_email_address
from .client import ACCESS_TOKEN_HEADER, SUCCESS_STATUS, AvidbaseClient
from .exceptions import AccessTokenMissingError, AvidbaseAPIError, MissingInputError
from .models import AuthOutput

logger = logging.getLogger(__name__)

AUTH_PATH = "/v1/auth"


def build_auth_payload(account_id: str, identifier: str, password: str) -> dict:
    """Build the login body, sending the identifier as email or username.

    Raises:
        MissingInputError: If account, identifier or password is empty
    """
    if not account_id or not identifier or not password:
        raise MissingInputError("account, email/username or password is missing")

    payload = {"account_uuid": account_id, "password": password}
    if is_email_address(identifier):
        payload["email"] = identifier
    else:
        payload["username"] = identifier
    return payload


class AuthService:
    """Service for logging end users in and out."""

    def __init__(self, client: AvidbaseClient):
        """Initialize auth service.

        Args:
            client: Avidbase client; receives the user token on login
        """
        self.client = client

    def authenticate(self, identifier: str, password: str) -> AuthOutput:
        """Authenticate a user with email/username and password.

        The returned access token is stored on the client as the user
        token, so services created with auth="user" act as this user.

        Args:
            identifier: Email address or username
            password: Password

        Returns:
            Authenticated identity, permissions and access token

        Raises:
            MissingInputError: If account, identifier or password is empty
            AvidbaseAPIError: If the API rejects the credentials
            AccessTokenMissingError: If no token header is returned
            ResponseDecodeError: If the body cannot be decoded
        """
        payload = build_auth_payload(self.client.account_id, identifier, password)
        resp = self.client.send("POST", AUTH_PATH, json=payload)

        if resp.status_code != SUCCESS_STATUS:
            logger.info("Authentication failed for '%s' (status %s)", identifier, resp.status_code)
            raise AvidbaseAPIError(resp.status_code, resp.text, resp.url)

        token = resp.headers.get(ACCESS_TOKEN_HEADER, "")
        if not token:
            raise AccessTokenMissingError("access token missing from authentication response")

        output = AuthOutput.from_dict(self.client.decode_json(resp), token)
        self.client.set_user_token(token)
        logger.info("User '%s' authenticated (id=%s)", identifier, output.user.id)
        return output

    def logout(self) -> None:
        """Forget the user token held by the client."""
        self.client.clear_user_token()
