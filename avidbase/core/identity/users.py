"""Avidbase user management operations."""
from __future__ import annotations
import logging
from typing import List

from .client import AUTH_MACHINE, AUTH_USER, AvidbaseClient, quote_path_id
from .exceptions import AvidbaseAPIError, ResponseDecodeError, UserNotFoundError
from .models import Identity, UserInput

logger = logging.getLogger(__name__)

USERS_PATH = "/v1/user"


class UserService:
    """Service for managing Avidbase users."""

    def __init__(self, client: AvidbaseClient, auth: str = AUTH_MACHINE):
        """Initialize user service.

        Args:
            client: Avidbase client holding the credentials and tokens
            auth: Token used for calls, "machine" (API key) or "user"
                (the session of a logged-in user)
        """
        if auth not in (AUTH_MACHINE, AUTH_USER):
            raise ValueError(f"Unknown auth kind '{auth}' (expected '{AUTH_MACHINE}' or '{AUTH_USER}')")
        self.client = client
        self.auth = auth

    def list_users(self) -> List[Identity]:
        """Return all users of the account, in the order sent by the API.

        Returns:
            List of users (empty when the account has none)
        """
        resp = self.client.get(USERS_PATH, auth=self.auth)
        payload = self.client.decode_json(resp)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ResponseDecodeError(
                f"Expected a list of users, got {type(payload).__name__}", resp.url, resp.text
            )
        return [Identity.from_dict(item) for item in payload]

    def get_user(self, user_id: str) -> Identity:
        """Return a single user.

        Args:
            user_id: User ID

        Returns:
            User representation

        Raises:
            UserNotFoundError: If the API answers 404
        """
        path = f"{USERS_PATH}/{quote_path_id(user_id)}"
        try:
            resp = self.client.get(path, auth=self.auth)
        except AvidbaseAPIError as exc:
            if exc.status_code == 404:
                raise UserNotFoundError(exc.status_code, exc.message, exc.endpoint) from exc
            raise
        return Identity.from_dict(self.client.decode_json(resp))

    def create_user(self, user: UserInput) -> Identity:
        """Create a new user.

        Only the fields set on ``user`` are sent.

        Args:
            user: Fields of the new user

        Returns:
            The created user as stored by the backend
        """
        resp = self.client.post(USERS_PATH, json=user.to_payload(), auth=self.auth)
        identity = Identity.from_dict(self.client.decode_json(resp))
        logger.info("Created user %s (id=%s)", identity.username or identity.email, identity.id)
        return identity

    def update_user(self, user_id: str, user: UserInput) -> Identity:
        """Update an existing user.

        Fields left UNSET are omitted and keep their value; fields set to
        None are cleared.

        Args:
            user_id: User ID
            user: Fields to change

        Returns:
            The updated user

        Raises:
            UserNotFoundError: If the API answers 404
        """
        path = f"{USERS_PATH}/{quote_path_id(user_id)}"
        try:
            resp = self.client.put(path, json=user.to_payload(), auth=self.auth)
        except AvidbaseAPIError as exc:
            if exc.status_code == 404:
                raise UserNotFoundError(exc.status_code, exc.message, exc.endpoint) from exc
            raise
        identity = Identity.from_dict(self.client.decode_json(resp))
        logger.info("Updated user %s (fields=%s)", identity.id, ",".join(user.provided_fields()))
        return identity

    def find_user_by_username(self, username: str) -> Identity | None:
        """Return the user that exactly matches the username, or None."""
        for identity in self.list_users():
            if identity.username == username:
                return identity
        return None
