"""Low-level HTTP client for the Avidbase API.

Handles account credentials, machine/user token management, and HTTP
operations.
"""
from __future__ import annotations
import json as jsonlib
import logging
import threading
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from .exceptions import (
    AvidbaseAPIError,
    MissingInputError,
    NotAuthenticatedError,
    RequestBuildError,
    ResponseDecodeError,
    TokenAcquisitionError,
    TransportError,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5
ACCESS_TOKEN_HEADER = "Access-Token"
SUCCESS_STATUS = 200

BASE_URLS = {
    "production": "https://api.avidbase.com",
    "development": "https://dev-api.avidbase.com",
}
_ENVIRONMENT_ALIASES = {
    "prod": "production",
    "dev": "development",
}

AUTH_MACHINE = "machine"
AUTH_USER = "user"


def resolve_base_url(environment: str = "production", base_url: Optional[str] = None) -> str:
    """Return the API root for an environment name, or the explicit override.

    Raises:
        ValueError: If environment is not production or development
    """
    if base_url:
        return base_url.rstrip("/")
    key = (environment or "").strip().lower()
    key = _ENVIRONMENT_ALIASES.get(key, key)
    if key not in BASE_URLS:
        raise ValueError(f"Unknown Avidbase environment '{environment}' (expected one of: {', '.join(BASE_URLS)})")
    return BASE_URLS[key]


def quote_path_id(value: str, what: str = "user id") -> str:
    """URL-quote an id used as a path segment.

    Raises:
        MissingInputError: If value is empty
    """
    if not value or not str(value).strip():
        raise MissingInputError(f"{what} is missing")
    return quote(str(value), safe="")


class AvidbaseClient:
    """HTTP client for the Avidbase API with lazy machine token management.

    Features:
    - Machine token acquired on first use from the account API key
    - Token rotation from the Access-Token response header
    - One re-acquisition and replay when a machine token is rejected (401)
    - Centralized error handling

    Usage:
        client = AvidbaseClient("acct-123", "api-key", environment="development")
        response = client.get("/v1/user")
    """

    def __init__(
        self,
        account_id: str,
        api_key: str,
        environment: str = "production",
        base_url: Optional[str] = None,
    ):
        """Initialize Avidbase client.

        No network call is made and credentials are not validated here.

        Args:
            account_id: Account (tenant) identifier
            api_key: API key exchanged for the machine access token
            environment: "production" or "development"
            base_url: Explicit API root, overrides environment
        """
        self._account_id = account_id or ""
        self._api_key = api_key or ""
        self.base_url = resolve_base_url(environment, base_url)
        self._machine_token: Optional[str] = None
        self._user_token: Optional[str] = None
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, config) -> "AvidbaseClient":
        """Build a client from an AvidbaseConfig."""
        return cls(config.account_id, config.api_key, base_url=config.resolved_base_url)

    def __repr__(self) -> str:
        return (
            f"AvidbaseClient(account_id={self._account_id!r}, base_url={self.base_url!r}, "
            f"machine_token={'***' if self._machine_token else None}, "
            f"user_token={'***' if self._user_token else None})"
        )

    @property
    def account_id(self) -> str:
        return self._account_id

    # ─────────────────────────────────────────────────────────────────────
    # Token state
    # ─────────────────────────────────────────────────────────────────────
    @property
    def machine_token(self) -> Optional[str]:
        with self._lock:
            return self._machine_token

    @property
    def user_token(self) -> Optional[str]:
        with self._lock:
            return self._user_token

    @property
    def is_logged_in(self) -> bool:
        return self.user_token is not None

    def has_machine_token(self) -> bool:
        return self.machine_token is not None

    def set_machine_token(self, token: Optional[str]) -> None:
        with self._lock:
            self._machine_token = token or None

    def set_user_token(self, token: Optional[str]) -> None:
        with self._lock:
            self._user_token = token or None

    def clear_machine_token(self) -> None:
        self.set_machine_token(None)

    def clear_user_token(self) -> None:
        self.set_user_token(None)

    def ensure_machine_token(self) -> str:
        """Return the machine token, acquiring it with the API key if absent.

        Returns:
            Machine access token

        Raises:
            TokenAcquisitionError: If credentials are missing, the call fails,
                the status is not 200, or no token header is returned
        """
        with self._lock:
            if self._machine_token:
                return self._machine_token
            token = self._acquire_machine_token()
            self._machine_token = token
            return token

    def _acquire_machine_token(self) -> str:
        """Exchange the API key for a machine access token."""
        if not self._account_id or not self._api_key:
            raise TokenAcquisitionError("account id or api key is missing")

        path = f"/v1/account/{quote_path_id(self._account_id, 'account id')}/token"
        try:
            resp = self.send("POST", path, json={"api_key": self._api_key})
        except (TransportError, RequestBuildError) as exc:
            logger.warning("Machine token request failed for account %s: %s", self._account_id, exc)
            raise TokenAcquisitionError(str(exc)) from exc

        if resp.status_code != SUCCESS_STATUS:
            logger.warning(
                "Machine token request rejected for account %s (status %s)",
                self._account_id,
                resp.status_code,
            )
            raise TokenAcquisitionError(resp.text, resp.status_code)

        token = resp.headers.get(ACCESS_TOKEN_HEADER, "")
        if not token:
            raise TokenAcquisitionError("response carried no access token", resp.status_code)

        logger.info("Acquired machine access token for account %s", self._account_id)
        return token

    def _token_for(self, auth: str) -> str:
        if auth == AUTH_MACHINE:
            return self.ensure_machine_token()
        if auth == AUTH_USER:
            token = self.user_token
            if not token:
                raise NotAuthenticatedError("No user is logged in - call AuthService.authenticate first")
            return token
        raise ValueError(f"Unknown auth kind '{auth}' (expected '{AUTH_MACHINE}' or '{AUTH_USER}')")

    def _rotate_token(self, auth: str, resp: requests.Response) -> None:
        """Store a fresher token announced in the response header."""
        fresh = resp.headers.get(ACCESS_TOKEN_HEADER, "")
        if not fresh:
            return
        with self._lock:
            if auth == AUTH_MACHINE:
                changed = fresh != self._machine_token
                self._machine_token = fresh
            else:
                changed = fresh != self._user_token
                self._user_token = fresh
        if changed:
            logger.debug("Rotated %s access token from response header", auth)

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────
    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def send(
        self,
        method: str,
        path: str,
        json: Any = None,
        token: Optional[str] = None,
    ) -> requests.Response:
        """Issue one HTTP call without status handling.

        Args:
            method: HTTP method (GET, POST, PUT)
            path: API endpoint path (e.g., "/v1/user")
            json: JSON payload
            token: Access token to send, if any

        Returns:
            Response object

        Raises:
            RequestBuildError: If the payload cannot be JSON-encoded
            TransportError: On connection errors and timeouts
        """
        url = self.url_for(path)
        headers: Dict[str, str] = {"Accept": "application/json"}
        if token:
            headers[ACCESS_TOKEN_HEADER] = token

        kwargs: Dict[str, Any] = {"headers": headers, "timeout": REQUEST_TIMEOUT}
        if json is not None:
            try:
                kwargs["data"] = jsonlib.dumps(json)
            except (TypeError, ValueError) as exc:
                raise RequestBuildError(f"Unable to JSON encode request for {method} {path}: {exc}") from exc
            headers["Content-Type"] = "application/json"

        http_call = getattr(requests, method.lower())
        try:
            return http_call(url, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"Unable to make {method} call: {exc}", url) from exc

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        auth: str = AUTH_MACHINE,
    ) -> requests.Response:
        """Execute an authenticated request.

        The token for ``auth`` is attached as the Access-Token header. A
        rotated token in the response is stored whatever the status. When a
        machine token is rejected with 401 it is re-acquired and the call is
        replayed once, provided the client has an api key to re-acquire with.

        Args:
            method: HTTP method
            path: API endpoint path
            json: JSON payload
            auth: "machine" or "user"

        Returns:
            Response object with status 200

        Raises:
            TokenAcquisitionError: If no machine token can be obtained
            NotAuthenticatedError: If auth is "user" and nobody is logged in
            AvidbaseAPIError: On non-200 status
        """
        token = self._token_for(auth)
        resp = self.send(method, path, json=json, token=token)
        self._rotate_token(auth, resp)

        # Without an api key a rejected token cannot be replaced; keep it and
        # report the 401.
        if resp.status_code == 401 and auth == AUTH_MACHINE and self._api_key:
            logger.warning("Machine access token rejected on %s %s, re-acquiring once", method, path)
            self.clear_machine_token()
            token = self._token_for(auth)
            resp = self.send(method, path, json=json, token=token)
            self._rotate_token(auth, resp)

        self._handle_error(resp)
        return resp

    def get(self, path: str, auth: str = AUTH_MACHINE) -> requests.Response:
        """Execute GET request with automatic authentication."""
        return self.request("GET", path, auth=auth)

    def post(self, path: str, json: Any = None, auth: str = AUTH_MACHINE) -> requests.Response:
        """Execute POST request with automatic authentication."""
        return self.request("POST", path, json=json, auth=auth)

    def put(self, path: str, json: Any = None, auth: str = AUTH_MACHINE) -> requests.Response:
        """Execute PUT request with automatic authentication."""
        return self.request("PUT", path, json=json, auth=auth)

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            AvidbaseAPIError: If response status is not 200
        """
        if resp.status_code != SUCCESS_STATUS:
            logger.info("Avidbase call failed: %s %s", resp.status_code, resp.url)
            raise AvidbaseAPIError(resp.status_code, resp.text, resp.url)

    @staticmethod
    def decode_json(resp: requests.Response) -> Any:
        """Decode a JSON response body.

        Raises:
            ResponseDecodeError: If the body is not valid JSON
        """
        try:
            return resp.json()
        except ValueError as exc:
            raise ResponseDecodeError(f"Unable to decode response body: {exc}", resp.url, resp.text) from exc


# ─────────────────────────────────────────────────────────────────────────────
# Factories
# ─────────────────────────────────────────────────────────────────────────────
def initialize(
    account_id: str,
    api_key: str,
    environment: str = "production",
    base_url: Optional[str] = None,
) -> AvidbaseClient:
    """Create a client for an account.

    Each client owns its own tokens; create one per logical session.
    """
    return AvidbaseClient(account_id, api_key, environment=environment, base_url=base_url)


def create_client_with_token(
    account_id: str,
    token: str,
    environment: str = "production",
    base_url: Optional[str] = None,
    api_key: str = "",
) -> AvidbaseClient:
    """Create a client holding a machine token obtained elsewhere.

    Without an api_key the token cannot be re-acquired: a 401 is raised as
    AvidbaseAPIError and the token is left in place.
    """
    client = AvidbaseClient(account_id, api_key, environment=environment, base_url=base_url)
    client.set_machine_token(token)
    return client
