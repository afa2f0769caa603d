"""Avidbase user representations.

Usage:
    # API response -> Identity
    identity = Identity.from_dict({"id": "u-1", "username": "alice"})

    # Partial update: only set fields are sent, None clears a field
    patch = UserInput(email="alice@example.com", last_name=None)
    patch.to_payload()  # {"email": "alice@example.com", "last_name": None}
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from .exceptions import ResponseDecodeError


class _Unset:
    """Marker for a UserInput field that was not provided."""

    _instance: Optional["_Unset"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def _string_field(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ResponseDecodeError(f"User '{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Identity:
    """User record owned by the Avidbase backend."""
    id: str = ""
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    email: str = ""
    country: str = ""
    status: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "Identity":
        """Build an Identity from a decoded JSON object.

        Missing keys default to empty values and unknown keys are ignored.

        Raises:
            ResponseDecodeError: If payload is not a JSON object or a field
                has the wrong type
        """
        if not isinstance(payload, dict):
            raise ResponseDecodeError(f"Expected a user object, got {type(payload).__name__}")
        data = payload.get("data") or {}
        if not isinstance(data, dict):
            raise ResponseDecodeError("User 'data' must be an object")
        return cls(
            id=_string_field(payload, "id"),
            first_name=_string_field(payload, "first_name"),
            last_name=_string_field(payload, "last_name"),
            username=_string_field(payload, "username"),
            email=_string_field(payload, "email"),
            country=_string_field(payload, "country"),
            status=_string_field(payload, "status"),
            data=dict(data),
            created_at=_string_field(payload, "created_at") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the snake_case wire representation."""
        result: Dict[str, Any] = {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "username": self.username,
            "email": self.email,
            "country": self.country,
            "status": self.status,
            "data": dict(self.data),
        }
        if self.created_at is not None:
            result["created_at"] = self.created_at
        return result

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username or self.email or self.id


@dataclass(frozen=True)
class AuthOutput:
    """Result of a successful login."""
    user: Identity
    permissions: Dict[str, bool]
    access_token: str

    @classmethod
    def from_dict(cls, payload: Any, access_token: str) -> "AuthOutput":
        if not isinstance(payload, dict):
            raise ResponseDecodeError(f"Expected an auth object, got {type(payload).__name__}")
        permissions = payload.get("permissions") or {}
        if not isinstance(permissions, dict):
            raise ResponseDecodeError("Auth 'permissions' must be an object")
        for name, granted in permissions.items():
            if not isinstance(granted, bool):
                raise ResponseDecodeError(
                    f"Permission '{name}' must be a boolean, got {type(granted).__name__}"
                )
        return cls(
            user=Identity.from_dict(payload.get("user") or {}),
            permissions=dict(permissions),
            access_token=access_token,
        )

    def has_permission(self, name: str) -> bool:
        return self.permissions.get(name, False)


@dataclass
class UserInput:
    """Fields to send on create or update.

    A field left as UNSET is omitted from the request body. A field set to
    None is sent as JSON null and clears the value on the backend.
    """
    first_name: Optional[str] = UNSET
    last_name: Optional[str] = UNSET
    username: Optional[str] = UNSET
    email: Optional[str] = UNSET
    password: Optional[str] = field(default=UNSET, repr=False)
    data: Optional[Dict[str, Any]] = UNSET

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON body, without the fields that were never set."""
        payload: Dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is UNSET:
                continue
            payload[item.name] = dict(value) if isinstance(value, dict) else value
        return payload

    def is_empty(self) -> bool:
        return all(getattr(self, item.name) is UNSET for item in fields(self))

    def provided_fields(self) -> list[str]:
        """Names of the fields that will be sent."""
        return [item.name for item in fields(self) if getattr(self, item.name) is not UNSET]
