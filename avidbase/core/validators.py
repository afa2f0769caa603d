"""Checks applied to identifiers and user fields before they reach Avidbase."""
from __future__ import annotations
import re
from email.utils import parseaddr

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 64
EMAIL_MAX_LENGTH = 254
NAME_MAX_LENGTH = 128

# No "@": a username must never be sent as ``email`` at login.
_USERNAME_PATTERN = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?")
_NAME_FORBIDDEN = frozenset("<>\"`;|$")


def _is_quoted(local: str) -> bool:
    return len(local) > 2 and local.startswith('"') and local.endswith('"')


def is_email_address(value: str) -> bool:
    """Return True when a login identifier parses as a mail address.

    Accepts a bare address (``alice@example.com``), a named one
    (``Alice <alice@example.com>``) and a quoted local part
    (``"john doe"@example.com``). A plain username returns False. Domain
    literals, comments and group syntax are not supported.

    Args:
        value: Login identifier entered by the user

    Returns:
        True if the identifier should be treated as an email address
    """
    candidate = (value or "").strip()
    if not candidate:
        return False
    _, addr = parseaddr(candidate)
    if "@" not in addr:
        return False

    local, domain = addr.rsplit("@", 1)
    if not local or not domain:
        return False
    if any(char.isspace() or char == "@" for char in domain):
        return False
    if not _is_quoted(local) and any(char.isspace() or char in '"@' for char in local):
        return False

    return candidate == addr or candidate.endswith(f"<{addr}>")


def validate_username(raw: str) -> str:
    """Return the trimmed username, or raise ValueError.

    Letters, digits, ".", "-" and "_" are allowed; the first and last
    character must be a letter or digit.
    """
    username = raw.strip()
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValueError(
            f"Username must be {USERNAME_MIN_LENGTH} to {USERNAME_MAX_LENGTH} characters"
        )
    if not _USERNAME_PATTERN.fullmatch(username):
        raise ValueError(
            f"Username {username!r} may only use letters, digits, '.', '-' and '_' "
            "and must start and end with a letter or digit"
        )
    return username


def validate_email(email: str) -> str:
    """Validate an address for storage on a user record.

    Only the bare form is accepted and the domain must contain a dot. The
    local part keeps its case; the domain is lowercased.

    Raises:
        ValueError: If email is not a storable address
    """
    email = email.strip()
    if len(email) > EMAIL_MAX_LENGTH:
        raise ValueError(f"Email must not exceed {EMAIL_MAX_LENGTH} characters")
    if not is_email_address(email) or email.endswith(">"):
        raise ValueError(f"Invalid email address: {email!r}")

    local, domain = email.rsplit("@", 1)
    if "." not in domain.strip("."):
        raise ValueError(f"Email domain {domain!r} must contain a dot")
    return f"{local}@{domain.lower()}"


def validate_name(name: str, label: str) -> str:
    """Collapse whitespace in a first or last name and check it.

    Raises:
        ValueError: If the name is empty, too long or holds markup characters
    """
    name = " ".join(name.split())
    if not name:
        raise ValueError(f"{label} must not be empty")
    if len(name) > NAME_MAX_LENGTH:
        raise ValueError(f"{label} must not exceed {NAME_MAX_LENGTH} characters")
    bad = sorted(set(name) & _NAME_FORBIDDEN)
    if bad:
        raise ValueError(f"{label} contains invalid characters: {''.join(bad)}")
    return name
