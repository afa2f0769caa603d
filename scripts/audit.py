"""Signed audit trail for Avidbase CLI operations.

Each event is one JSON line in ``AUDIT_LOG_FILE``. When a signing key is
configured the line carries an HMAC-SHA256 of its canonical JSON. A failed
operation records the error class, the Avidbase status code and the endpoint
taken from the raised AvidbaseError.

Usage:
    python scripts/audit.py    # verify signatures, list failures by status
"""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import os
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Iterator, Literal

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "user-events.jsonl"

EventType = Literal["login", "user_create", "user_update", "token_acquire"]

# Dropped from details before writing.
SECRET_DETAIL_KEYS = frozenset({"password", "api_key", "access_token", "token"})


def _signing_key() -> bytes:
    """Key from AUDIT_LOG_SIGNING_KEY, else the file named by AUDIT_LOG_SIGNING_KEY_FILE."""
    key = os.environ.get("AUDIT_LOG_SIGNING_KEY")
    if key is None:
        key_file = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
        key = Path(key_file).read_text(encoding="utf-8") if key_file else ""
    return key.strip().encode("utf-8")


def _signature(event: dict[str, Any], key: bytes) -> str:
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def failure_details(error: BaseException) -> dict[str, Any]:
    """Describe a failed Avidbase call.

    ``status_code`` is present when the error carries one (AvidbaseAPIError,
    UserNotFoundError, TokenAcquisitionError after a non-200 reply) and
    ``endpoint`` when the failing URL is known.
    """
    details: dict[str, Any] = {"error": type(error).__name__, "message": str(error)}
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        details["status_code"] = status_code
    endpoint = getattr(error, "endpoint", "")
    if endpoint:
        details["endpoint"] = endpoint
    return details


def log_user_event(
    event_type: EventType,
    subject: str,
    *,
    operator: str = "system",
    account: str = "",
    details: dict[str, Any] | None = None,
    error: BaseException | None = None,
) -> None:
    """Append one event to the audit trail.

    Args:
        event_type: Operation performed (login, user_create, user_update, ...)
        subject: User id, username or email affected by the operation
        operator: Who performed the operation
        account: Avidbase account the operation ran against
        details: Additional context such as the changed fields
        error: Exception that made the operation fail; marks the event as
            unsuccessful and adds failure_details(error)
    """
    recorded = {key: value for key, value in (details or {}).items() if key not in SECRET_DETAIL_KEYS}
    if error is not None:
        recorded.update(failure_details(error))

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "account": account,
        "subject": subject,
        "operator": operator,
        "success": error is None,
        "details": recorded,
    }
    key = _signing_key()
    if key:
        event["signature"] = _signature(event, key)

    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)
    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")
    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_user_event(event_type: EventType, subject: str, **kwargs: Any) -> bool:
    """log_user_event that reports failures on stderr instead of raising.

    Returns:
        True if the event was written
    """
    try:
        log_user_event(event_type, subject, **kwargs)
    except (OSError, TypeError, ValueError) as e:
        print(f"[audit] Warning: Failed to log {event_type} event for {subject}: {e}", file=sys.stderr)
        return False
    return True


def _read_events() -> Iterator[dict[str, Any] | None]:
    """Yield each logged event, or None for a line that is not a JSON object."""
    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                yield None
                continue
            yield event if isinstance(event, dict) else None


def verify_audit_log() -> tuple[int, int]:
    """Check every signature in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    key = _signing_key()
    total = valid = 0
    for event in _read_events():
        total += 1
        if event is None or not key:
            continue
        stored = event.pop("signature", "")
        if isinstance(stored, str) and stored and hmac.compare_digest(stored, _signature(event, key)):
            valid += 1
    return total, valid


def failures_by_status() -> Counter:
    """Count failed events per (event_type, status_code).

    status_code is None for failures without an HTTP reply, such as
    transport errors.
    """
    counts: Counter = Counter()
    if not AUDIT_LOG_FILE.exists():
        return counts
    for event in _read_events():
        if event is None or event.get("success", True):
            continue
        details = event.get("details")
        if not isinstance(details, dict):
            details = {}
        counts[(event.get("event_type"), details.get("status_code"))] += 1
    return counts


if __name__ == "__main__":
    total, valid = verify_audit_log()
    print(f"Audit log: {valid}/{total} events with valid signatures")
    for (event_type, status_code), count in sorted(failures_by_status().items(), key=str):
        print(f"  failed {event_type} (status {status_code or 'n/a'}): {count}")
    sys.exit(0 if total == valid else 1)
