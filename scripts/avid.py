"""Command-line helper for the Avidbase identity API.

This module serves as a CLI wrapper around avidbase.core.identity services.
"""
from __future__ import annotations
import argparse
import json
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from avidbase.core import validators
from avidbase.core.identity import (
    AuthService,
    UserInput,
    UserService,
    initialize,
)
from avidbase.core.identity.exceptions import AvidbaseError
from scripts import audit


def _mask(token: str | None) -> str:
    if not token:
        return "EMPTY"
    return f"***{token[-4:]}" if len(token) > 8 else "***"


def _parse_data(raw: str | None, parser: argparse.ArgumentParser):
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        parser.error(f"--data must be a JSON object: {e}")
    if not isinstance(data, dict):
        parser.error("--data must be a JSON object")
    return data


_OPTION_CHECKS = {
    "first": lambda value: validators.validate_name(value, "First name"),
    "last": lambda value: validators.validate_name(value, "Last name"),
    "username": validators.validate_username,
    "email": validators.validate_email,
}


def _checked(option: str, value: str, parser: argparse.ArgumentParser) -> str:
    check = _OPTION_CHECKS.get(option)
    if check is None:
        return value
    try:
        return check(value)
    except ValueError as e:
        parser.error(f"--{option}: {e}")


def _user_input_from_args(args, parser: argparse.ArgumentParser) -> UserInput:
    """Build a UserInput holding only the options given on the command line.

    Every given option is validated first; a bad value exits through
    parser.error before any HTTP call.
    """
    user = UserInput()
    for attr, option in (
        ("first_name", "first"),
        ("last_name", "last"),
        ("username", "username"),
        ("email", "email"),
        ("password", "password"),
    ):
        value = getattr(args, option, None)
        if value is not None:
            setattr(user, attr, _checked(option, value, parser))
    data = _parse_data(getattr(args, "data", None), parser)
    if data is not None:
        user.data = data
    return user


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Avidbase identity API helper")
    parser.add_argument("--account", default=os.environ.get("AVIDBASE_ACCOUNT_ID"))
    parser.add_argument("--api-key", default=os.environ.get("AVIDBASE_API_KEY"))
    parser.add_argument("--env", default=os.environ.get("AVIDBASE_ENVIRONMENT", "production"),
                        choices=["production", "development"])
    parser.add_argument("--base-url", default=os.environ.get("AVIDBASE_BASE_URL"))
    parser.add_argument("--operator", default="cli",
                        help="Operator identifier for audit logs (default: cli)")

    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("token")

    lg = sub.add_parser("login")
    lg.add_argument("--identifier", required=True, help="Email address or username")
    lg.add_argument("--password", required=True)

    sub.add_parser("list-users")

    gu = sub.add_parser("get-user")
    gu.add_argument("--id", required=True)

    cu = sub.add_parser("create-user")
    cu.add_argument("--username", required=True)
    cu.add_argument("--email", required=True)
    cu.add_argument("--first", required=True)
    cu.add_argument("--last", required=True)
    cu.add_argument("--password", required=True)
    cu.add_argument("--data", help="JSON object with custom attributes")

    uu = sub.add_parser("update-user")
    uu.add_argument("--id", required=True)
    uu.add_argument("--username")
    uu.add_argument("--email")
    uu.add_argument("--first")
    uu.add_argument("--last")
    uu.add_argument("--password")
    uu.add_argument("--data", help="JSON object with custom attributes")

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    if not args.account:
        parser.error("Missing account id (--account or AVIDBASE_ACCOUNT_ID)")

    if args.cmd != "login" and not args.api_key:
        parser.error("Missing API key (--api-key or AVIDBASE_API_KEY)")

    client = initialize(args.account, args.api_key or "", environment=args.env, base_url=args.base_url)

    if args.cmd == "token":
        try:
            token = client.ensure_machine_token()
        except AvidbaseError as e:
            print(f"[token] Error: {e}", file=sys.stderr)
            audit.safe_log_user_event("token_acquire", args.account, operator=args.operator,
                                      account=args.account, error=e)
            sys.exit(1)
        print(f"[token] Machine access token acquired ({_mask(token)})", file=sys.stderr)
        audit.safe_log_user_event("token_acquire", args.account, operator=args.operator, account=args.account)
    elif args.cmd == "login":
        try:
            output = AuthService(client).authenticate(args.identifier, args.password)
        except AvidbaseError as e:
            print(f"[login] Error: {e}", file=sys.stderr)
            audit.safe_log_user_event("login", args.identifier, operator=args.operator,
                                      account=args.account, error=e)
            sys.exit(1)
        audit.safe_log_user_event("login", args.identifier, operator=args.operator, account=args.account,
                                  details={"user_id": output.user.id})
        _print_json({"user": output.user.to_dict(), "permissions": output.permissions})
    elif args.cmd == "list-users":
        try:
            users = UserService(client).list_users()
        except AvidbaseError as e:
            print(f"[list-users] Error: {e}", file=sys.stderr)
            sys.exit(1)
        _print_json([user.to_dict() for user in users])
    elif args.cmd == "get-user":
        try:
            user = UserService(client).get_user(args.id)
        except AvidbaseError as e:
            print(f"[get-user] Error: {e}", file=sys.stderr)
            sys.exit(1)
        _print_json(user.to_dict())
    elif args.cmd == "create-user":
        user_input = _user_input_from_args(args, parser)
        try:
            identity = UserService(client).create_user(user_input)
        except AvidbaseError as e:
            print(f"[create-user] Error: {e}", file=sys.stderr)
            audit.safe_log_user_event("user_create", args.username, operator=args.operator,
                                      account=args.account, error=e)
            sys.exit(1)
        print(f"[create-user] User '{identity.username}' created (id={identity.id})", file=sys.stderr)
        audit.safe_log_user_event(
            "user_create",
            identity.username or args.username,
            operator=args.operator,
            account=args.account,
            details={"user_id": identity.id, "email": identity.email},
        )
        _print_json(identity.to_dict())
    elif args.cmd == "update-user":
        user_input = _user_input_from_args(args, parser)
        if user_input.is_empty():
            parser.error("update-user needs at least one field to change")
        changed = user_input.provided_fields()
        try:
            identity = UserService(client).update_user(args.id, user_input)
        except AvidbaseError as e:
            print(f"[update-user] Error: {e}", file=sys.stderr)
            audit.safe_log_user_event("user_update", args.id, operator=args.operator,
                                      account=args.account, details={"fields": changed}, error=e)
            sys.exit(1)
        print(f"[update-user] User '{identity.id}' updated ({', '.join(changed)})", file=sys.stderr)
        audit.safe_log_user_event("user_update", args.id, operator=args.operator, account=args.account,
                                  details={"fields": changed})
        _print_json(identity.to_dict())
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
