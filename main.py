"""Command-line interface for the currency API service."""

from __future__ import annotations
import argparse
import logging
import sys
from getpass import getpass
from typing import Sequence

from currency_api.config import load_database_path
from currency_api.database import Database
from currency_api.errors import ValidationError

logger = logging.getLogger("currency_api.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Currency API service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the accounts database")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the HTTP API (default: 8000)",
    )

    account_parser = subparsers.add_parser("create-account", help="Create an account interactively")
    account_parser.add_argument("email", help="Unique email address for login")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-account"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database() -> Database:
    try:
        db_path = load_database_path()
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc
    database = Database(db_path)
    database.initialize()
    logger.info("Database initialised at %s", db_path)
    return database


def _serve(*, host: str, port: int) -> None:
    from currency_api.application import create_application
    import uvicorn

    try:
        app = create_application()
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    logger.info("Starting currency API on http://%s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _prompt_for_password() -> tuple[str, str] | None:
    for _ in range(3):
        password = getpass("Password: ")
        if not password:
            print("Password must not be empty. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password, confirmation
    return None


def _create_account(database: Database, email: str) -> int:
    credentials = _prompt_for_password()
    if credentials is None:
        print("Aborted creating account.")
        return 1

    password, confirmation = credentials
    try:
        account = database.create_account(email, password, confirmation)
    except ValidationError as exc:
        details = "; ".join(
            f"{field} {message}" for field, messages in exc.errors.items() for message in messages
        )
        print(f"Failed to create account: {details}")
        return 1

    print(f"Created account #{account.id}: {account.email}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "serve":
        _serve(host=args.host, port=args.port)
    elif args.command == "init-db":
        _initialise_database()
        print("Database initialisation complete.")
    elif args.command == "create-account":
        return _create_account(_initialise_database(), args.email)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
