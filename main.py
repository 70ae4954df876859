"""Command-line interface for the account store."""

from __future__ import annotations
import argparse
import getpass
import logging
import sys
from typing import Sequence

from accounts.config import Settings, load_settings
from accounts.database import Database
from accounts.errors import AccountStoreError
from accounts.models import CreateUser
from accounts.passwords import PasswordHasher
from accounts.users import UserStore

logger = logging.getLogger("accounts.main")

_KNOWN_COMMANDS = {"serve", "init-db", "create-user", "find-user", "delete-user"}


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Account store utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the accounts database")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP account service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: ACCOUNTS_HOST or 127.0.0.1)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: ACCOUNTS_PORT or 8000)",
    )

    create_parser = subparsers.add_parser("create-user", help="Create a user account")
    create_parser.add_argument("full_name", help="Full name of the account holder")
    create_parser.add_argument("email", help="Unique email address for the account")

    find_parser = subparsers.add_parser("find-user", help="Show the account registered to an email")
    find_parser.add_argument("email")

    delete_parser = subparsers.add_parser("delete-user", help="Delete the account registered to an email")
    delete_parser.add_argument("email")

    args_list = list(argv) if argv is not None else sys.argv[1:]

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in _KNOWN_COMMANDS:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if not password:
            print("Password must not be empty.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def _serve(*, database: Database, settings: Settings, host: str | None, port: int | None) -> None:
    from accounts.api import create_app
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    logger.info("Starting account API on http://%s:%s", bind_host, bind_port)

    app = create_app(database=database, hasher=PasswordHasher(settings.bcrypt_rounds))
    uvicorn.run(app, host=bind_host, port=bind_port, log_level="info")


def _run_store_command(args: argparse.Namespace, database: Database, settings: Settings) -> int:
    store = UserStore(PasswordHasher(settings.bcrypt_rounds))

    try:
        with database.session() as conn:
            if args.command == "create-user":
                password = _prompt_for_password()
                user = store.add_user(
                    conn,
                    CreateUser(full_name=args.full_name, email=args.email, password=password),
                )
                print(f"Created user {user.id}: {user.full_name} <{user.email}>")
            elif args.command == "find-user":
                user = store.find_user_by_email(conn, args.email)
                print(f"{user.id}\t{user.full_name}\t{user.email}\t{user.created_at.isoformat()}")
            else:
                deleted = store.delete_user(conn, args.email)
                print(f"Deleted user <{deleted}>")
    except AccountStoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    settings = load_settings()
    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(database=database, settings=settings, host=args.host, port=args.port)
    elif args.command == "init-db":
        print("Database initialisation complete.")
    else:
        return _run_store_command(args, database, settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
