"""
CLI entry point for provisioning the console's admin table.
See docs/Architecture.md (Infrastructure layer) for the architectural rationale.

Creates the ``admin`` table if it is missing and inserts one account. The
password is stored exactly as given, matching how logins are checked.

    export DATABASE_URL=sqlite:///./console.db
    python -m src.infrastructure.credentials.provision alice s3cret --first Alice --last Doe
"""

import argparse

from dotenv import load_dotenv

from src.infrastructure.config.settings import Settings
from src.infrastructure.credentials.sql_credential_store import SqlCredentialStore


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create a console administrator account.")
    parser.add_argument("username")
    parser.add_argument("password")
    parser.add_argument("--first", default="", help="first name")
    parser.add_argument("--last", default="", help="last name")
    parser.add_argument("--inactive", action="store_true", help="create the account disabled")
    args = parser.parse_args(argv)

    load_dotenv()
    store = SqlCredentialStore.from_url(Settings().database_url)
    store.create_schema()
    account_id = store.add_account(
        args.username,
        args.password,
        first_name=args.first,
        last_name=args.last,
        active=not args.inactive,
    )
    print(f"Created admin {args.username!r} with id {account_id}.")


if __name__ == "__main__":
    main()
