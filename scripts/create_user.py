"""Utility script to register a user and print a development access token."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from intranet.domain.entities import User
from intranet.infrastructure.database import SessionLocal, initialize_database
from intranet.infrastructure.repositories import UserRepository
from intranet.infrastructure.security import create_access_token


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for user creation."""

    parser = argparse.ArgumentParser(
        description="Create a user that can receive notifications.",
    )
    parser.add_argument("--email", required=True, help="User e-mail (token subject)")
    parser.add_argument(
        "--name",
        default="Administrator",
        help="Display name of the user (default: Administrator)",
    )
    return parser.parse_args()


def main() -> None:
    """Create the user, or reuse an existing one, and print a bearer token."""

    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        repository = UserRepository(session)
        user = repository.get_by_email(args.email)
        if user is None:
            user = repository.create(User(id=None, email=args.email, name=args.name))
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not store the user: {exc}") from exc
    finally:
        session.close()

    token = create_access_token({"sub": user.email})
    print(
        "User ready:\n"
        f"  ID: {user.id}\n"
        f"  Name: {user.name}\n"
        f"  Email: {user.email}\n"
        f"  Token: {token}"
    )


if __name__ == "__main__":
    main()
