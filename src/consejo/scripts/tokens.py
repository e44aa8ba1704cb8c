"""Print a bearer token for an existing user, looked up by e-mail."""

import argparse
import sys
from datetime import timedelta

from sqlalchemy.orm import Session

from consejo.core.security import create_access_token
from consejo.db.session import SessionLocal
from consejo.models import User


def token_for_email(db: Session, email: str, expires_minutes: int | None = None) -> str:
    """Mint an access token for the user with ``email``.

    Raises:
        LookupError: If no such user exists.
    """
    user = db.query(User).filter(User.email == email).one_or_none()
    if user is None:
        raise LookupError(f"No user with e-mail {email!r}")
    expires = timedelta(minutes=expires_minutes) if expires_minutes else None
    return create_access_token(user.id, expires)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email", help="e-mail of the user to impersonate")
    parser.add_argument("--expires-minutes", type=int, default=None)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        token = token_for_email(db, args.email, args.expires_minutes)
    except LookupError as exc:
        print(exc, file=sys.stderr)
        return 1
    finally:
        db.close()

    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
