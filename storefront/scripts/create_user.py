"""
Create a user without going through the signup form. Run from project root:
  python -m storefront.scripts.create_user NAME EMAIL PASSWORD
Example:
  python -m storefront.scripts.create_user "Ada Lovelace" ada@example.com your-secure-password
"""
import argparse
import sys

from pydantic import ValidationError

from storefront.core.config import get_settings
from storefront.core.database import Database
from storefront.core.errors import FieldValidationError
from storefront.schemas.auth import SignupRequest
from storefront.services.accounts import register_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Storefront user.")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument("password", help="Password (8-128 chars)")
    args = parser.parse_args(argv)

    try:
        body = SignupRequest(name=args.name, email=args.email, password=args.password)
    except ValidationError as e:
        for err in e.errors():
            print(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}", file=sys.stderr)
        return 1

    database = Database.from_settings(get_settings())
    db = database.session()
    try:
        user = register_user(db, body.name, body.email, body.password)
    except FieldValidationError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
        database.dispose()
    print(f"Created user '{user.email}' (id={user.id}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
