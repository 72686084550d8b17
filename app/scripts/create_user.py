"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [role] [--verified]
Example:
  python -m app.scripts.create_user "Jo Admin" admin@example.com your-secure-password admin --verified
"""
import argparse
import sys

from app.core.database import session_scope
from app.core.errors import ValidationFailed
from app.models import RoleName
from app.services import accounts


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a Gatekeeper user.")
    parser.add_argument("name", help="Display name (2-50 chars)")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument("password", help="Password (8 chars to 72 bytes)")
    parser.add_argument(
        "role",
        nargs="?",
        default=RoleName.USER.value,
        choices=[r.value for r in RoleName],
    )
    parser.add_argument("--verified", action="store_true", help="Mark the account as verified")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    with session_scope() as db:
        role = accounts.get_role_by_name(db, RoleName(args.role))
        if role is None:
            print(
                f"Role '{args.role}' does not exist; run python -m app.scripts.seed first.",
                file=sys.stderr,
            )
            return 1
        try:
            user = accounts.register_user(
                db,
                name=args.name,
                email=args.email,
                password=args.password,
                verified=args.verified,
                role=role,
            )
        except ValidationFailed as e:
            for field, messages in e.errors.items():
                for message in messages:
                    print(f"{field} {message}", file=sys.stderr)
            return 1
        print(f"Created user '{user.email}' with role '{args.role}'.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
