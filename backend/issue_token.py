"""Print a bearer token for an existing user to stdout.

Usage:
    python -m backend.issue_token --email admin@example.com
    python -m backend.issue_token --email admin@example.com --create-admin \
        --name "Default Administrator Account" --address "Head Office"
"""
import argparse
import sys

from backend.auth.jwt_handler import create_access_token
from backend.core.errors import RatingsError
from backend.database import Base, SessionLocal, engine
from backend.models import rating, store  # noqa: F401  registers tables on Base
from backend.services.catalog import CatalogStore, UserCandidate


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--email', required=True)
    parser.add_argument('--create-admin', action='store_true', help='create the admin user first')
    parser.add_argument('--name', default='')
    parser.add_argument('--address', default='')
    parser.add_argument('--expires-minutes', type=int, default=None)
    return parser


def issue_token(catalog: CatalogStore, args: argparse.Namespace) -> str:
    email = args.email.strip().lower()
    if args.create_admin:
        user = catalog.insert_user(
            UserCandidate(name=args.name, email=email, address=args.address, role='admin')
        )
    else:
        user = catalog.get_user_by_email(email)
    return create_access_token(user_id=user.id, role=user.role, expires_minutes=args.expires_minutes)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        token = issue_token(CatalogStore(db), args)
    except RatingsError as exc:
        print(f'{exc.code}: {exc.message}', file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()
    print(token)


if __name__ == '__main__':
    main()
