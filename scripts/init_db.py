"""Create tables (sqlite/dev) and seed the admin account.

Usage:
  python scripts/init_db.py            # seed only (schema comes from alembic)
  python scripts/init_db.py --create   # create tables from models first (dev)
"""

import argparse
import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scripts._db_utils import create_script_engine, script_session  # noqa: E402
from app.marketplace.constants import ROLE_ADMIN  # noqa: E402
from app.marketplace.models import Base, User  # noqa: E402
from app.marketplace.modules.users.models import Profile  # noqa: E402


def _database_url(database_url: str | None) -> str:
    return (database_url or os.environ.get("DATABASE_URL") or "sqlite:///marketplace.db").strip()


def create_tables(*, database_url: str | None = None) -> None:
    engine = create_script_engine(_database_url(database_url))
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed the admin user in an idempotent way.
    Does NOT overwrite an existing admin user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@marketplace.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me-now"

    with script_session(_database_url(database_url)) as s:
        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(email=admin_email, role=ROLE_ADMIN, approved=True)
            user.set_password(admin_password)
            user.profile = Profile()
            s.add(user)
        else:
            user.role = ROLE_ADMIN
            user.approved = True

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--create", action="store_true", help="Create tables from models before seeding")
    args = parser.parse_args()
    if args.create:
        create_tables(database_url=None)
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
