#!/usr/bin/env python3
"""Promote a user to admin and approve them (idempotent).

Usage:
  python scripts/make_admin.py --email someone@example.com
"""

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scripts._db_utils import script_session  # noqa: E402
from app.marketplace.constants import ROLE_ADMIN  # noqa: E402
from app.marketplace.models import User  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True, help="User email to promote to admin")
    args = parser.parse_args()

    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///marketplace.db").strip()
    with script_session(db_url) as s:
        user = s.query(User).filter(User.email.ilike(args.email.strip())).one_or_none()
        if not user:
            print(f"User not found: {args.email}")
            return
        if user.role == ROLE_ADMIN and user.approved:
            print(f"User is already an approved admin: {args.email}")
            return
        user.role = ROLE_ADMIN
        user.approved = True
    print(f"Admin role set for {args.email}")


if __name__ == "__main__":
    main()
