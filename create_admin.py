"""
Create a back-office admin account.

Usage:
    python create_admin.py admin@example.com "s3cret-pass" --first-name Ada
"""

import argparse
import sys

from fastapi import HTTPException

from core.database import SessionLocal, init_db
from core.logging_config import setup_logging, get_logger
from core.config import settings
from services.auth_service import AuthService

logger = get_logger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a verified admin account.")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--first-name", default=None)
    parser.add_argument("--last-name", default=None)
    args = parser.parse_args(argv)

    setup_logging(log_level=settings.LOG_LEVEL, log_dir=settings.LOG_DIR)
    init_db()

    db = SessionLocal()
    try:
        user = AuthService.create_user(
            db,
            email=args.email,
            password=args.password,
            role="admin",
            is_verified=True,
            first_name=args.first_name,
            last_name=args.last_name,
        )
    except HTTPException as e:
        print(f"Error: {e.detail}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"Admin account created: {user.email} (id={user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
