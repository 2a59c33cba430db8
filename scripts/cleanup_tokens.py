"""Expired email token cleanup.

Deletes verification and password reset tokens that expired without being used.
Run from the project root, e.g. from cron: python -m scripts.cleanup_tokens
"""
import logging

from app.core.config import settings
from app.core.database import SessionLocal
from app.models import registry  # noqa: F401
from app.models.token_db.token_crud import cleanup_expired_tokens


def main():
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    with SessionLocal() as db:
        deleted = cleanup_expired_tokens(db)
    print(f"Deleted {deleted} expired email tokens.")


if __name__ == "__main__":
    main()
