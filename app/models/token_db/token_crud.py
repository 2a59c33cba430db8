import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.security import generate_opaque_token, hash_token
from app.models.token_db.token_db import RefreshToken, EmailToken

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION = "email_verification"
PASSWORD_RESET = "password_reset"


# Refresh tokens
def issue_refresh_token(db: Session, user_id: int) -> str:
    token = generate_opaque_token()
    db.add(RefreshToken(
        user_id=user_id,
        token_hash=hash_token(token),
        expires_at=datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    ))
    db.flush()
    return token


def get_refresh_token(db: Session, token: str) -> Optional[RefreshToken]:
    return db.query(RefreshToken).filter(RefreshToken.token_hash == hash_token(token)).first()


def revoke_refresh_token(db: Session, token: str) -> bool:
    revoked = db.query(RefreshToken).filter(
        RefreshToken.token_hash == hash_token(token),
        RefreshToken.revoked_at.is_(None),
    ).update({RefreshToken.revoked_at: datetime.utcnow()}, synchronize_session=False)
    return revoked > 0


def revoke_user_refresh_tokens(db: Session, user_id: int) -> int:
    return db.query(RefreshToken).filter(
        RefreshToken.user_id == user_id,
        RefreshToken.revoked_at.is_(None),
    ).update({RefreshToken.revoked_at: datetime.utcnow()}, synchronize_session=False)


# Email tokens
def issue_email_token(db: Session, user_id: int, token_type: str, expires_in_hours: int) -> str:
    token = generate_opaque_token()
    db.add(EmailToken(
        user_id=user_id,
        token_hash=hash_token(token),
        token_type=token_type,
        expires_at=datetime.utcnow() + timedelta(hours=expires_in_hours),
    ))
    db.flush()
    logger.info("Issued %s token for user %s, expires in %s hours", token_type, user_id, expires_in_hours)
    return token


def consume_email_token(db: Session, token: str, token_type: str) -> Tuple[Optional[int], bool]:
    """
    Marks a one-time token as used.

    Returns (user_id, valid). Unknown, expired and already used tokens are invalid.
    The claim is a single conditional UPDATE, so of two concurrent consumers only one
    matches the unused row.
    """
    token_hash = hash_token(token)
    user_id = db.query(EmailToken.user_id).filter(
        EmailToken.token_hash == token_hash,
        EmailToken.token_type == token_type,
    ).scalar()
    if user_id is None:
        logger.info("Unknown %s token", token_type)
        return None, False

    now = datetime.utcnow()
    claimed = db.query(EmailToken).filter(
        EmailToken.token_hash == token_hash,
        EmailToken.token_type == token_type,
        EmailToken.used_at.is_(None),
        EmailToken.expires_at >= now,
    ).update({EmailToken.used_at: now}, synchronize_session=False)

    if claimed != 1:
        logger.info("%s token already used or expired (user %s)", token_type, user_id)
        return user_id, False
    return user_id, True


def invalidate_email_tokens(db: Session, user_id: int, token_type: str) -> int:
    return db.query(EmailToken).filter(
        EmailToken.user_id == user_id,
        EmailToken.token_type == token_type,
        EmailToken.used_at.is_(None),
    ).update({EmailToken.used_at: datetime.utcnow()}, synchronize_session=False)


def cleanup_expired_tokens(db: Session) -> int:
    deleted = db.query(EmailToken).filter(
        EmailToken.expires_at < datetime.utcnow(),
        EmailToken.used_at.is_(None),
    ).delete(synchronize_session=False)
    db.commit()
    logger.info("Cleaned up %s expired email tokens", deleted)
    return deleted
