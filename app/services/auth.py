"""
Account lifecycle: registration, login, token refresh and logout, password reset
and email verification.

Access tokens are short-lived JWTs. Refresh, verification and reset tokens are random
strings; only their keyed hash is stored.
"""
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import transaction
from app.core.exceptions import AppError, AuthenticationError, ConflictError, EmailDeliveryError, ValidationError
from app.core.security import create_access_token, verify_password
from app.models.token_db import token_crud
from app.models.token_db.token_crud import EMAIL_VERIFICATION, PASSWORD_RESET
from app.models.user_db.user_db import User
from app.models.user_db.user_db_crud import create_user, get_user_by_email, get_user_by_id, mark_email_verified, \
    set_password
from app.services import email as email_service

logger = logging.getLogger(__name__)


def _issue_tokens(db: Session, user: User) -> dict:
    return {
        "access_token": create_access_token(user),
        "refresh_token": token_crud.issue_refresh_token(db, user.id),
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


def _new_verification_token(db: Session, user: User) -> str:
    token_crud.invalidate_email_tokens(db, user.id, EMAIL_VERIFICATION)
    return token_crud.issue_email_token(db, user.id, EMAIL_VERIFICATION, settings.EMAIL_VERIFICATION_EXPIRE_HOURS)


async def register_user(db: Session, email: str, password: str, full_name: str) -> dict:
    if get_user_by_email(db, email):
        raise ConflictError("Email already registered")

    try:
        with transaction(db):
            user = create_user(db, email, password, full_name)
            verification_token = _new_verification_token(db, user)
            tokens = _issue_tokens(db, user)
    except IntegrityError:
        raise ConflictError("Email already registered")

    logger.info("User %s registered", user.id)

    # the account exists either way; a lost email can be re-sent
    try:
        await email_service.send_verification_email(user.email, verification_token, user.full_name)
    except EmailDeliveryError:
        logger.warning("Verification email for user %s was not delivered", user.id)

    return {"user": user, "tokens": tokens}


async def login_user(db: Session, email: str, password: str) -> dict:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    with transaction(db):
        tokens = _issue_tokens(db, user)

    logger.info("User %s logged in", user.id)
    return {"user": user, "tokens": tokens}


async def refresh_access_token(db: Session, refresh_token: str) -> dict:
    record = token_crud.get_refresh_token(db, refresh_token)
    if not record:
        raise AuthenticationError("Invalid refresh token")
    if record.revoked_at is not None:
        raise AuthenticationError("Refresh token has been revoked")
    if record.expires_at < datetime.utcnow():
        raise AuthenticationError("Refresh token has expired")

    user = get_user_by_id(db, record.user_id)
    if not user or not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


async def logout_user(db: Session, refresh_token: str) -> bool:
    with transaction(db):
        revoked = token_crud.revoke_refresh_token(db, refresh_token)
    return revoked


async def request_password_reset(db: Session, email: str) -> None:
    """Never reveals whether the address belongs to an account."""
    try:
        user = get_user_by_email(db, email)
        if not user or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return

        with transaction(db):
            token_crud.invalidate_email_tokens(db, user.id, PASSWORD_RESET)
            token = token_crud.issue_email_token(db, user.id, PASSWORD_RESET, settings.PASSWORD_RESET_EXPIRE_HOURS)

        await email_service.send_password_reset_email(user.email, token, user.full_name)
    except AppError:
        logger.exception("Password reset request could not be completed")


async def reset_password(db: Session, token: str, new_password: str) -> None:
    with transaction(db):
        user_id, valid = token_crud.consume_email_token(db, token, PASSWORD_RESET)
        if not valid:
            raise ValidationError("Invalid or expired reset token")

        user = get_user_by_id(db, user_id)
        if not user:
            raise ValidationError("Invalid or expired reset token")
        set_password(db, user, new_password)
        # every session has to log in again
        revoked = token_crud.revoke_user_refresh_tokens(db, user.id)

    logger.info("Password reset for user %s, %s refresh tokens revoked", user_id, revoked)


async def verify_email(db: Session, token: str) -> None:
    with transaction(db):
        user_id, valid = token_crud.consume_email_token(db, token, EMAIL_VERIFICATION)
        if not valid:
            raise ValidationError("Invalid or expired verification token")

        user = get_user_by_id(db, user_id)
        if not user:
            raise ValidationError("Invalid or expired verification token")
        mark_email_verified(db, user)

    logger.info("Email verified for user %s", user_id)


async def resend_verification(db: Session, user: User) -> None:
    if user.email_verified:
        raise ValidationError("Email is already verified")

    with transaction(db):
        token = _new_verification_token(db, user)

    await email_service.send_verification_email(user.email, token, user.full_name)


async def resend_verification_by_email(db: Session, email: str) -> None:
    """Silent for unknown or already verified addresses."""
    user = get_user_by_email(db, email)
    if not user or user.email_verified:
        return
    await resend_verification(db, user)
