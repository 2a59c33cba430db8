from typing import Optional

from sqlalchemy.orm import Session
from app.models.user_db.user_db import User
from app.core.security import hash_password


def normalize_email(email: str) -> str:
    return email.strip().lower()


def create_user(db: Session, email: str, password: str, full_name: str, role: str = "user") -> User:
    db_user = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        full_name=full_name.strip(),
        role=role,
        is_active=True,
        email_verified=False,
    )
    db.add(db_user)
    db.flush()
    return db_user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def set_password(db: Session, user: User, new_password: str) -> User:
    user.password_hash = hash_password(new_password)
    db.flush()
    return user


def mark_email_verified(db: Session, user: User) -> User:
    user.email_verified = True
    db.flush()
    return user
