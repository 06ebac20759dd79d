"""Auth service — accounts, token pairs, refresh rotation and profile edits."""

import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lineups.config import settings
from lineups.middleware.auth import hash_password, verify_password, create_access_token
from lineups.models.refresh_token import RefreshToken
from lineups.models.user import User
from lineups.services.errors import (
    AccountConflict,
    AuthError,
    InvalidCredentials,
    InvalidRefreshToken,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _utcnow() -> datetime:
    # Stored naive in UTC; SQLite drops tzinfo on the way back anyway.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _check_password(password: str) -> None:
    if len(password or "") < settings.MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")


def _check_email(email: str) -> None:
    if not EMAIL_RE.match(email or ""):
        raise AuthError("Invalid email address")


def register_user(db: Session, email: str, password: str, username: Optional[str] = None) -> User:
    """Create an account with the default `user` role."""
    email = (email or "").strip().lower()
    username = (username or "").strip() or email
    _check_email(email)
    _check_password(password)

    existing = db.query(User).filter((User.email == email) | (User.username == username)).first()
    if existing:
        logger.warning(f"Registration rejected, email or username taken: {email}")
        raise AccountConflict("Email or username already registered")

    user = User(
        email=email,
        username=username,
        password_hash=hash_password(password),
        role="user",
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        db.rollback()
        raise AccountConflict("Email or username already registered") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to register {email}: {exc}", exc_info=True)
        raise StoreUnavailable("register failed") from exc

    logger.info(f"User {email} registered with role {user.role}")
    return user


def _issue_refresh_token(db: Session, user: User) -> str:
    token = secrets.token_urlsafe(48)
    db.add(RefreshToken(
        token=token,
        user_id=user.id,
        expires_at=_utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        revoked=False,
    ))
    return token


def login(db: Session, email: str, password: str) -> tuple[str, str]:
    """Return (access_token, refresh_token) for valid credentials."""
    email = (email or "").strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password or "", user.password_hash):
        logger.warning(f"Login failed for {email}")
        raise InvalidCredentials("Invalid email or password")

    refresh_token = _issue_refresh_token(db, user)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to store refresh token for {email}: {exc}", exc_info=True)
        raise StoreUnavailable("login failed") from exc

    logger.info(f"User {email} logged in")
    return create_access_token(user), refresh_token


def refresh(db: Session, refresh_token: str) -> tuple[str, str]:
    """Rotate a refresh token: the presented one is revoked, a new pair is issued."""
    if not refresh_token or not refresh_token.strip():
        raise InvalidRefreshToken("Refresh token is required")

    entity = db.query(RefreshToken).filter(RefreshToken.token == refresh_token).first()
    if entity is None:
        logger.warning("Refresh token not found")
        raise InvalidRefreshToken("Invalid refresh token")
    if entity.revoked or entity.expires_at < _utcnow():
        logger.warning(f"Refresh token revoked or expired for user {entity.user_id}")
        raise InvalidRefreshToken("Refresh token is invalid or expired")

    user = entity.user
    entity.revoked = True
    new_refresh = _issue_refresh_token(db, user)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to rotate refresh token for user {user.id}: {exc}", exc_info=True)
        raise StoreUnavailable("refresh failed") from exc

    logger.info(f"Refresh token rotated for user {user.id}")
    return create_access_token(user), new_refresh


def get_profile(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def update_profile(
    db: Session,
    user_id: str,
    current_password: str,
    username: Optional[str] = None,
    email: Optional[str] = None,
    new_password: Optional[str] = None,
) -> User:
    """Change username / email / password after re-checking the current password."""
    user = get_profile(db, user_id)
    if user is None:
        raise InvalidCredentials("User not found")
    if not verify_password(current_password or "", user.password_hash):
        logger.warning(f"Profile update for {user_id} rejected: wrong current password")
        raise InvalidCredentials("Current password is incorrect")

    if email is not None and email.strip().lower() != user.email:
        email = email.strip().lower()
        _check_email(email)
        if db.query(User).filter(User.email == email, User.id != user.id).first():
            raise AccountConflict("Email already registered")
        user.email = email

    if username is not None and username.strip() and username.strip() != user.username:
        username = username.strip()
        if db.query(User).filter(User.username == username, User.id != user.id).first():
            raise AccountConflict("Username already taken")
        user.username = username

    if new_password:
        _check_password(new_password)
        user.password_hash = hash_password(new_password)

    try:
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        db.rollback()
        raise AccountConflict("Email or username already registered") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to update profile {user_id}: {exc}", exc_info=True)
        raise StoreUnavailable("profile update failed") from exc

    logger.info(f"Profile updated for user {user_id}")
    return user


def new_access_token(user: User) -> str:
    return create_access_token(user)
