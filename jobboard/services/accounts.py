"""
Account management: registration, login, token refresh, profile.

Passwords are stored as bcrypt digests. Each successful login writes a
login_history row in the same transaction that issues nothing else.
"""
import logging
import re
from datetime import datetime
from typing import Optional

import email_validator
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import Settings
from jobboard.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    UnauthenticatedError,
    ValidationError,
)
from jobboard.models import Application, Bookmark, JobPosting, LoginHistory, User, UserRole
from jobboard.services.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[a-zA-Z가-힣0-9]+$")
PASSWORD_PATTERN = re.compile(r"^[a-zA-Z0-9!@]+$")

# Example address shown in the API docs; registering it is refused
PLACEHOLDER_EMAIL = "user@example.com"


def validate_email(email: str) -> str:
    try:
        email_validator.validate_email(email or "", check_deliverability=False)
    except email_validator.EmailNotValidError as e:
        raise ValidationError("Invalid email address", detail=str(e)) from e
    if email == PLACEHOLDER_EMAIL:
        raise ValidationError("Invalid email address")
    return email


def validate_name(name: str) -> str:
    if not NAME_PATTERN.match(name or ""):
        raise ValidationError("Name may contain only letters (Latin or Hangul) and digits")
    return name


def validate_password(password: str) -> str:
    if not PASSWORD_PATTERN.match(password or ""):
        raise ValidationError("Password may contain only letters, digits, '!' and '@'")
    return password


async def _get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def _email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(User.id).where(User.email == email))
    return result.first() is not None


async def register(
    db: AsyncSession,
    email: str,
    password: str,
    name: str,
    role: UserRole = UserRole.USER,
) -> User:
    """
    Create an account.

    Raises:
        ValidationError: malformed email, name or password
        ConflictError: the email is already registered
    """
    validate_email(email)
    validate_name(name)
    validate_password(password)

    if await _email_taken(db, email):
        raise ConflictError("Email is already registered")

    user = User(email=email, password_hash=hash_password(password), name=name, role=role)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration of the same email
        await db.rollback()
        raise ConflictError("Email is already registered", detail=str(e.orig)) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error registering {email}: {str(e)}", exc_info=True)
        raise StorageError("Registration failed", detail=str(e)) from e

    await db.refresh(user)
    logger.info(f"Registered user {user.id} ({email})")
    return user


async def authenticate(
    db: AsyncSession,
    email: str,
    password: str,
    settings: Settings,
) -> tuple[str, str]:
    """
    Check credentials and issue an (access, refresh) token pair.

    Raises:
        UnauthenticatedError: unknown email or wrong password
    """
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login attempt for {email}")
        raise UnauthenticatedError("Invalid email or password")

    db.add(LoginHistory(user_id=user.id))
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error recording login for {email}: {str(e)}", exc_info=True)
        raise StorageError("Login failed", detail=str(e)) from e

    logger.info(f"Successful login: {email}")
    return (
        create_access_token(user.id, user.email, settings),
        create_refresh_token(user.id, user.email, settings),
    )


async def refresh_access_token(db: AsyncSession, refresh_token: str, settings: Settings) -> str:
    """
    Exchange a valid refresh token for a new access token.

    Raises:
        UnauthenticatedError: bad or expired token, or the account is gone
    """
    payload = decode_token(refresh_token, REFRESH_TOKEN, settings)
    result = await db.execute(select(User).where(User.id == int(payload["sub"])))
    user = result.scalar_one_or_none()
    if not user:
        raise UnauthenticatedError("Invalid refresh token")
    return create_access_token(user.id, user.email, settings)


async def get_profile(db: AsyncSession, user_id: int) -> User:
    return await _get_user(db, user_id)


async def update_profile(
    db: AsyncSession,
    user_id: int,
    email: Optional[str] = None,
    name: Optional[str] = None,
    password: Optional[str] = None,
) -> dict:
    """
    Sparse update of email, name and password.

    Returns the changed fields; a new password is reported masked with one
    ``*`` per character.

    Raises:
        ValidationError: nothing to change, or a malformed value
        ConflictError: the new email belongs to another account
    """
    if not (email or name or password):
        raise ValidationError("No fields to update")

    user = await _get_user(db, user_id)
    changed = {}

    if email:
        validate_email(email)
        if email != user.email and await _email_taken(db, email):
            raise ConflictError("Email is already in use")
        user.email = email
        changed["email"] = email
    if name:
        user.name = validate_name(name)
        changed["name"] = name
    if password:
        validate_password(password)
        user.password_hash = hash_password(password)
        changed["password"] = "*" * len(password)

    user.updated_at = datetime.utcnow()
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Email is already in use", detail=str(e.orig)) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating user {user_id}: {str(e)}", exc_info=True)
        raise StorageError("Profile update failed", detail=str(e)) from e

    logger.info(f"Updated user {user_id} (fields: {sorted(changed)})")
    return changed


async def delete_account(db: AsyncSession, user_id: int) -> None:
    """
    Delete the account with its bookmarks, applications and login history.

    Postings the user authored stay listed, detached from any owner.
    """
    await _get_user(db, user_id)

    try:
        await db.execute(delete(Bookmark).where(Bookmark.user_id == user_id))
        await db.execute(delete(Application).where(Application.user_id == user_id))
        await db.execute(delete(LoginHistory).where(LoginHistory.user_id == user_id))
        await db.execute(
            update(JobPosting)
            .where(JobPosting.user_id == user_id)
            .values(user_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(User)
            .where(User.id == user_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting user {user_id}: {str(e)}", exc_info=True)
        raise StorageError("Account deletion failed", detail=str(e)) from e

    logger.info(f"Deleted user {user_id}")
