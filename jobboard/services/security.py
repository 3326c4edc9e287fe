"""
Password hashing and JWT helpers.

Access and refresh tokens are signed with different secrets and carry a
``type`` claim, so one can never be used in place of the other.
"""
from datetime import datetime, timedelta

import bcrypt
import jwt

from jobboard.config import Settings
from jobboard.errors import UnauthenticatedError

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt digest
        return False


def _secret_for(token_type: str, settings: Settings) -> str:
    return settings.secret_key if token_type == ACCESS_TOKEN else settings.refresh_secret_key


def _encode(user_id: int, email: str, token_type: str, ttl: timedelta, settings: Settings) -> str:
    now = datetime.utcnow()
    payload = {
        "sub": str(user_id),
        "email": email,
        "type": token_type,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, _secret_for(token_type, settings), algorithm=settings.jwt_algorithm)


def create_access_token(user_id: int, email: str, settings: Settings) -> str:
    return _encode(
        user_id, email, ACCESS_TOKEN,
        timedelta(minutes=settings.access_token_ttl_minutes), settings,
    )


def create_refresh_token(user_id: int, email: str, settings: Settings) -> str:
    return _encode(
        user_id, email, REFRESH_TOKEN,
        timedelta(days=settings.refresh_token_ttl_days), settings,
    )


def decode_token(token: str, token_type: str, settings: Settings) -> dict:
    """
    Verify signature, expiry and type; return the claims.

    Raises:
        UnauthenticatedError: the token is expired, tampered with or of the wrong type
    """
    try:
        payload = jwt.decode(
            token,
            _secret_for(token_type, settings),
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError("Token has expired")
    except jwt.InvalidTokenError:
        raise UnauthenticatedError("Invalid token")

    if payload.get("type") != token_type or "sub" not in payload:
        raise UnauthenticatedError("Invalid token")
    return payload
