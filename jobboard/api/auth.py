"""
Authentication endpoints and the bearer-token dependency.

Security features:
- bcrypt password digests
- Short-lived access tokens, separately signed refresh tokens
- Login history recorded per successful login
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import Settings, get_settings
from jobboard.database import get_db
from jobboard.errors import UnauthenticatedError
from jobboard.models.user import User
from jobboard.schemas.auth import (
    AccessToken,
    LoginRequest,
    Profile,
    ProfileChanges,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
)
from jobboard.schemas.common import SuccessResponse, ValueData
from jobboard.services import accounts
from jobboard.services.security import ACCESS_TOKEN, decode_token

logger = logging.getLogger(__name__)
router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


# Authentication Dependencies
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Dependency to get the current user from the ``Authorization: Bearer`` header.

    Raises:
        UnauthenticatedError: header missing, token invalid or expired,
            or the account no longer exists
    """
    if credentials is None:
        raise UnauthenticatedError("Authentication required")

    payload = decode_token(credentials.credentials, ACCESS_TOKEN, settings)

    result = await db.execute(select(User).where(User.id == int(payload["sub"])))
    user = result.scalar_one_or_none()
    if not user:
        raise UnauthenticatedError("Invalid token. User not found.")
    return user


# Endpoints
@router.post("/register", response_model=SuccessResponse[ValueData], status_code=201)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create an account.

    Returns:
        201: Account created, data.value is the email
        400: Malformed email, name or password
        409: Email already registered
    """
    user = await accounts.register(db, request.email, request.password, request.name)
    return SuccessResponse(message="Registration successful", data=ValueData(value=user.email))


@router.post("/login", response_model=SuccessResponse[TokenPair])
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Exchange email and password for an access/refresh token pair.

    Returns:
        200: Authenticated
        401: Wrong email or password
    """
    access_token, refresh_token = await accounts.authenticate(
        db, request.email, request.password, settings
    )
    return SuccessResponse(
        message="Login successful",
        data=TokenPair(access_token=access_token, refresh_token=refresh_token),
    )


@router.post("/refresh", response_model=SuccessResponse[AccessToken])
async def refresh(
    request: RefreshRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Issue a new access token from a refresh token (401 if it is invalid)."""
    access_token = await accounts.refresh_access_token(db, request.refresh_token, settings)
    return SuccessResponse(message="Token refreshed", data=AccessToken(access_token=access_token))


@router.get("/profile", response_model=SuccessResponse[Profile])
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get the logged-in user's profile."""
    return SuccessResponse(
        message="Profile retrieved",
        data=Profile(
            user_id=current_user.id,
            email=current_user.email,
            name=current_user.name,
            role=current_user.role.value,
            created_at=current_user.created_at,
        ),
    )


@router.put("/modify", response_model=SuccessResponse[ProfileChanges])
async def modify_profile(
    update: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update email, name and/or password.

    Only provided fields are changed. The response lists what changed, with
    the password masked.
    """
    changed = await accounts.update_profile(
        db,
        current_user.id,
        email=update.email,
        name=update.name,
        password=update.password,
    )
    return SuccessResponse(message="Profile updated", data=ProfileChanges(**changed))


@router.delete("/delete", response_model=SuccessResponse)
async def delete_account(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete the logged-in account."""
    user_id = current_user.id
    await accounts.delete_account(db, user_id)
    logger.info(f"Account deleted via API: {user_id}")
    return SuccessResponse(message="Account deleted")
