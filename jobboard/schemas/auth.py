"""Authentication-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class RegisterRequest(BaseModel):
    """Request to create an account."""
    email: EmailStr
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)


class LoginRequest(BaseModel):
    """Email and password login."""
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    """Refresh token exchanged for a new access token."""
    refresh_token: str = Field(min_length=1)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenPair(BaseModel):
    """Response after successful authentication."""
    access_token: str = Field(serialization_alias="accessToken")
    refresh_token: str = Field(serialization_alias="refreshToken")
    token_type: str = Field("bearer", serialization_alias="tokenType")


class AccessToken(BaseModel):
    access_token: str = Field(serialization_alias="accessToken")
    token_type: str = Field("bearer", serialization_alias="tokenType")


class ProfileUpdate(BaseModel):
    """Sparse profile update; omitted fields stay unchanged."""
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    password: Optional[str] = None


class ProfileChanges(BaseModel):
    """Fields that were changed; the password comes back masked."""
    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None


class Profile(BaseModel):
    user_id: int
    email: str
    name: str
    role: str
    created_at: Optional[datetime] = None
