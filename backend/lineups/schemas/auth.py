"""Auth and profile request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str
    password: str
    username: Optional[str] = None  # defaults to the email


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str = Field(alias="refreshToken")

    class Config:
        populate_by_name = True


class TokenResponse(BaseModel):
    token: str
    refresh_token: str = Field(serialization_alias="refreshToken")
    token_type: str = Field(default="bearer", serialization_alias="tokenType")


class MessageResponse(BaseModel):
    message: str


class UserProfileResponse(BaseModel):
    id: str
    username: str
    email: str
    created_at: str = Field(serialization_alias="createdAt")


class UpdateProfileRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    current_password: str = Field(alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")

    class Config:
        populate_by_name = True


class ProfileTokenResponse(BaseModel):
    token: str
