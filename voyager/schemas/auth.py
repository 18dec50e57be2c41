"""Pydantic schemas for login, profile and the password reset flow."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from voyager.schemas.common import Success


class UserLogin(BaseModel):
    """Payload for login attempts."""

    email: EmailStr
    password: str


class Token(BaseModel):
    """Bearer token response returned after successful authentication."""

    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Response body representing a staff account."""

    id: int
    email: EmailStr
    full_name: str
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    full_name: str = Field(..., max_length=255)


class PasswordChange(BaseModel):
    """Self-service password change; the current password is re-checked."""

    current_password: str
    new_password: str
    confirm_password: str


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SendOtpRequest(_CamelModel):
    email: EmailStr


class SendOtpResponse(Success, _CamelModel):
    otp_token: str = Field(..., alias="otpToken")


class VerifyOtpRequest(_CamelModel):
    otp_token: str = Field(..., alias="otpToken", min_length=1)
    code: str = Field(..., min_length=1)


class VerifyOtpResponse(Success, _CamelModel):
    reset_token: str = Field(..., alias="resetToken")


class ResetPasswordRequest(_CamelModel):
    reset_token: str = Field(..., alias="resetToken", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=1)
