# storefront/models/auth.py

# This file defines Pydantic models specifically for authentication
# requests: signup, login, password change and the password reset flow.

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .common import StorefrontModel
from .user import PHONE_PATTERN, check_password_match, check_password_strength


# --- Request Model for User Registration ---
class SignupRequest(StorefrontModel):
    name: str = Field(..., min_length=2, max_length=128)
    email: EmailStr
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)

    password_strength = field_validator("password")(check_password_strength)
    password_match = field_validator("confirm_password")(check_password_match)


class LoginRequest(StorefrontModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(StorefrontModel):
    current_password: str = Field(..., min_length=1, alias="currentPassword")
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")

    password_strength = field_validator("password")(check_password_strength)
    password_match = field_validator("confirm_password")(check_password_match)


# --- Password reset ---
class ForgotPasswordRequest(StorefrontModel):
    email: EmailStr


class VerifyResetPasswordRequest(StorefrontModel):
    """At least one of the emailed secrets must be presented: `otp` here or `token` in the query string."""

    request_id: str = Field(..., min_length=1, alias="requestId")
    otp: Optional[str] = Field(default=None, pattern=r"^[0-9]{6}$")

    @field_validator("otp", mode="before")
    @classmethod
    def otp_as_string(cls, value):
        # clients commonly send the code as a JSON number
        if isinstance(value, int):
            return f"{value:06d}"
        return value


class ResetPasswordRequest(VerifyResetPasswordRequest):
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")

    password_strength = field_validator("password")(check_password_strength)
    password_match = field_validator("confirm_password")(check_password_match)
