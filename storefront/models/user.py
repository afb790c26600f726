# storefront/models/user.py

# Request models for the users resource (admin management), the embedded
# addresses and the wishlist, plus the password rules shared with auth.

from typing import Optional

from pydantic import EmailStr, Field, ValidationInfo, field_validator

from .common import PyObjectId, StorefrontModel, StorefrontUpdate

PHONE_PATTERN = r"^\+?[0-9][0-9 \-]{6,18}[0-9]$"


def check_password_strength(value: str) -> str:
    """Ensures password is at least 10 characters with a lowercase, an uppercase, a digit and a symbol."""
    if len(value) < 10:
        raise ValueError("password must be at least 10 characters")
    if not any(char.islower() for char in value):
        raise ValueError("password must contain at least one lowercase letter")
    if not any(char.isupper() for char in value):
        raise ValueError("password must contain at least one uppercase letter")
    if not any(char.isdigit() for char in value):
        raise ValueError("password must contain at least one digit")
    if all(char.isalnum() for char in value):
        raise ValueError("password must contain at least one symbol")
    return value


def check_password_match(value: str, info: ValidationInfo) -> str:
    """Ensures password and confirmPassword fields match."""
    if "password" not in info.data:
        raise ValueError("please fill password field first.")
    if value != info.data["password"]:
        raise ValueError("password and confirm password must be same")
    return value


# --- User management ---
class UserCreate(StorefrontModel):
    name: str = Field(..., min_length=2, max_length=128)
    email: EmailStr
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    role: Optional[int] = Field(default=None, ge=0, le=2)

    password_strength = field_validator("password")(check_password_strength)
    password_match = field_validator("confirm_password")(check_password_match)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"confirm_password"})


class UserUpdate(StorefrontUpdate):
    name: Optional[str] = Field(default=None, min_length=2, max_length=128)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    role: Optional[int] = Field(default=None, ge=0, le=2)


# --- Addresses ---
class AddressCreate(StorefrontModel):
    alias: str = Field(..., min_length=2, max_length=30)
    details: str = Field(..., min_length=2, max_length=128)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    pincode: str = Field(..., pattern=r"^[0-9]{3,10}$")
    city: str = Field(..., min_length=2, max_length=32)
    state: str = Field(..., min_length=2, max_length=32)
    country: str = Field(..., min_length=2, max_length=32)


# --- Wishlist ---
class WishlistAdd(StorefrontModel):
    product_id: PyObjectId = Field(..., alias="productId")
