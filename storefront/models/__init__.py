# storefront/models/__init__.py

# This file makes the 'models' directory a Python package
# and is used to manage imports from this package.

from .common import PyObjectId, StorefrontModel, StorefrontUpdate
from .catalog import (
    BrandCreate,
    BrandUpdate,
    CategoryCreate,
    CategoryUpdate,
    ProductCreate,
    ProductUpdate,
    SubcategoryCreate,
    SubcategoryUpdate,
)
from .coupon import CouponCreate, CouponUpdate
from .review import ReviewCreate, ReviewUpdate
from .user import AddressCreate, UserCreate, UserUpdate, WishlistAdd
from .auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    VerifyResetPasswordRequest,
)
from .reset_token import ClientFingerprint, ResetToken

__all__ = [
    "PyObjectId",
    "StorefrontModel",
    "StorefrontUpdate",
    "BrandCreate",
    "BrandUpdate",
    "CategoryCreate",
    "CategoryUpdate",
    "ProductCreate",
    "ProductUpdate",
    "SubcategoryCreate",
    "SubcategoryUpdate",
    "CouponCreate",
    "CouponUpdate",
    "ReviewCreate",
    "ReviewUpdate",
    "AddressCreate",
    "UserCreate",
    "UserUpdate",
    "WishlistAdd",
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "LoginRequest",
    "ResetPasswordRequest",
    "SignupRequest",
    "VerifyResetPasswordRequest",
    "ClientFingerprint",
    "ResetToken",
]
