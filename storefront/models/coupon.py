# storefront/models/coupon.py

import datetime
from typing import Optional

from pydantic import Field, field_validator

from ..shared.utils import slugify
from .common import StorefrontModel, StorefrontUpdate


def _slug_name(value: Optional[str]) -> Optional[str]:
    # coupon codes are stored slugified so lookups are case and spacing insensitive
    return slugify(value) if value else value


class CouponCreate(StorefrontModel):
    name: str = Field(..., min_length=2, max_length=75)
    expires_at: datetime.datetime = Field(..., alias="expiresAt")
    discount: float

    normalize_name = field_validator("name")(_slug_name)


class CouponUpdate(StorefrontUpdate):
    name: Optional[str] = Field(default=None, min_length=2, max_length=75)
    expires_at: Optional[datetime.datetime] = Field(default=None, alias="expiresAt")
    discount: Optional[float] = None

    normalize_name = field_validator("name")(_slug_name)
