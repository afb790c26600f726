# storefront/models/review.py

from typing import Optional

from pydantic import Field

from .common import PyObjectId, StorefrontModel, StorefrontUpdate


class ReviewCreate(StorefrontModel):
    description: Optional[str] = Field(default=None, min_length=2, max_length=256)
    ratings: float = Field(..., ge=1, le=5)
    product: PyObjectId


class ReviewUpdate(StorefrontUpdate):
    description: Optional[str] = Field(default=None, min_length=2, max_length=256)
    ratings: Optional[float] = Field(default=None, ge=1, le=5)
