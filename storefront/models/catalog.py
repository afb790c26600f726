# storefront/models/catalog.py

# Request bodies for the catalog resources: categories, subcategories,
# brands and products. Update models make every field optional.

import re
from typing import List, Optional

from pydantic import Field, field_validator

from .common import PyObjectId, StorefrontModel, StorefrontUpdate

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_RGB_COLOR = re.compile(
    r"^rgba?\(\s*\d{1,3}%?\s*,\s*\d{1,3}%?\s*,\s*\d{1,3}%?\s*(,\s*(0|1|0?\.\d+|\d{1,3}%)\s*)?\)$"
)


# --- Category ---
class CategoryCreate(StorefrontModel):
    name: str = Field(..., min_length=3, max_length=32)
    image: Optional[str] = None


class CategoryUpdate(StorefrontUpdate):
    name: Optional[str] = Field(default=None, min_length=3, max_length=32)
    image: Optional[str] = None


# --- Subcategory ---
class SubcategoryCreate(StorefrontModel):
    name: str = Field(..., min_length=2, max_length=32)
    # filled from the path on nested routes
    category: Optional[PyObjectId] = None


class SubcategoryUpdate(StorefrontUpdate):
    name: Optional[str] = Field(default=None, min_length=2, max_length=32)
    category: Optional[PyObjectId] = None


# --- Brand ---
class BrandCreate(StorefrontModel):
    name: str = Field(..., min_length=2, max_length=32)
    image: Optional[str] = None


class BrandUpdate(StorefrontUpdate):
    name: Optional[str] = Field(default=None, min_length=2, max_length=32)
    image: Optional[str] = None


# --- Product ---
def _check_colors(value: Optional[List[str]]) -> Optional[List[str]]:
    """Each color must be a valid HEX or RGB(A) color."""
    for color in value or []:
        if not (_HEX_COLOR.match(color) or _RGB_COLOR.match(color)):
            raise ValueError("Each color must be a valid HEX or RGB(A) color")
    return value


class ProductCreate(StorefrontModel):
    title: str = Field(..., min_length=3, max_length=128)
    description: str = Field(..., min_length=20, max_length=512)
    quantity: int = Field(..., ge=0)
    sold: int = Field(default=0, ge=0)
    price: float = Field(..., ge=0)
    price_after_discount: Optional[float] = Field(default=None, ge=0, alias="priceAfterDiscount")
    colors: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    image_cover: str = Field(..., min_length=1, alias="imageCover")
    category: PyObjectId
    subcategory: List[PyObjectId] = Field(default_factory=list)
    brand: Optional[PyObjectId] = None
    ratings_average: Optional[float] = Field(default=None, ge=1, le=5, alias="ratingsAverage")
    rating_quantity: int = Field(default=0, ge=0, alias="ratingQuantity")

    check_colors = field_validator("colors")(_check_colors)

    def to_document(self) -> dict:
        # defaults are part of a new product
        return self.model_dump(by_alias=True, exclude_none=True)


class ProductUpdate(StorefrontUpdate):
    title: Optional[str] = Field(default=None, min_length=3, max_length=128)
    description: Optional[str] = Field(default=None, min_length=20, max_length=512)
    quantity: Optional[int] = Field(default=None, ge=0)
    sold: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    price_after_discount: Optional[float] = Field(default=None, ge=0, alias="priceAfterDiscount")
    colors: Optional[List[str]] = None
    images: Optional[List[str]] = None
    image_cover: Optional[str] = Field(default=None, min_length=1, alias="imageCover")
    category: Optional[PyObjectId] = None
    subcategory: Optional[List[PyObjectId]] = None
    brand: Optional[PyObjectId] = None
    ratings_average: Optional[float] = Field(default=None, ge=1, le=5, alias="ratingsAverage")
    rating_quantity: Optional[int] = Field(default=None, ge=0, alias="ratingQuantity")

    check_colors = field_validator("colors")(_check_colors)
