# storefront/shared/utils.py

# This file contains common utility functions used across the backend.

import re
import unicodedata
from typing import Any

from bson import ObjectId

from .exceptions import ValidationFailure


def slugify(value: str) -> str:
    """Lowercase, ASCII-only, dash separated: 'Men's Shirts' -> 'mens-shirts'."""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value.lower()).strip()
    return re.sub(r"[\s_-]+", "-", value).strip("-")


def to_object_id(value: Any, field: str = "id") -> ObjectId:
    """Parses a path/body id, raising a 400 instead of letting bson fail later."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValidationFailure("Invalid format", data={"field": field, "value": str(value)})
