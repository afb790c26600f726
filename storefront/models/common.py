# storefront/models/common.py

# Shared building blocks for the request/document models.

from typing import Annotated, Any

from bson import ObjectId
from pydantic import BaseModel, PlainSerializer, PlainValidator, WithJsonSchema


def _validate_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError("Invalid format")


# --- Custom Type for handling MongoDB ObjectId ---
# Accepts an ObjectId or its 24-hex string form; exported as a string in JSON.
PyObjectId = Annotated[
    ObjectId,
    PlainValidator(_validate_object_id),
    PlainSerializer(str, when_used="json"),
    WithJsonSchema({"type": "string", "example": "65f2a5b1b3727d9c4a7e1a0b"}),
]


class StorefrontModel(BaseModel):
    """Base for request bodies: camelCase aliases on the wire, snake_case in code."""

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "str_strip_whitespace": True,
    }

    def to_document(self) -> dict:
        """Fields the client actually sent, keyed by their stored (camelCase) names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class StorefrontUpdate(StorefrontModel):
    """Base for partial updates: every field is optional and a null leaves the stored value alone."""

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
