# storefront/models/reset_token.py

# This file defines the Pydantic model for the password reset token document
# stored in the MongoDB 'tokens' collection.

import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import PyObjectId


class ClientFingerprint(BaseModel):
    """The device a reset request was issued to; verification must come from the same one."""

    ip: str = ""
    agent: str = ""


# --- ResetToken Model ---
class ResetToken(BaseModel):
    """
    One live password reset request per user.

    `token` and `otp` hold bcrypt hashes, never the plain secrets. Documents
    expire through the TTL index on `createdAt`.
    """

    id: Optional[PyObjectId] = Field(alias="_id", default=None)

    uid: PyObjectId = Field(...) # Reference to the user this request belongs to
    email: str = Field(...)
    token: str = Field(...)
    otp: str = Field(...)
    request_id: str = Field(..., alias="requestId")
    client: ClientFingerprint = Field(default_factory=ClientFingerprint)
    created_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        alias="createdAt",
    )

    # Pydantic Model Configuration
    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
    }
