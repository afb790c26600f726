# storefront/features/user/auth/service.py

# This file contains the core business logic for user authentication features:
# signup, login, password change and the password reset request flow
# (issue -> verify -> reset).

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from bson import ObjectId
from fastapi import BackgroundTasks, Request
from pydantic import BaseModel, Field

from ....config.settings import settings
from ....db.collections import Collections
from ....db.document_collection import Document, DocumentCollection
from ....models.auth import SignupRequest
from ....models.reset_token import ClientFingerprint, ResetToken
from ....shared.emails import Mailer, render_reset_password_email
from ....shared.exceptions import AuthFailure, ConflictError, NotFoundError, ValidationFailure
from .security import generate_reset_secrets, verify_password, verify_secret

logger = logging.getLogger(__name__)

NO_RESET_REQUEST = "no reset password request found for this device maybe expired or invalid request id"
INVALID_RESET_METADATA = "invalid reset password request metadata"
USER_GONE = "failed to find user, maybe user has been deleted"


def client_fingerprint(request: Request) -> ClientFingerprint:
    """The requesting device: remote address plus the raw User-Agent header."""
    return ClientFingerprint(
        ip=request.client.host if request.client else "",
        agent=request.headers.get("user-agent", ""),
    )


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


# --- Account functions ---

async def signup(collections: Collections, body: SignupRequest) -> Document:
    email = body.email.lower()
    if await collections.users.find_one({"email": email}, {"_id": True}):
        raise ConflictError(f"User {email} is already exists", data={"email": email})

    document = {"name": body.name, "email": email, "password": body.password}
    if body.phone:
        document["phone"] = body.phone
    user = await collections.users.insert(document)
    logger.info("New user signed up: %s", user["_id"])
    return user


async def login(collections: Collections, email: str, password: str) -> Document:
    """Returns the user (without password) or raises AuthFailure."""
    email = email.lower()
    user = await collections.users.find_raw({"email": email})
    if user is None:
        raise AuthFailure("no user exists with this email address", data={"email": email})

    is_match = await asyncio.to_thread(verify_password, password, user.get("password"))
    if not is_match:
        raise AuthFailure("email or password is incorrect", data={"email": email})

    return collections.users.serialize(user)


async def change_password(collections: Collections, user_id: ObjectId, current_password: str, password: str) -> Document:
    user = await collections.users.find_raw({"_id": user_id})
    if user is None:
        raise AuthFailure("failed to find logged user")

    is_match = await asyncio.to_thread(verify_password, current_password, user.get("password"))
    if not is_match:
        raise ValidationFailure("password does not match", data={"field": "currentPassword"})

    updated = await collections.users.find_one_and_update({"_id": user_id}, {"password": password})
    if updated is None:
        raise AuthFailure("failed to find logged user")
    logger.info("Password changed for user %s", user_id)
    return updated


# --- Password reset ---

class ResetVerification(BaseModel):
    """Outcome of checking the secrets presented for a reset request."""

    match: Dict[str, bool] = Field(default_factory=lambda: {"token": False, "otp": False})
    is_verified: bool = False
    token_doc: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"arbitrary_types_allowed": True}


class PasswordResetService:
    """
    Issues, verifies and consumes password reset requests.

    A request is bound to the device (ip + user agent) that issued it and
    can be proven with either secret sent by email: the 6-digit code (`otp`)
    or the link token. At most one request is live per user.
    """

    def __init__(self, users: DocumentCollection, tokens: DocumentCollection, mailer: Mailer):
        self.users = users
        self.tokens = tokens
        self.mailer = mailer

    async def issue(
        self,
        email: str,
        client: ClientFingerprint,
        forward_to: Optional[str] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> str:
        """
        Creates (or replaces) the reset request of the user owning `email` and
        emails its secrets.

        Returns:
            The requestId the client must present on verify / reset.
        """
        user = await self.users.find_one({"email": email.lower()})
        if user is None:
            raise NotFoundError(f"{email} does not exist", data={"email": email})

        secrets = await asyncio.to_thread(generate_reset_secrets)
        request_id = uuid.uuid4().hex

        document = ResetToken(
            uid=user["_id"],
            email=user["email"],
            token=secrets["hashed_token"],
            otp=secrets["hashed_otp"],
            request_id=request_id,
            client=client,
        ).model_dump(by_alias=True, exclude_none=True)

        # one atomic upsert keyed by uid: a concurrent request replaces, never duplicates
        await self.tokens.find_one_and_replace({"uid": user["_id"]}, document, upsert=True)
        logger.info("Issued password reset request %s for user %s", request_id, user["_id"])

        reset_url = f"{forward_to}?token={secrets['token']}" if forward_to else None
        html = render_reset_password_email(secrets["otp"], reset_url, client.agent, client.ip)
        if background_tasks is not None:
            background_tasks.add_task(self.mailer.send, user["email"], "Password Reset", html)
        else:
            await self.mailer.send(user["email"], "Password Reset", html)

        return request_id

    async def verify(
        self,
        request_id: str,
        client: ClientFingerprint,
        otp: Optional[str] = None,
        token: Optional[str] = None,
    ) -> Optional[ResetVerification]:
        """
        Looks up the request issued to this exact device and compares each
        supplied secret with its stored hash.

        Returns:
            None when no live request exists for (requestId, device).
        """
        token_doc = await self.tokens.find_one({
            "requestId": request_id,
            "client.ip": client.ip,
            "client.agent": client.agent,
        })
        if token_doc is None:
            return None

        # the TTL monitor only runs periodically, expiry is enforced here as well
        created_at = token_doc.get("createdAt")
        if created_at is not None:
            age = datetime.now(timezone.utc) - _as_utc(created_at)
            if age.total_seconds() > settings.RESET_TOKEN_TTL_SECONDS:
                return None

        match = {
            "token": await asyncio.to_thread(verify_secret, token, token_doc.get("token")),
            "otp": await asyncio.to_thread(verify_secret, otp, token_doc.get("otp")),
        }
        return ResetVerification(
            match=match,
            is_verified=match["token"] or match["otp"],
            token_doc=token_doc,
        )

    async def confirm(
        self,
        request_id: str,
        client: ClientFingerprint,
        otp: Optional[str] = None,
        token: Optional[str] = None,
    ) -> Tuple[ResetVerification, Document]:
        """verify() that raises on every negative outcome and loads the request's user."""
        verification = await self.verify(request_id, client, otp=otp, token=token)
        if verification is None:
            raise ValidationFailure(NO_RESET_REQUEST)
        if not verification.is_verified:
            raise ValidationFailure(INVALID_RESET_METADATA)

        user = await self.users.find_one({"_id": verification.token_doc["uid"]})
        if user is None:
            raise ValidationFailure(USER_GONE)
        return verification, user

    async def reset(
        self,
        request_id: str,
        client: ClientFingerprint,
        password: str,
        otp: Optional[str] = None,
        token: Optional[str] = None,
    ) -> Document:
        """Sets the new password and consumes every reset request of the user."""
        _, user = await self.confirm(request_id, client, otp=otp, token=token)

        updated = await self.users.find_one_and_update({"_id": user["_id"]}, {"password": password})
        if updated is None:
            raise ValidationFailure(USER_GONE)

        deleted = await self.tokens.delete_many({"uid": user["_id"]})
        logger.info("Password reset for user %s, %d reset request(s) consumed", user["_id"], deleted)
        return updated
