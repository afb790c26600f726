# storefront/features/user/auth/dependencies.py

# This file contains FastAPI dependency functions for authentication and authorization.

from datetime import timezone
from typing import Any, Callable, Dict, Optional, Sequence

from bson import ObjectId
from fastapi import Depends, Request
from pydantic import BaseModel

from ....db.collections import Collections, UserRoles
from ....db.mongo_client import get_collections
from ....shared.emails import Mailer, get_mailer
from ....shared.exceptions import AuthFailure, PermissionDenied
from .security import verify_token
from .service import PasswordResetService

AUTH_COOKIE = "jwt"


class AuthContext(BaseModel):
    """The verified token and the logged user (without password); both None on public routes."""

    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None

    model_config = {"arbitrary_types_allowed": True}


def extract_token(request: Request) -> Optional[str]:
    """Reads the session token from the `jwt` cookie or the Authorization header."""
    token = request.cookies.get(AUTH_COOKIE) or request.headers.get("authorization")
    if token and token.startswith("Bearer "):
        token = token[len("Bearer "):]
    return token or None


# --- Guard factory ---
def auth_guard(
    authenticated: bool = True,
    roles: Optional[Sequence[UserRoles]] = None,
) -> Callable[..., Any]:
    """
    Builds a dependency guarding a route.

    authenticated=True requires a valid session token whose user still exists,
    has not changed password since the token was issued and, when `roles` is
    given, holds one of them. authenticated=False admits only callers that
    carry no token at all.
    """
    allowed = {int(role) for role in roles} if roles is not None else None

    async def guard(request: Request, collections: Collections = Depends(get_collections)) -> AuthContext:
        token = extract_token(request)

        if not authenticated:
            if token:
                raise AuthFailure("must be unauthenticated", data={"token": token})
            return AuthContext()

        if not token:
            raise AuthFailure("no token provided")

        payload = verify_token(token)
        if payload is None:
            raise AuthFailure("invalid authentication token", data={"token": token})

        user_id = payload.get("id")
        if not isinstance(user_id, str) or not ObjectId.is_valid(user_id):
            raise AuthFailure("invalid authentication token", data={"token": token})

        user = await collections.users.find_one({"_id": ObjectId(user_id)})
        if user is None:
            raise AuthFailure("failed to find logged user", data={"token": token})

        changed_at = user.get("passwordChangedAt")
        if changed_at is not None:
            if changed_at.tzinfo is None:
                changed_at = changed_at.replace(tzinfo=timezone.utc)
            # 1s of slack: the token minted right after a password change must stay valid
            if changed_at.timestamp() - 1 >= payload.get("iat", 0):
                raise AuthFailure("password has been changed, please log in again", data={"token": token})

        if allowed is not None and user.get("role") not in allowed:
            raise PermissionDenied("you dont have an authorization to access this route")

        return AuthContext(token=token, user=user)

    return guard


# --- Service dependency ---
def get_reset_service(
    collections: Collections = Depends(get_collections),
    mailer: Mailer = Depends(get_mailer),
) -> PasswordResetService:
    return PasswordResetService(collections.users, collections.tokens, mailer)
