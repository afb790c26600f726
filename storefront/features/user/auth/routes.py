# storefront/features/user/auth/routes.py

# This file defines FastAPI API endpoints specific to user authentication
# (signup, login, logout, password change and password reset).

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response, status
from pydantic import AnyHttpUrl

from ....config.settings import settings
from ....db.collections import Collections
from ....db.mongo_client import get_collections
from ....models.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    VerifyResetPasswordRequest,
)
from ....shared.responses import success
from . import service as auth_service
from .dependencies import AUTH_COOKIE, AuthContext, auth_guard, get_reset_service
from .security import create_access_token
from .service import PasswordResetService, client_fingerprint

logger = logging.getLogger(__name__)

# --- Define API Router for this feature ---
router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)

authenticated = auth_guard(authenticated=True)
unauthenticated = auth_guard(authenticated=False)


# --- Cookie helpers ---
def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        AUTH_COOKIE,
        f"Bearer {token}",
        max_age=settings.AUTH_COOKIE_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.is_production,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(AUTH_COOKIE, httponly=True, secure=settings.is_production)


def _session_response(user: dict, status_code: int = status.HTTP_200_OK) -> Response:
    token = create_access_token(str(user["_id"]))
    response = success({"token": token, "user": user}, status_code).to_response()
    set_auth_cookie(response, token)
    return response


# --- Endpoints ---

@router.get("")
async def get_logged_user(auth: AuthContext = Depends(authenticated)):
    return success({"token": auth.token, "user": auth.user}).to_response()


@router.post("/signup", dependencies=[Depends(unauthenticated)])
async def post_signup(body: SignupRequest, collections: Collections = Depends(get_collections)):
    user = await auth_service.signup(collections, body)
    return _session_response(user, status.HTTP_201_CREATED)


@router.post("/login", dependencies=[Depends(unauthenticated)])
async def post_login(body: LoginRequest, collections: Collections = Depends(get_collections)):
    user = await auth_service.login(collections, body.email, body.password)
    logger.info("User %s logged in", user["_id"])
    return _session_response(user)


@router.post("/logout", dependencies=[Depends(authenticated)])
async def post_logout():
    response = success(None, status.HTTP_204_NO_CONTENT).to_response()
    clear_auth_cookie(response)
    return response


@router.patch("/change-password")
async def patch_change_password(
    body: ChangePasswordRequest,
    auth: AuthContext = Depends(authenticated),
    collections: Collections = Depends(get_collections),
):
    user = await auth_service.change_password(collections, auth.user["_id"], body.current_password, body.password)
    token = create_access_token(str(user["_id"]))
    response = success({"token": token}).to_response()
    set_auth_cookie(response, token)
    return response


@router.post("/forgot-password", dependencies=[Depends(unauthenticated)])
async def post_forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    forward_to: Optional[AnyHttpUrl] = Query(default=None, alias="forwardTo"),
    reset_service: PasswordResetService = Depends(get_reset_service),
):
    request_id = await reset_service.issue(
        body.email,
        client_fingerprint(request),
        forward_to=str(forward_to) if forward_to else None,
        background_tasks=background_tasks,
    )
    return success({"requestId": request_id}).to_response()


@router.post("/verify-reset-password", dependencies=[Depends(unauthenticated)])
async def post_verify_reset_password(
    body: VerifyResetPasswordRequest,
    request: Request,
    token: Optional[str] = Query(default=None),
    reset_service: PasswordResetService = Depends(get_reset_service),
):
    verification, user = await reset_service.confirm(
        body.request_id, client_fingerprint(request), otp=body.otp, token=token,
    )
    return success({
        "match": verification.match,
        "isVerified": verification.is_verified,
        "token": create_access_token(str(user["_id"])),
    }).to_response()


@router.post("/reset-password", dependencies=[Depends(unauthenticated)])
async def post_reset_password(
    body: ResetPasswordRequest,
    request: Request,
    token: Optional[str] = Query(default=None),
    reset_service: PasswordResetService = Depends(get_reset_service),
):
    user = await reset_service.reset(
        body.request_id, client_fingerprint(request), body.password, otp=body.otp, token=token,
    )
    return _session_response(user)
