# storefront/features/user/auth/security.py

# This file contains core security utilities for password hashing and JWT token management.

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from passlib.context import CryptContext
from jose import jwt, JWTError

from ....config.settings import settings

# --- Hashing Setup ---
# Salts are handled by bcrypt; rounds come from settings so tests can lower them.
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.HASH_ROUNDS)


# --- Password Hashing Functions ---
def hash_password(password: str) -> str:
    """Hashes a plain text password, peppered with HASH_SECRET."""
    return pwd_context.hash(f"{settings.HASH_SECRET}{password}")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(f"{settings.HASH_SECRET}{plain_password}", hashed_password)


# --- Reset Secret Hashing ---
def hash_secret(secret: str) -> str:
    return pwd_context.hash(secret)


def verify_secret(secret: Optional[str], hashed_secret: Optional[str]) -> bool:
    """Constant-time comparison; an empty secret never matches."""
    if not secret or not hashed_secret:
        return False
    return pwd_context.verify(secret, hashed_secret)


def generate_reset_secrets() -> Dict[str, str]:
    """
    Creates the two secrets of a password reset request.

    Returns:
        token/otp in plain text (sent to the user) and their hashes (stored).
    """
    token = secrets.token_hex(32)
    otp = f"{secrets.randbelow(10 ** 6):06d}"
    return {
        "token": token,
        "hashed_token": hash_secret(token),
        "otp": otp,
        "hashed_otp": hash_secret(otp),
    }


# --- JWT Token Functions ---
def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Creates a signed session token for `user_id`.

    The payload carries `id`, `iat` and `exp` plus the configured issuer and
    audience, which verify_token checks.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode = {
        "id": user_id,
        "iat": int(now.timestamp()),
        "exp": expire,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Returns the decoded payload, or None for a bad signature, wrong issuer/audience or expiry."""
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError:
        return None
