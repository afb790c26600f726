# storefront/features/user/auth/__init__.py

# Session and reset-secret primitives of the auth feature. Routes and
# dependencies are imported from their modules directly: db/collections.py
# imports this package, so it must not pull in anything that needs the
# collections layer.

from .security import (
    create_access_token,
    generate_reset_secrets,
    hash_password,
    verify_password,
    verify_secret,
    verify_token,
)

__all__ = [
    "create_access_token",
    "generate_reset_secrets",
    "hash_password",
    "verify_password",
    "verify_secret",
    "verify_token",
]
