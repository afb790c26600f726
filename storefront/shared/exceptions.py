# storefront/shared/exceptions.py

# Domain exceptions raised by services and the CRUD layer.
# The global handlers in api/main.py turn them into "fail" envelopes.

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """Base class for every expected, client-facing failure."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.data = data or {}

    def to_dict(self) -> Dict[str, Any]:
        """Payload placed under the envelope's `data` key."""
        return {"message": self.message, **self.data}


class ValidationFailure(StorefrontError):
    """Malformed or missing input."""

    status_code = 400


class NotFoundError(StorefrontError):
    """Referenced document does not exist."""

    status_code = 404


class ConflictError(StorefrontError):
    """Unique constraint would be violated."""

    status_code = 409


class AuthFailure(StorefrontError):
    """Bad credentials, missing/expired token or a stale session."""

    status_code = 401


class PermissionDenied(StorefrontError):
    """Authenticated, but the role is not allowed on this route."""

    status_code = 403
