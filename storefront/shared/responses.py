# storefront/shared/responses.py

# JSend-style response envelope: every response is exactly one of
# success{data}, fail{data} or error{message}.

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from bson import ObjectId


class Status(str, Enum):
    SUCCESS = "success"
    FAILED = "fail"
    ERROR = "error"


class ApiResponse:
    """A tagged envelope plus the HTTP status it should be written with."""

    def __init__(
        self,
        status: Status,
        status_code: int,
        data: Any = None,
        message: Optional[str] = None,
    ):
        self.status = status
        self.status_code = status_code
        self.data = data
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        if self.status is Status.ERROR:
            return {"status": self.status.value, "message": self.message}
        return {"status": self.status.value, "data": self.data}

    def to_response(self) -> Response:
        """Hands the envelope over to the HTTP layer."""
        # 204 must not carry a body
        if self.status_code == status.HTTP_204_NO_CONTENT:
            return Response(status_code=self.status_code)
        content = jsonable_encoder(self.to_dict(), custom_encoder={ObjectId: str})
        return JSONResponse(status_code=self.status_code, content=content)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiResponse):
            return NotImplemented
        return self.status_code == other.status_code and self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"ApiResponse({self.status.value}, {self.status_code})"


def success(data: Any = None, status_code: int = status.HTTP_200_OK) -> ApiResponse:
    return ApiResponse(Status.SUCCESS, status_code, data=data)


def failed(data: Dict[str, Any], status_code: int) -> ApiResponse:
    return ApiResponse(Status.FAILED, status_code, data=data)


def error(message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> ApiResponse:
    return ApiResponse(Status.ERROR, status_code, message=message)
