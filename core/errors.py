from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    OWNER_NOT_FOUND = "OWNER_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    GEOCODING_FAILED = "GEOCODING_FAILED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    ASSET_UPLOAD_INVALID = "ASSET_UPLOAD_INVALID"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(HTTPException):
    def __init__(
        self,
        *,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        detail = {
            "message": message,
            "code": code.value,
            "details": details,
        }
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


def auth_invalid_token(details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code=ErrorCode.AUTH_INVALID_TOKEN,
        message="Invalid token",
        details=details,
    )


def not_place_owner() -> AppException:
    # No place details in the payload: a non-owner learns nothing beyond the refusal.
    return AppException(
        status_code=status.HTTP_403_FORBIDDEN,
        code=ErrorCode.AUTH_PERMISSION_DENIED,
        message="You are not allowed to modify this place",
    )


def resource_not_found(resource: str, resource_id: str | None = None) -> AppException:
    details = {"resource": resource}
    if resource_id:
        details["resource_id"] = resource_id
    return AppException(
        status_code=status.HTTP_404_NOT_FOUND,
        code=ErrorCode.RESOURCE_NOT_FOUND,
        message=f"{resource} not found",
        details=details,
    )


def owner_not_found(user_id: str) -> AppException:
    return AppException(
        status_code=status.HTTP_404_NOT_FOUND,
        code=ErrorCode.OWNER_NOT_FOUND,
        message="Could not find user for the provided id",
        details={"resource": "User", "resource_id": user_id},
    )


def validation_failed(message: str, *, field: str | None = None, details: Any | None = None) -> AppException:
    if details is None and field is not None:
        details = {"field": field}
    return AppException(
        status_code=422,
        code=ErrorCode.VALIDATION_FAILED,
        message=message,
        details=details,
    )


def geocoding_failed(
    message: str = "Could not find location for the specified address",
    *,
    status_code: int = 422,
    details: Any | None = None,
) -> AppException:
    return AppException(
        status_code=status_code,
        code=ErrorCode.GEOCODING_FAILED,
        message=message,
        details=details,
    )


def store_unavailable(operation: str, details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        code=ErrorCode.STORE_UNAVAILABLE,
        message="Storage is unavailable, please try again later",
        details={"operation": operation, "reason": details} if details else {"operation": operation},
    )
