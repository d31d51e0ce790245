from typing import Any

from fastapi import status

INTERNAL_ERROR = "INTERNAL_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"

# Canonical (code, safe message) pairs for statuses raised without an AppError
HTTP_ERRORS: dict[int, tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("BAD_REQUEST", "Malformed request"),
    status.HTTP_401_UNAUTHORIZED: ("UNAUTHENTICATED", "Authentication required"),
    status.HTTP_403_FORBIDDEN: ("PERMISSION_DENIED", "Insufficient permissions"),
    status.HTTP_404_NOT_FOUND: ("NOT_FOUND", "Resource not found"),
}


class AppError(Exception):
    code: str = "APP_ERROR"
    message: str = "Application error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    details: Any | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
    ):
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        if details is not None:
            self.details = details

        super().__init__(self.message)


class PermissionError(AppError):  # type: ignore[override]
    """The caller's role does not meet the rule for a resource operation."""

    code, message = HTTP_ERRORS[status.HTTP_403_FORBIDDEN]
    status_code = status.HTTP_403_FORBIDDEN


def error_payload(
    code: str,
    message: str,
    details: Any | None = None,
) -> dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details}}


def resolve_error_code(status_code: int) -> str:
    if status_code in HTTP_ERRORS:
        return HTTP_ERRORS[status_code][0]
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return INTERNAL_ERROR
    return UNKNOWN_ERROR


def resolve_error_message(status_code: int) -> str:
    if status_code in HTTP_ERRORS:
        return HTTP_ERRORS[status_code][1]
    return "Request failed"
