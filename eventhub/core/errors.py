"""
Application error taxonomy.

Services raise these; the GraphQL layer turns them into errors carrying a
stable ``code`` and an HTTP-like ``statusCode`` in their extensions.
"""
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    code: ErrorCode = ErrorCode.BAD_REQUEST
    status_code: int = 400

    def __init__(self, message: str, code: Optional[ErrorCode] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    @property
    def extensions(self) -> Dict[str, Any]:
        return {"code": self.code.value, "statusCode": self.status_code}


class AuthenticationError(AppError):
    code = ErrorCode.UNAUTHENTICATED
    status_code = 401


class PermissionDeniedError(AppError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 403


class NotFoundError(AppError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class BadRequestError(AppError):
    code = ErrorCode.BAD_REQUEST
    status_code = 400


class InputValidationError(AppError):
    """Malformed input; ``details`` lists one entry per offending field."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, details: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.details = details or []

    @classmethod
    def from_pydantic(cls, exc) -> "InputValidationError":
        details = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ())) or "input"
            details.append({"field": field, "message": err.get("msg", "Invalid value")})
        return cls("Invalid input", details)

    @property
    def extensions(self) -> Dict[str, Any]:
        extensions = super().extensions
        extensions["details"] = self.details
        return extensions


class InternalError(AppError):
    code = ErrorCode.INTERNAL_ERROR
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
