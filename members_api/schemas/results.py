"""
Service Result Types
Tagged success/error values returned by the member service.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Error taxonomy shared by services and the HTTP layer."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.MEMBER_NOT_FOUND: 404,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.INTERNAL_ERROR: 500,
}


def status_for_error(code) -> int:
    """Map an error code to an HTTP status; unknown codes are 500."""
    try:
        return _STATUS_BY_CODE[ErrorCode(code)]
    except ValueError:
        return 500


@dataclass
class ServiceError:
    code: ErrorCode
    message: str
    details: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


@dataclass
class ServiceResult(Generic[T]):
    """Either ``data`` (success) or ``error`` (failure), never both."""
    success: bool
    data: Optional[T] = None
    error: Optional[ServiceError] = field(default=None)

    @classmethod
    def ok(cls, data: T) -> "ServiceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, message: str, details: Any = None) -> "ServiceResult[T]":
        return cls(success=False, error=ServiceError(code=code, message=message, details=details))

    def to_http(self) -> Tuple[int, Any]:
        """Status code and body for the HTTP envelope."""
        if self.success:
            return 200, self.data
        return status_for_error(self.error.code), self.error.to_dict()
