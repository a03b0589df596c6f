# Pydantic schemas and envelope types
from members_api.schemas.member import MemberCreate, MemberUpdate, LISTING_PROJECTION, NULLABLE_FIELDS
from members_api.schemas.results import ErrorCode, ServiceError, ServiceResult, status_for_error
from members_api.schemas.http import ApiRequest, ApiResponse, UploadedFile

__all__ = [
    "MemberCreate", "MemberUpdate", "LISTING_PROJECTION", "NULLABLE_FIELDS",
    "ErrorCode", "ServiceError", "ServiceResult", "status_for_error",
    "ApiRequest", "ApiResponse", "UploadedFile",
]
