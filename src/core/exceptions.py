"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the client core."""

    # Gateway errors
    GATEWAY_ERROR = "GATEWAY_ERROR"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    POST_CONTENT_INVALID = "POST_CONTENT_INVALID"
    PROFILE_INVALID = "PROFILE_INVALID"
    CROP_REGION_INVALID = "CROP_REGION_INVALID"

    # Concurrency
    OPERATION_IN_PROGRESS = "OPERATION_IN_PROGRESS"

    # Avatar pipeline stages
    AVATAR_SELECTION_FAILED = "AVATAR_SELECTION_FAILED"
    AVATAR_RENDER_FAILED = "AVATAR_RENDER_FAILED"
    AVATAR_UPLOAD_FAILED = "AVATAR_UPLOAD_FAILED"
    AVATAR_COMMIT_FAILED = "AVATAR_COMMIT_FAILED"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class GatewayError(AppException):
    """A remote call to the data gateway failed or was rejected."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        code: str | None = None,
        details: Any | None = None,
    ) -> None:
        self.code = code
        super().__init__(
            error_code=ErrorCode.GATEWAY_ERROR,
            message=message,
            status_code=status_code,
            details=details,
        )


class RecordNotFoundError(GatewayError):
    """A single-row fetch matched no rows."""

    def __init__(self, table: str, code: str | None = "PGRST116") -> None:
        super().__init__(
            message=f"No rows found in {table}",
            status_code=406,
            code=code,
            details={"table": table},
        )
        self.error_code = ErrorCode.RECORD_NOT_FOUND


class PostValidationError(AppException):
    """Post text rejected at the input boundary."""

    def __init__(self, message: str, length: int) -> None:
        super().__init__(
            error_code=ErrorCode.POST_CONTENT_INVALID,
            message=message,
            status_code=400,
            details={"length": length},
        )


class ProfileValidationError(AppException):
    """Profile form rejected at the input boundary."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_INVALID,
            message=message,
            status_code=400,
            details={"field": field},
        )


class OperationInProgressError(AppException):
    """A guarded pipeline was triggered again while still in flight."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            error_code=ErrorCode.OPERATION_IN_PROGRESS,
            message=f"{operation} already in progress",
            status_code=409,
            details={"operation": operation},
        )


class AvatarSelectionError(AppException):
    """No usable image was selected."""

    def __init__(self, message: str = "No image selected") -> None:
        super().__init__(
            error_code=ErrorCode.AVATAR_SELECTION_FAILED,
            message=message,
            status_code=400,
        )


class CropRegionError(AppException):
    """Crop region is not a positive square."""

    def __init__(self, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.CROP_REGION_INVALID,
            message=message,
            status_code=400,
        )


class AvatarRenderError(AppException):
    """The crop could not be rasterized."""

    def __init__(self, message: str = "Failed to crop or upload image") -> None:
        super().__init__(
            error_code=ErrorCode.AVATAR_RENDER_FAILED,
            message=message,
            status_code=422,
        )


class AvatarUploadError(AppException):
    """The rasterized avatar could not be stored."""

    def __init__(self, reason: str, key: str) -> None:
        super().__init__(
            error_code=ErrorCode.AVATAR_UPLOAD_FAILED,
            message=f"Upload failed: {reason}",
            status_code=502,
            details={"key": key},
        )


class AvatarCommitError(AppException):
    """The profile could not be repointed to the uploaded avatar."""

    def __init__(self, reason: str, key: str) -> None:
        super().__init__(
            error_code=ErrorCode.AVATAR_COMMIT_FAILED,
            message=f"Database update failed: {reason}",
            status_code=502,
            details={"orphaned_key": key},
        )
