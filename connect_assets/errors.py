"""
Exception types raised by the asset upload pipeline and the API gateway.
"""
from typing import Optional


class AssetServiceError(Exception):
    """Base class for all errors raised by this package."""


class UnsafePathError(AssetServiceError):
    """Raised for symlinks and other paths that must not be read."""

    def __init__(self, path, message: Optional[str] = None):
        self.path = str(path)
        super().__init__(message or f"refusing to read symlink {self.path!r}")


class InvalidFileTypeError(UnsafePathError):
    """Raised when a path is not a regular file or fails validation."""


class UnsupportedTypeError(InvalidFileTypeError):
    """Raised when a file's extension or content is not an allowed type."""

    def __init__(self, path, extension: str, message: Optional[str] = None):
        self.extension = extension
        super().__init__(
            path,
            message or f"unsupported file extension {extension!r} for {str(path)!r}",
        )


class EmptyInputError(AssetServiceError):
    """Raised when a directory holds no eligible asset files."""

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"no files found in {self.path!r}")


class NoUploadOperationsError(AssetServiceError):
    """Raised when the remote placeholder comes back without upload operations."""

    def __init__(self, file_name: str, asset_id: Optional[str] = None):
        self.file_name = file_name
        self.asset_id = asset_id
        super().__init__(f"no upload operations returned for {file_name!r}")


class UploadOperationError(AssetServiceError):
    """Raised when a single upload operation is invalid or fails."""

    def __init__(self, index: int, message: str, status_code: Optional[int] = None):
        self.index = index
        self.status_code = status_code
        super().__init__(f"upload operation {index}: {message}")


class DeadlineExceededError(AssetServiceError):
    """Raised when the governing deadline fired before a call was made."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"deadline exceeded before {operation}")


class DeliveryError(AssetServiceError):
    """Base for errors raised while waiting on asset delivery."""

    def __init__(self, asset_id: str, last_state: str, message: str):
        self.asset_id = asset_id
        self.last_state = last_state
        super().__init__(message)


class DeliveryFailedError(DeliveryError):
    """Raised when delivery ends in FAILED or the state fetch itself fails."""

    def __init__(self, asset_id: str, last_state: str, detail: str):
        self.detail = detail
        super().__init__(asset_id, last_state, f"asset {asset_id} delivery failed: {detail}")


class DeliveryTimeoutError(DeliveryError):
    """Raised when the deadline fires before delivery reaches a terminal state."""

    def __init__(self, asset_id: str, last_state: str):
        state = last_state or "unknown"
        super().__init__(
            asset_id,
            last_state,
            f"timed out waiting for asset {asset_id} delivery (last state: {state})",
        )


class APIError(AssetServiceError):
    """Raised when the API returns a non-success response."""

    def __init__(self, status_code: int, code: str = "", title: str = "", detail: str = ""):
        self.status_code = status_code
        self.code = code
        self.title = title
        self.detail = detail
        super().__init__(f"[{status_code}] {self._describe()}")

    def _describe(self) -> str:
        if self.title and self.detail:
            return f"{self.title}: {self.detail}"
        return self.title or self.detail or self.code or "API error"


class PaginationError(AssetServiceError):
    """Base for errors raised while following pagination cursors."""


class UntrustedCursorError(PaginationError):
    """Raised when a cursor points away from the trusted API host."""


class RepeatedCursorError(PaginationError):
    """Raised when the same cursor is returned twice in one walk."""


def is_not_found(exc: BaseException) -> bool:
    """Check whether an exception means the remote resource does not exist.

    Args:
        exc: The exception to check

    Returns:
        True for a 404 or a NOT_FOUND error code, False otherwise
    """
    if isinstance(exc, APIError):
        return exc.status_code == 404 or exc.code.upper() == "NOT_FOUND"
    return False
