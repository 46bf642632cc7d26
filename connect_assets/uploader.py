"""
Module for executing remote-issued upload operations against a local file.
"""
import logging
from typing import BinaryIO, List, Optional

import httpx

from .deadline import Deadline
from .errors import NoUploadOperationsError, UploadOperationError
from .models import UploadOperation

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_TIMEOUT = 300.0


def validate_upload_operations(operations: List[UploadOperation], file_size: int) -> None:
    """Check every operation's URL and byte range against the file size.

    The byte ranges, taken together, must cover the file exactly once.

    Args:
        operations: Operations returned by the remote service
        file_size: Size of the local file in bytes

    Raises:
        UploadOperationError: On the first invalid operation
    """
    for index, op in enumerate(operations):
        if not op.url.strip():
            raise UploadOperationError(index, "empty URL")
        if op.offset < 0:
            raise UploadOperationError(index, "negative offset")
        if op.length <= 0:
            raise UploadOperationError(index, "non-positive length")
        if op.offset + op.length > file_size:
            raise UploadOperationError(index, "exceeds file size")

    covered = 0
    for index, op in sorted(enumerate(operations), key=lambda item: item[1].offset):
        if op.offset != covered:
            raise UploadOperationError(
                index, f"byte range starts at {op.offset}, expected {covered}"
            )
        covered += op.length
    if covered != file_size:
        raise UploadOperationError(
            len(operations) - 1, f"operations cover {covered} of {file_size} bytes"
        )


class UploadOperationExecutor:
    """Transfers byte ranges of a local file as instructed by upload operations."""

    def __init__(self, http_client: Optional[httpx.Client] = None,
                 timeout: float = DEFAULT_UPLOAD_TIMEOUT):
        """Initialize the executor.

        Args:
            http_client: Client used for the transfers. Upload URLs are
                pre-signed, so it must not carry API credentials.
            timeout: Per-operation timeout in seconds
        """
        self.http_client = http_client or httpx.Client()
        self.timeout = timeout

    def close(self) -> None:
        self.http_client.close()

    def execute(self, fileobj: BinaryIO, file_size: int,
                operations: List[UploadOperation],
                deadline: Optional[Deadline] = None, asset_name: str = "") -> None:
        """Execute all operations sequentially, failing on the first error.

        Args:
            fileobj: Open binary handle of the file being uploaded
            file_size: Total size of the file in bytes
            operations: Upload operations in the order the service returned them
            deadline: Governing deadline for the whole upload
            asset_name: File name used in error messages

        Raises:
            NoUploadOperationsError: If there are no operations to execute
            UploadOperationError: If an operation is invalid or its request fails
            DeadlineExceededError: If the deadline fires between operations
        """
        if not operations:
            raise NoUploadOperationsError(asset_name)
        validate_upload_operations(operations, file_size)
        deadline = deadline or Deadline()

        for index, op in enumerate(operations):
            deadline.check(f"upload operation {index}")
            self._execute_one(fileobj, index, op, deadline)

    def _execute_one(self, fileobj: BinaryIO, index: int, op: UploadOperation,
                     deadline: Deadline) -> None:
        fileobj.seek(op.offset)
        data = fileobj.read(op.length)
        if len(data) != op.length:
            raise UploadOperationError(
                index, f"short read: expected {op.length} bytes, got {len(data)}"
            )

        method = (op.method or "PUT").strip().upper() or "PUT"
        headers = {h.name: h.value for h in op.request_headers}
        logger.debug(
            f"Upload operation {index}: {method} bytes {op.offset}-{op.offset + op.length - 1}"
        )

        try:
            response = self.http_client.request(
                method,
                op.url,
                content=data,
                headers=headers,
                timeout=deadline.request_timeout(self.timeout),
            )
        except httpx.HTTPError as e:
            raise UploadOperationError(index, f"upload request failed: {e}") from e

        if not response.is_success:
            raise UploadOperationError(
                index,
                f"upload request failed with status {response.status_code}",
                status_code=response.status_code,
            )
