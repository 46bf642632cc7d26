"""
Module for computing content checksums of asset files.
"""
import hashlib
from typing import BinaryIO

from .models import ChecksumResult

CHECKSUM_ALGORITHM = "MD5"
READ_CHUNK_SIZE = 1024 * 1024


def compute_checksum(fileobj: BinaryIO, chunk_size: int = READ_CHUNK_SIZE) -> ChecksumResult:
    """Compute the MD5 digest of a file handle in a single streaming pass.

    The handle is rewound to the start before reading. Read errors propagate
    as OSError.

    Args:
        fileobj: Binary file handle opened for reading
        chunk_size: Number of bytes to read per iteration

    Returns:
        ChecksumResult with the hex digest
    """
    digest = hashlib.md5()
    fileobj.seek(0)
    while True:
        chunk = fileobj.read(chunk_size)
        if not chunk:
            break
        digest.update(chunk)

    return ChecksumResult(algorithm=CHECKSUM_ALGORITHM, hash=digest.hexdigest())
