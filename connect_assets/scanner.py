"""
Module for discovering and validating asset files on the local filesystem.
"""
import logging
import mimetypes
import os
import stat
from pathlib import Path
from typing import List, BinaryIO, Union

import magic

from .errors import (
    EmptyInputError,
    InvalidFileTypeError,
    UnsafePathError,
    UnsupportedTypeError,
)
from .models import AssetFile, AssetKind

logger = logging.getLogger(__name__)

MAX_ASSET_FILE_SIZE = 500 * 1024 * 1024

IMAGE_MEDIA_TYPES = {"image/png", "image/jpeg"}

# Bytes handed to libmagic for content detection.
CONTENT_SNIFF_SIZE = 2048

# Built-in table only, so results do not depend on the host's mime.types.
_mime_types = mimetypes.MimeTypes()
_mime_types.add_type("video/quicktime", ".mov")
_mime_types.add_type("video/mp4", ".mp4")
_mime_types.add_type("video/x-m4v", ".m4v")


def detect_preview_media_type(path: Union[str, Path]) -> str:
    """Map a preview file's extension to its MIME type.

    Args:
        path: Path of the preview file

    Returns:
        The MIME type without parameters

    Raises:
        UnsupportedTypeError: If the extension is missing or not a known video type
    """
    path = Path(path)
    extension = path.suffix.lower()
    if not extension:
        raise UnsupportedTypeError(path, "", f"preview file {str(path)!r} is missing an extension")

    media_type, _ = _mime_types.guess_type(f"file{extension}", strict=False)
    if not media_type or not media_type.startswith("video/"):
        raise UnsupportedTypeError(path, extension, f"unsupported preview file extension {extension!r}")
    return media_type.split(";", 1)[0]


def detect_image_media_type(path: Union[str, Path]) -> str:
    """Detect a screenshot's image type from its content, falling back to its extension.

    The header is read without following symlinks.

    Raises:
        UnsupportedTypeError: If neither the content nor the extension is a known image type
    """
    path = Path(path)
    with open_asset_file(path) as f:
        head = f.read(CONTENT_SNIFF_SIZE)

    media_type = magic.from_buffer(head, mime=True) if head else None
    if media_type in IMAGE_MEDIA_TYPES:
        return media_type

    extension = path.suffix.lower()
    media_type, _ = _mime_types.guess_type(f"file{extension}", strict=False)
    if media_type in IMAGE_MEDIA_TYPES:
        return media_type
    raise UnsupportedTypeError(path, extension, f"unsupported image file {str(path)!r}")


def open_asset_file(path: Union[str, Path]) -> BinaryIO:
    """Open an existing file for reading without following symlinks.

    Args:
        path: Path to open

    Returns:
        A binary file handle; the caller must close it

    Raises:
        UnsafePathError: If the path is a symlink
        InvalidFileTypeError: If the path is not a regular file
    """
    path = Path(path)
    if path.is_symlink():
        raise UnsafePathError(path)

    flags = os.O_RDONLY | getattr(os, "O_NOFOLLOW", 0) | getattr(os, "O_BINARY", 0)
    try:
        fd = os.open(path, flags)
    except OSError as e:
        if path.is_symlink():
            raise UnsafePathError(path) from e
        raise

    if not stat.S_ISREG(os.fstat(fd).st_mode):
        os.close(fd)
        raise InvalidFileTypeError(path, f"expected regular file: {str(path)!r}")
    return os.fdopen(fd, "rb")


class FileScanner:
    """Resolves a user-supplied path into validated asset files."""

    def __init__(self, kind: AssetKind, max_file_size: int = MAX_ASSET_FILE_SIZE):
        """Initialize the file scanner.

        Args:
            kind: Which asset kind's type policy to apply
            max_file_size: Largest accepted file size in bytes
        """
        self.kind = kind
        self.max_file_size = max_file_size

    def validate_file(self, path: Union[str, Path]) -> AssetFile:
        """Validate a single file against the type and size policy.

        Args:
            path: Path to the candidate file

        Returns:
            AssetFile describing the validated file

        Raises:
            UnsafePathError: If the path is a symlink
            InvalidFileTypeError: If it is not a regular file or is too large
            UnsupportedTypeError: If its type is not allowed
        """
        path = Path(path)
        info = path.lstat()
        if stat.S_ISLNK(info.st_mode):
            raise UnsafePathError(path)
        if not stat.S_ISREG(info.st_mode):
            raise InvalidFileTypeError(path, f"expected regular file: {str(path)!r}")
        if info.st_size > self.max_file_size:
            raise InvalidFileTypeError(
                path,
                f"file size exceeds {self.max_file_size} bytes: {str(path)!r}",
            )

        if self.kind is AssetKind.PREVIEW:
            media_type = detect_preview_media_type(path)
        else:
            media_type = detect_image_media_type(path)

        return AssetFile(path=path, media_type=media_type, size_bytes=info.st_size)

    def collect(self, path: Union[str, Path]) -> List[AssetFile]:
        """Resolve a file or directory into an ordered list of asset files.

        Directories are scanned non-recursively; sub-directories and files
        that fail validation are skipped. Results are sorted by path.

        Args:
            path: File or directory supplied by the user

        Returns:
            List of validated asset files

        Raises:
            UnsafePathError: If the path itself is a symlink
            EmptyInputError: If a directory holds no eligible files
        """
        path = Path(path)
        info = path.lstat()
        if stat.S_ISLNK(info.st_mode):
            raise UnsafePathError(path)

        if not stat.S_ISDIR(info.st_mode):
            return [self.validate_file(path)]

        files = []
        with os.scandir(path) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    continue
                try:
                    files.append(self.validate_file(entry.path))
                except (UnsafePathError, OSError) as e:
                    logger.warning(f"Skipping {entry.path}: {e}")

        if not files:
            raise EmptyInputError(path)

        files.sort(key=lambda f: str(f.path))
        logger.info(f"Found {len(files)} {self.kind.value} file(s) in {path}")
        return files
