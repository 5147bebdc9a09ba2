"""
Backpack errors.

Every fallible operation on a file handle raises one of these:
  - IoError: an OS-level I/O failure, wrapped unchanged (errno, strerror, filename)
  - ConversionFailure: into_memory() on a disk-backed handle, carries the handle back
  - NotSupported: the operation has no meaning for the handle's backing store
  - BufferSizeError: a size that an in-memory buffer cannot represent
"""

from __future__ import annotations

import errno
import io
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from backpack.raw_file import RawFile


class BackpackError(Exception):
    """Base class for all backpack errors."""


class IoError(BackpackError, OSError):
    """An underlying OS error. Still an OSError, so io-level callers can catch it as one."""

    @classmethod
    def wrap(cls, exc: OSError) -> IoError:
        """Build an IoError carrying the same errno/strerror/filename as exc."""
        if exc.errno is None:
            return cls(*exc.args)
        if exc.filename is not None:
            return cls(exc.errno, exc.strerror, exc.filename)
        return cls(exc.errno, exc.strerror)

    @classmethod
    def invalid_argument(cls, message: str) -> IoError:
        return cls(errno.EINVAL, message)


class ConversionFailure(BackpackError):
    """
    The handle is not memory-backed.

    The original handle is attached untouched as `handle`, so the caller can
    fall back to convert_into_memory() or keep using it on disk.
    """

    def __init__(self, handle: RawFile) -> None:
        super().__init__(
            f"handle {handle.name!r} is disk-backed; use convert_into_memory() to read it into memory"
        )
        self.handle = handle


class NotSupported(BackpackError, io.UnsupportedOperation):
    """The operation is meaningless for this backing store (e.g. metadata() in memory)."""

    def __init__(self, operation: str, variant: str) -> None:
        super().__init__(f"{operation}() is not supported on {variant}-backed files")
        self.operation = operation
        self.variant = variant


class BufferSizeError(BackpackError, ValueError):
    """A requested size cannot be represented by an in-memory buffer."""

    def __init__(self, size: Any, limit: int) -> None:
        super().__init__(f"size {size} exceeds the in-memory buffer limit of {limit} bytes")
        self.size = size
        self.limit = limit
