"""
In-memory files - a named, growable byte buffer with its own cursor.

Ownership:
  - from_bytes() / from_str() copy the input into a fresh bytearray (owned)
  - borrowed() shares the caller's bytearray without copying
  - Borrowed buffers are single-writer: while the file is alive, only the file
    writes to the buffer. Writes, set_len() and truncate() resize the shared
    bytearray in place, so the lender sees every change.
"""

from __future__ import annotations

import io
import os

from backpack.config import MAX_BUFFER_SIZE, TEXT_ENCODING
from backpack.errors import BufferSizeError, IoError


class InMemoryFile:
    """
    A file-like object backed by a bytearray.

    Usage:
        f = InMemoryFile.new("staging/report.txt")
        f.write(b"hello")
        f.seek(0)
        f.read()            # b"hello"

        shared = bytearray(b"abc")
        f = InMemoryFile.borrowed(shared)
        f.seek(0, io.SEEK_END)
        f.write(b"def")     # shared == bytearray(b"abcdef")
    """

    def __init__(self, data: bytearray | None = None, name: str | None = None) -> None:
        self._data = data if data is not None else bytearray()
        self._name = name
        self._pos = 0
        self._closed = False

    @classmethod
    def new(cls, name: str | os.PathLike) -> InMemoryFile:
        """An empty file with a logical name."""
        return cls(bytearray(), os.fsdecode(name))

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview, name: str | None = None) -> InMemoryFile:
        return cls(bytearray(data), name)

    @classmethod
    def from_str(cls, text: str, name: str | None = None) -> InMemoryFile:
        return cls(bytearray(text.encode(TEXT_ENCODING)), name)

    @classmethod
    def borrowed(cls, buffer: bytearray, name: str | None = None) -> InMemoryFile:
        """Wrap the caller's bytearray without copying it."""
        if not isinstance(buffer, bytearray):
            raise TypeError(f"borrowed() needs a bytearray, got {type(buffer).__name__}")
        return cls(buffer, name)

    # -------------------------------------------------------------------------
    # Naming
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str | None:
        return self._name

    def with_name(self, name: str | os.PathLike) -> InMemoryFile:
        """
        Return the same file under a new name.

        The returned file shares this file's buffer and cursor; this file is
        closed and must not be used afterwards.
        """
        self._check_open()
        renamed = InMemoryFile(self._data, os.fsdecode(name))
        renamed._pos = self._pos
        self._closed = True
        return renamed

    # -------------------------------------------------------------------------
    # Reading / writing
    # -------------------------------------------------------------------------

    def read(self, size: int | None = -1) -> bytes:
        """Read up to size bytes (everything remaining if size is None or negative)."""
        self._check_open()
        end = len(self._data) if size is None or size < 0 else min(self._pos + size, len(self._data))
        if end <= self._pos:
            return b""
        data = bytes(self._data[self._pos:end])
        self._pos = end
        return data

    def readinto(self, buffer) -> int:
        self._check_open()
        view = memoryview(buffer).cast("B")
        chunk = self._data[self._pos:self._pos + len(view)]
        n = len(chunk)
        view[:n] = chunk
        self._pos += n
        return n

    def write(self, data) -> int:
        """Write at the cursor. A cursor past the end zero-fills the gap first."""
        self._check_open()
        data = memoryview(data).cast("B")
        if self._pos > len(self._data):
            self._grow(self._pos)
        end = self._pos + len(data)
        self._data[self._pos:end] = data
        self._pos = end
        return len(data)

    def flush(self) -> None:
        """Nothing to flush: the data is already resident."""
        self._check_open()

    # -------------------------------------------------------------------------
    # Cursor
    # -------------------------------------------------------------------------

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_open()
        if whence == io.SEEK_SET:
            pos = offset
        elif whence == io.SEEK_CUR:
            pos = self._pos + offset
        elif whence == io.SEEK_END:
            pos = len(self._data) + offset
        else:
            raise ValueError(f"invalid whence ({whence}, should be 0, 1 or 2)")

        if pos < 0:
            raise IoError.invalid_argument(f"cannot seek to negative position {pos}")
        self._pos = pos
        return pos

    def current_offset(self) -> int:
        self._check_open()
        return self._pos

    tell = current_offset

    # -------------------------------------------------------------------------
    # Size
    # -------------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self._data)

    def set_len(self, size: int) -> None:
        """Truncate or zero-extend to exactly size bytes, pulling the cursor back if needed."""
        self._check_open()
        if size < 0:
            raise IoError.invalid_argument(f"negative size {size}")

        if size < len(self._data):
            del self._data[size:]
        else:
            self._grow(size)
        if self._pos > size:
            self._pos = size

    def _grow(self, size: int) -> None:
        """Zero-extend the buffer to size bytes."""
        if size > MAX_BUFFER_SIZE:
            raise BufferSizeError(size, MAX_BUFFER_SIZE)
        try:
            self._data.extend(bytes(size - len(self._data)))
        except (MemoryError, OverflowError) as exc:
            raise BufferSizeError(size, MAX_BUFFER_SIZE) from exc

    def truncate(self, size: int | None = None) -> int:
        self.set_len(self.current_offset() if size is None else size)
        return len(self._data)

    def getvalue(self) -> bytes:
        """Copy of the whole buffer, independent of the cursor."""
        return bytes(self._data)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return not self._closed

    def writable(self) -> bool:
        return not self._closed

    def seekable(self) -> bool:
        return not self._closed

    def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed file")

    def __enter__(self) -> InMemoryFile:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"InMemoryFile(name={self._name!r}, size={len(self._data)}, pos={self._pos})"
