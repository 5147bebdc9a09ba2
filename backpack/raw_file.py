"""
RawFile - one handle over a disk file or an in-memory file.

Features:
  - Same read/write/seek/set_len/sync/metadata calls for both backing stores
  - Logical name independent of the backing store (with_name() keeps the variant)
  - into_memory(): cheap variant check, hands the disk handle back on failure
  - convert_into_memory(): reads the rest of a disk file into memory
  - A standard io.RawIOBase, so it plugs into anything that takes a binary stream
"""

from __future__ import annotations

import builtins
import dataclasses
import errno
import io
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from backpack.config import DISK_CREATE_MODE, DISK_OPEN_MODE, READ_CHUNK_SIZE
from backpack.errors import ConversionFailure, IoError, NotSupported
from backpack.in_memory import InMemoryFile

logger = logging.getLogger(__name__)


@contextmanager
def _os_errors() -> Iterator[None]:
    """Re-raise OSErrors from the OS as IoError, keeping errno and the cause."""
    try:
        yield
    except IoError:
        raise
    except OSError as exc:
        raise IoError.wrap(exc) from exc
    except OverflowError as exc:
        # Offset or size too large for the platform's off_t
        raise IoError(errno.EOVERFLOW, str(exc)) from exc


# =============================================================================
# Backing stores
# =============================================================================

@dataclass(frozen=True)
class Disk:
    """A real file. The FileIO is owned exclusively by the handle."""
    file: io.FileIO
    name: str | None = None


@dataclass(frozen=True)
class InMemory:
    """An InMemoryFile, which carries its own name and cursor."""
    file: InMemoryFile


Store = Disk | InMemory


# =============================================================================
# RawFile
# =============================================================================

class RawFile(io.RawIOBase):
    """
    Unified file handle.

    Usage:
        # Stage on disk
        with RawFile.create("out/data.bin") as f:
            f.write(b"hello")
            f.sync_all()

        # Stage in memory
        f = RawFile.in_memory("data.bin")
        f.write(b"hello")

        # Whatever it is, get it into memory
        f = RawFile.open("in/data.bin").convert_into_memory()

    with_name() and convert_into_memory() consume the handle: the returned
    handle takes over the backing store and the original is closed.
    """

    def __init__(self, store: Store) -> None:
        self._store = store
        self._moved = False
        super().__init__()

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def open(cls, path: str | os.PathLike) -> RawFile:
        """Open an existing file read-only. The name is the path."""
        name = os.fsdecode(path)
        with _os_errors():
            file = builtins.open(path, DISK_OPEN_MODE, buffering=0)
        logger.debug("Opened %s", name)
        return cls(Disk(file, name))

    @classmethod
    def create(cls, path: str | os.PathLike) -> RawFile:
        """Create (or truncate) a file, opened for reading and writing. The name is the path."""
        name = os.fsdecode(path)
        with _os_errors():
            file = builtins.open(path, DISK_CREATE_MODE, buffering=0)
        logger.debug("Created %s", name)
        return cls(Disk(file, name))

    @classmethod
    def in_memory(cls, name: str | os.PathLike) -> RawFile:
        """An empty in-memory file with a logical name."""
        return cls(InMemory(InMemoryFile.new(name)))

    @classmethod
    def wrap(cls, value) -> RawFile:
        """
        Turn an existing value into a handle.

            bytes / memoryview   -> in memory, copied
            bytearray            -> in memory, borrowed (no copy)
            str                  -> in memory, UTF-8 encoded
            InMemoryFile         -> in memory, as is
            FileIO / open(..)    -> on disk, unnamed; the handle takes ownership

        Buffered file objects are detached: their raw FileIO moves into the
        handle at the buffered object's position, and the buffered object
        becomes unusable.
        """
        if isinstance(value, RawFile):
            return value
        if isinstance(value, InMemoryFile):
            handle = cls(InMemory(value))
        elif isinstance(value, bytearray):
            handle = cls(InMemory(InMemoryFile.borrowed(value)))
        elif isinstance(value, (bytes, memoryview)):
            handle = cls(InMemory(InMemoryFile.from_bytes(value)))
        elif isinstance(value, str):
            handle = cls(InMemory(InMemoryFile.from_str(value)))
        elif isinstance(value, io.FileIO):
            handle = cls(Disk(value))
        elif isinstance(value, io.BufferedIOBase) and isinstance(getattr(value, "raw", None), io.FileIO):
            with _os_errors():
                pos = value.tell()
                raw = value.detach()
                raw.seek(pos)
            handle = cls(Disk(raw))
        else:
            raise TypeError(f"cannot make a RawFile from {type(value).__name__}")
        logger.debug("Wrapped %s as a %s handle", type(value).__name__, "disk" if handle.is_on_disk else "memory")
        return handle

    # -------------------------------------------------------------------------
    # Variant queries and conversion
    # -------------------------------------------------------------------------

    @property
    def is_on_disk(self) -> bool:
        return isinstance(self._store, Disk)

    @property
    def is_in_memory(self) -> bool:
        return isinstance(self._store, InMemory)

    @property
    def memory(self) -> InMemoryFile:
        """The underlying InMemoryFile. Raises ConversionFailure for disk handles."""
        match self._live():
            case InMemory(file=mem):
                return mem
            case Disk():
                raise ConversionFailure(self)

    def into_memory(self) -> RawFile:
        """
        Return self if it is memory-backed.

        A disk-backed handle raises ConversionFailure with this handle, untouched,
        in `exc.handle`: nothing is read and the cursor does not move.
        """
        match self._live():
            case InMemory():
                return self
            case Disk():
                raise ConversionFailure(self)

    def convert_into_memory(self) -> RawFile:
        """
        Return a memory-backed handle, reading the disk file if needed.

        For a disk handle, everything from the current offset to end-of-file is
        read into a new buffer, keeping the name. The disk file is closed and
        this handle is consumed. A failed read raises IoError; part of the file
        may already have been consumed, so the handle is not handed back.
        """
        match self._live():
            case InMemory():
                return self
            case Disk(file=file, name=name):
                data = bytearray()
                with _os_errors():
                    while True:
                        chunk = file.read(READ_CHUNK_SIZE)
                        if not chunk:
                            break
                        data += chunk
                    file.close()
                self._hand_over()
                logger.debug("Read %d bytes of %s into memory", len(data), name or "<unnamed>")
                return RawFile(InMemory(InMemoryFile(data, name)))

    # -------------------------------------------------------------------------
    # Naming
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str | None:
        match self._store:
            case Disk(name=name):
                return name
            case InMemory(file=mem):
                return mem.name

    def with_name(self, name: str | os.PathLike) -> RawFile:
        """Same backing store and variant under a new name. Consumes this handle."""
        match self._live():
            case Disk() as disk:
                renamed = RawFile(dataclasses.replace(disk, name=os.fsdecode(name)))
            case InMemory(file=mem):
                renamed = RawFile(InMemory(mem.with_name(name)))
        self._hand_over()
        return renamed

    # -------------------------------------------------------------------------
    # io.RawIOBase
    # -------------------------------------------------------------------------

    def readable(self) -> bool:
        match self._live():
            case Disk(file=file):
                return file.readable()
            case InMemory(file=mem):
                return mem.readable()

    def writable(self) -> bool:
        match self._live():
            case Disk(file=file):
                return file.writable()
            case InMemory(file=mem):
                return mem.writable()

    def seekable(self) -> bool:
        match self._live():
            case Disk(file=file):
                return file.seekable()
            case InMemory(file=mem):
                return mem.seekable()

    def readinto(self, buffer) -> int:
        match self._live():
            case Disk(file=file):
                with _os_errors():
                    return file.readinto(buffer)
            case InMemory(file=mem):
                return mem.readinto(buffer)

    def write(self, data) -> int:
        match self._live():
            case Disk(file=file):
                with _os_errors():
                    return file.write(data)
            case InMemory(file=mem):
                return mem.write(data)

    def flush(self) -> None:
        """Flush the disk file. A no-op in memory: it does not make anything durable."""
        super().flush()
        if self._moved:
            return
        match self._store:
            case Disk(file=file):
                with _os_errors():
                    file.flush()
            case InMemory(file=mem):
                mem.flush()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence not in (io.SEEK_SET, io.SEEK_CUR, io.SEEK_END):
            raise ValueError(f"invalid whence ({whence}, should be 0, 1 or 2)")
        match self._live():
            case Disk(file=file):
                with _os_errors():
                    return file.seek(offset, whence)
            case InMemory(file=mem):
                return mem.seek(offset, whence)

    def current_offset(self) -> int:
        match self._live():
            case Disk(file=file):
                with _os_errors():
                    return file.seek(0, io.SEEK_CUR)
            case InMemory(file=mem):
                return mem.current_offset()

    def tell(self) -> int:
        return self.current_offset()

    def set_len(self, size: int) -> None:
        """
        Truncate or zero-extend to exactly size bytes.

        If the cursor ends up past the new end, it is moved to the new end.
        """
        match self._live():
            case Disk(file=file):
                if size < 0:
                    raise IoError.invalid_argument(f"negative size {size}")
                with _os_errors():
                    file.truncate(size)
                    if file.tell() > size:
                        file.seek(size)
            case InMemory(file=mem):
                mem.set_len(size)

    def truncate(self, size: int | None = None) -> int:
        if size is None:
            size = self.current_offset()
        self.set_len(size)
        return size

    def fileno(self) -> int:
        match self._live():
            case Disk(file=file):
                return file.fileno()
            case InMemory():
                raise NotSupported("fileno", "memory")

    # -------------------------------------------------------------------------
    # Durability and metadata
    # -------------------------------------------------------------------------

    def sync_all(self) -> None:
        """fsync data and metadata. Nothing to do in memory."""
        match self._live():
            case Disk(file=file):
                with _os_errors():
                    os.fsync(file.fileno())
            case InMemory():
                pass

    def sync_data(self) -> None:
        """fdatasync where the platform has it, fsync otherwise. Nothing to do in memory."""
        match self._live():
            case Disk(file=file):
                sync = getattr(os, "fdatasync", os.fsync)
                with _os_errors():
                    sync(file.fileno())
            case InMemory():
                pass

    def metadata(self) -> os.stat_result:
        match self._live():
            case Disk(file=file):
                with _os_errors():
                    return os.fstat(file.fileno())
            case InMemory():
                raise NotSupported("metadata", "memory")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        if self.closed:
            return
        try:
            super().close()
        finally:
            if not self._moved:
                match self._store:
                    case Disk(file=file, name=name):
                        file.close()
                        logger.debug("Closed %s", name or "<unnamed>")
                    case InMemory(file=mem):
                        mem.close()

    def _hand_over(self) -> None:
        """The backing store now belongs to another handle: close this one without touching it."""
        self._moved = True
        self.close()

    def _live(self) -> Store:
        if self.closed:
            raise ValueError("I/O operation on closed file")
        return self._store

    def __repr__(self) -> str:
        variant = "disk" if self.is_on_disk else "memory"
        state = "closed" if self.closed else f"pos={self.current_offset()}"
        return f"<RawFile {variant} name={self.name!r} {state}>"
