"""
Unit Tests - InMemoryFile and the error types in isolation.
"""

import errno
import io
from pathlib import Path

import pytest

from backpack.errors import BufferSizeError, ConversionFailure, IoError, NotSupported
from backpack.in_memory import InMemoryFile
from backpack.raw_file import RawFile


# =============================================================================
# InMemoryFile - construction
# =============================================================================

class TestInMemoryConstruction:

    def test_new_is_empty_and_named(self):
        f = InMemoryFile.new("dir/file.txt")
        assert f.name == "dir/file.txt"
        assert f.size == 0
        assert f.read() == b""

    def test_new_accepts_path(self):
        f = InMemoryFile.new(Path("a") / "b.bin")
        assert f.name == str(Path("a") / "b.bin")

    def test_from_bytes_copies(self):
        data = bytearray(b"abc")
        f = InMemoryFile.from_bytes(data)
        f.write(b"X")
        assert data == bytearray(b"abc")
        assert f.getvalue() == b"Xbc"
        assert f.name is None

    def test_from_str_encodes_utf8(self):
        f = InMemoryFile.from_str("héllo", name="greeting")
        assert f.read() == "héllo".encode("utf-8")
        assert f.name == "greeting"

    def test_borrowed_shares_buffer(self):
        shared = bytearray(b"abc")
        f = InMemoryFile.borrowed(shared)
        f.seek(0, io.SEEK_END)
        f.write(b"def")
        assert shared == bytearray(b"abcdef")

    def test_borrowed_rejects_immutable(self):
        with pytest.raises(TypeError):
            InMemoryFile.borrowed(b"abc")


# =============================================================================
# InMemoryFile - I/O
# =============================================================================

class TestInMemoryIO:

    def test_write_then_read(self):
        f = InMemoryFile.new("x")
        assert f.write(b"hello world") == 11
        assert f.tell() == 11
        f.seek(0)
        assert f.read(5) == b"hello"
        assert f.read() == b" world"
        assert f.read() == b""

    def test_read_none_reads_rest(self):
        f = InMemoryFile.from_bytes(b"abcdef")
        f.seek(2)
        assert f.read(None) == b"cdef"

    def test_readinto_short_at_end(self):
        f = InMemoryFile.from_bytes(b"abc")
        buf = bytearray(5)
        assert f.readinto(buf) == 3
        assert bytes(buf[:3]) == b"abc"
        assert f.readinto(buf) == 0

    def test_overwrite_in_middle(self):
        f = InMemoryFile.from_bytes(b"abcdef")
        f.seek(2)
        f.write(b"XY")
        assert f.getvalue() == b"abXYef"
        assert f.current_offset() == 4

    def test_write_past_end_zero_fills(self):
        f = InMemoryFile.new("gap")
        f.seek(3)
        f.write(b"z")
        assert f.getvalue() == b"\x00\x00\x00z"

    def test_seek_modes(self):
        f = InMemoryFile.from_bytes(b"0123456789")
        assert f.seek(4) == 4
        assert f.seek(2, io.SEEK_CUR) == 6
        assert f.seek(-3, io.SEEK_END) == 7
        assert f.read() == b"789"

    def test_seek_negative_is_io_error(self):
        f = InMemoryFile.from_bytes(b"abc")
        with pytest.raises(IoError) as exc_info:
            f.seek(-4, io.SEEK_END)
        assert exc_info.value.errno == errno.EINVAL
        assert f.tell() == 0

    def test_seek_bad_whence(self):
        f = InMemoryFile.new("x")
        with pytest.raises(ValueError):
            f.seek(0, 7)


# =============================================================================
# InMemoryFile - size
# =============================================================================

class TestInMemorySize:

    def test_set_len_shrinks_and_clamps_cursor(self):
        f = InMemoryFile.from_bytes(b"abcdef")
        f.seek(0, io.SEEK_END)
        f.set_len(2)
        assert f.getvalue() == b"ab"
        assert f.tell() == 2

    def test_set_len_extends_with_zeros(self):
        f = InMemoryFile.from_bytes(b"ab")
        f.set_len(4)
        assert f.getvalue() == b"ab\x00\x00"
        assert f.tell() == 0

    def test_set_len_negative(self):
        f = InMemoryFile.new("x")
        with pytest.raises(IoError):
            f.set_len(-1)

    def test_set_len_over_limit(self, monkeypatch):
        monkeypatch.setattr("backpack.in_memory.MAX_BUFFER_SIZE", 8)
        f = InMemoryFile.new("x")
        with pytest.raises(BufferSizeError) as exc_info:
            f.set_len(9)
        assert isinstance(exc_info.value, ValueError)
        assert exc_info.value.limit == 8
        assert f.size == 0

    def test_failed_allocation_is_buffer_size_error(self, monkeypatch):
        monkeypatch.setattr("backpack.in_memory.MAX_BUFFER_SIZE", 2**64)
        f = InMemoryFile.new("x")
        with pytest.raises(BufferSizeError) as exc_info:
            f.set_len(2**62)
        assert isinstance(exc_info.value.__cause__, (MemoryError, OverflowError))
        assert f.size == 0

    def test_truncate_defaults_to_cursor(self):
        f = InMemoryFile.from_bytes(b"abcdef")
        f.seek(3)
        assert f.truncate() == 3
        assert f.getvalue() == b"abc"

    def test_set_len_resizes_borrowed_buffer(self):
        shared = bytearray(b"abcdef")
        f = InMemoryFile.borrowed(shared)
        f.set_len(3)
        assert shared == bytearray(b"abc")


# =============================================================================
# InMemoryFile - naming and lifecycle
# =============================================================================

class TestInMemoryLifecycle:

    def test_with_name_keeps_buffer_and_cursor(self):
        f = InMemoryFile.from_bytes(b"abcdef", name="old")
        f.seek(2)
        g = f.with_name("new")
        assert g.name == "new"
        assert g.tell() == 2
        assert g.read() == b"cdef"
        assert f.closed

    def test_closed_file_rejects_io(self):
        f = InMemoryFile.new("x")
        f.close()
        for op in (f.read, f.flush, f.tell):
            with pytest.raises(ValueError):
                op()
        with pytest.raises(ValueError):
            f.write(b"a")

    def test_context_manager(self):
        with InMemoryFile.new("x") as f:
            f.write(b"a")
        assert f.closed
        assert not f.readable()


# =============================================================================
# Errors
# =============================================================================

class TestErrors:

    def test_io_error_wrap_keeps_details(self):
        original = FileNotFoundError(errno.ENOENT, "No such file or directory", "missing.bin")
        err = IoError.wrap(original)
        assert isinstance(err, OSError)
        assert err.errno == errno.ENOENT
        assert err.strerror == "No such file or directory"
        assert err.filename == "missing.bin"

    def test_io_error_wrap_without_errno(self):
        err = IoError.wrap(io.UnsupportedOperation("File not open for writing"))
        assert err.errno is None
        assert "not open for writing" in str(err)

    def test_conversion_failure_carries_handle(self):
        handle = RawFile.in_memory("kept")
        err = ConversionFailure(handle)
        assert err.handle is handle
        assert "kept" in str(err)

    def test_not_supported_is_unsupported_operation(self):
        err = NotSupported("metadata", "memory")
        assert isinstance(err, io.UnsupportedOperation)
        assert err.operation == "metadata"
        assert err.variant == "memory"
        assert "metadata()" in str(err)
