"""
Backpack - unified file handles for staging packed files on disk or in memory.

    from backpack import RawFile

    f = RawFile.in_memory("notes.txt")
    f.write(b"hello")
    f.seek(0)
    f.read()   # b"hello"
"""

from backpack.errors import BackpackError, BufferSizeError, ConversionFailure, IoError, NotSupported
from backpack.in_memory import InMemoryFile
from backpack.raw_file import Disk, InMemory, RawFile

__all__ = [
    "BackpackError",
    "BufferSizeError",
    "ConversionFailure",
    "Disk",
    "InMemory",
    "InMemoryFile",
    "IoError",
    "NotSupported",
    "RawFile",
]

__version__ = "0.1.0"
