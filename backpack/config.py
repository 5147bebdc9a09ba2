"""
Backpack File Handle Defaults
=============================

Layout:
    RawFile                      <- One handle, exactly one backing store
      Disk(file, name)           <- Unbuffered OS file object + optional logical name
      InMemory(file)             <- InMemoryFile (carries its own name + cursor)

Design Decisions:
    - Disk handles are unbuffered (FileIO): the OS cursor is the only cursor
    - create() opens read/write so staged content can be read back in place
    - open() is read-only, like any other "open existing file" call
    - Memory buffers are bytearrays; str input is encoded with TEXT_ENCODING
    - convert_into_memory() drains the disk cursor in READ_CHUNK_SIZE reads
"""

# Encoding used when a str is wrapped as an in-memory file
TEXT_ENCODING = "utf-8"

# Modes for the disk variant (always binary, always unbuffered)
DISK_OPEN_MODE = "rb"
DISK_CREATE_MODE = "w+b"

# Chunk size when materializing a disk file into memory (64KB)
READ_CHUNK_SIZE = 65_536

# Largest size a memory buffer can be resized to (1 TiB)
MAX_BUFFER_SIZE = 1 << 40
