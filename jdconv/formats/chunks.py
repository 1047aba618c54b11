"""
Chunk table entries shared by the SVZ and SVD containers.

Both containers describe their contents with 16-byte little-endian
entries:

    Offset  Size    Description
    0x00    4       Type tag ("EXTa", "DIFa", "MDLa", "PATa", ...)
    0x04    4       Fixed marker ("ZCOR" in SVZ, "DD07" in SVD)
    0x08    4       Payload offset from start of file
    0x0C    4       Payload size
"""

import struct
from dataclasses import dataclass

from jdconv.errors import FormatError

ENTRY_STRUCT = struct.Struct("<4s4sII")
ENTRY_SIZE = ENTRY_STRUCT.size


def read_u32le(data: bytes, offset: int) -> int:
    if offset + 4 > len(data):
        raise FormatError(f"Unexpected end of data reading u32 at 0x{offset:X}")
    return struct.unpack_from("<I", data, offset)[0]


def unpack_at(fmt: struct.Struct, data: bytes, offset: int, what: str) -> tuple:
    """Unpack a fixed structure, raising FormatError if the data is too short."""
    if offset < 0 or offset + fmt.size > len(data):
        raise FormatError(f"Truncated {what} at 0x{offset:X}")
    return fmt.unpack_from(data, offset)


@dataclass
class ChunkEntry:
    """One chunk table entry."""

    tag: bytes
    marker: bytes
    offset: int
    size: int

    @classmethod
    def parse(cls, data: bytes, position: int) -> "ChunkEntry":
        tag, marker, offset, size = unpack_at(ENTRY_STRUCT, data, position, "chunk entry")
        return cls(tag, marker, offset, size)

    def to_bytes(self) -> bytes:
        return ENTRY_STRUCT.pack(self.tag, self.marker, self.offset, self.size)

    @property
    def end(self) -> int:
        return self.offset + self.size

    def in_bounds(self, data: bytes) -> bool:
        return self.offset <= len(data) and self.size <= len(data) - self.offset

    def payload(self, data: bytes) -> bytes:
        """Return the chunk's bytes, raising FormatError if they run past EOF."""
        if not self.in_bounds(data):
            raise FormatError(
                f"Chunk {self.tag!r} (0x{self.offset:X}+{self.size}) extends past end of file"
            )
        return data[self.offset : self.end]
