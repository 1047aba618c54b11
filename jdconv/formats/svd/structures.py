"""
SVD (JD-08 backup) container structures.

File header (16 bytes):
    Offset  Size    Description
    0x00    2       Header size, counted from offset 2 (u16le)
    0x02    14      Magic "SVD5" padded with zeros

Chunk entries (16 bytes each, marker "DD07") follow at offset 0x10 for as
long as they lie inside the declared header size. The patch chunk ("PATa")
starts with a 16-byte header followed by 2048-byte patch records.
"""

import struct
from dataclasses import dataclass

from jdconv.formats.chunks import unpack_at

SVD_MAGIC = b"SVD5" + bytes(10)
DD07 = b"DD07"
TAG_PATA = b"PATa"

BACKUP_PATCH_SIZE = 2048

# Entries are counted from here; the u16 size field itself is excluded
ENTRY_TABLE_BASE = 14
MIN_HEADER_SIZE = ENTRY_TABLE_BASE + 16


@dataclass
class SVDHeader:
    """SVD file header."""

    header_size: int
    magic: bytes = SVD_MAGIC

    STRUCT = struct.Struct("<H14s")
    SIZE = 16

    @classmethod
    def parse(cls, data: bytes) -> "SVDHeader":
        header_size, magic = unpack_at(cls.STRUCT, data, 0, "SVD header")
        return cls(header_size, magic)

    def is_valid(self) -> bool:
        return self.magic == SVD_MAGIC and self.header_size >= MIN_HEADER_SIZE

    def entry_positions(self):
        """File offsets of the chunk entries covered by the header size."""
        return range(ENTRY_TABLE_BASE + 2, self.header_size + 2, 16)

    def to_bytes(self) -> bytes:
        return self.STRUCT.pack(self.header_size, self.magic)


@dataclass
class SVDPatchHeader:
    """16-byte header at the start of the PATa chunk."""

    num_patches: int = 0
    patch_size: int = BACKUP_PATCH_SIZE
    header_size: int = 16
    reserved: int = 0

    STRUCT = struct.Struct("<4I")
    SIZE = 16

    @classmethod
    def parse(cls, data: bytes, offset: int) -> "SVDPatchHeader":
        return cls(*unpack_at(cls.STRUCT, data, offset, "SVD patch header"))

    def has_expected_constants(self) -> bool:
        expected = SVDPatchHeader()
        return self.header_size == expected.header_size and self.reserved == expected.reserved

    def to_bytes(self) -> bytes:
        return self.STRUCT.pack(self.num_patches, self.patch_size, self.header_size, self.reserved)
