"""
SVZ container structures.

SVZ files are used both by the JD-800 software plugin (.bin, one
compressed "EXTa" chunk) and by the ZC1 / JD-08 hardware (.svz, an opaque
"DIFa" chunk followed by an "MDLa" patch chunk).

Root header (16 bytes):
    Offset  Size    Description
    0x00    4       Magic "SVZa"
    0x04    1       Number of chunks
    0x05    1       Number of chunks repeated (0 in plugin files)
    0x06    6       ID "RC001\\x01"
    0x0C    4       Zero

Chunk entries (16 bytes each, see jdconv.formats.chunks) follow directly.
"""

import struct
from dataclasses import dataclass, field
from typing import Tuple

from jdconv.dialects import VST_PATCH_SIZE
from jdconv.formats.chunks import unpack_at

SVZ_MAGIC = b"SVZa"
SVZ_ID = b"RC001\x01"
ZCOR = b"ZCOR"

TAG_EXTA = b"EXTa"
TAG_DIFA = b"DIFa"
TAG_MDLA = b"MDLa"

HARDWARE_PATCH_SIZE = 2048


@dataclass
class SVZHeader:
    """SVZ root header."""

    num_chunks: int = 1
    num_chunks_repeated: int = 1
    magic: bytes = SVZ_MAGIC
    ident: bytes = SVZ_ID
    reserved: int = 0

    STRUCT = struct.Struct("<4sBB6sI")

    @classmethod
    def parse(cls, data: bytes) -> "SVZHeader":
        magic, num, repeated, ident, reserved = unpack_at(cls.STRUCT, data, 0, "SVZ header")
        return cls(num, repeated, magic, ident, reserved)

    def is_valid(self) -> bool:
        return (
            self.magic == SVZ_MAGIC
            and self.num_chunks_repeated in (0, self.num_chunks)
            and self.reserved == 0
        )

    def to_bytes(self) -> bytes:
        return self.STRUCT.pack(
            self.magic, self.num_chunks, self.num_chunks_repeated, self.ident, self.reserved
        )


@dataclass
class EXTaHeader:
    """
    64-byte header of the plugin's compressed chunk.

    ``compressed_size`` counts the compressed data plus 0x20, i.e. it is
    the chunk size minus 0x20.
    """

    compressed_size: int = 0
    compressed_crc32: int = 0
    uncompressed_size: int = 0
    prefix: Tuple[int, ...] = (1, 0, 32, 0, 1, 32)
    ident: bytes = b"RC001\x01\x00\x00"
    suffix: Tuple[int, ...] = (0, 0, 0, 0, 0)

    STRUCT = struct.Struct("<6III8sI5I")
    SIZE = 64

    @classmethod
    def parse(cls, data: bytes, offset: int) -> "EXTaHeader":
        values = unpack_at(cls.STRUCT, data, offset, "EXTa chunk header")
        return cls(
            compressed_size=values[6],
            compressed_crc32=values[7],
            uncompressed_size=values[9],
            prefix=tuple(values[0:6]),
            ident=values[8],
            suffix=tuple(values[10:15]),
        )

    def is_valid(self, chunk_size: int) -> bool:
        expected = EXTaHeader()
        return (
            chunk_size >= self.SIZE
            and self.prefix == expected.prefix
            and self.suffix == expected.suffix
        )

    def to_bytes(self) -> bytes:
        return self.STRUCT.pack(
            *self.prefix,
            self.compressed_size,
            self.compressed_crc32,
            self.ident,
            self.uncompressed_size,
            *self.suffix,
        )


@dataclass
class MDLaHeader:
    """
    16-byte header of the hardware patch chunk.

    ``size_low_bits`` holds only the lower 9 bits of the chunk size.
    """

    num_patches: int = 0
    patch_size: int = 0x800
    size_low_bits: int = 0
    reserved: int = 0

    STRUCT = struct.Struct("<4I")
    SIZE = 16

    @classmethod
    def parse(cls, data: bytes, offset: int) -> "MDLaHeader":
        return cls(*unpack_at(cls.STRUCT, data, offset, "MDLa chunk header"))

    def is_valid(self, chunk_size: int) -> bool:
        return (
            chunk_size >= self.SIZE
            and self.patch_size == 0x800
            and self.size_low_bits == (chunk_size & 0x1FF)
            and self.reserved == 0
        )

    def to_bytes(self) -> bytes:
        return self.STRUCT.pack(
            self.num_patches, self.patch_size, self.size_low_bits, self.reserved
        )

    @staticmethod
    def chunk_size_for(num_patches: int) -> int:
        """Header, CRC32 table and patch records."""
        return MDLaHeader.SIZE + (4 + HARDWARE_PATCH_SIZE) * num_patches


# Opaque 52-byte DIFa block, written verbatim by the hardware
DIFA_BLOCK = struct.pack(
    "<4I20s4I",
    0x01,
    0x20,
    0x14,
    0x00,
    bytes(
        [
            0x42, 0x09, 0x5C, 0xA1,
            0x03, 0x00, 0x86, 0xC8,
            0xE5, 0x4C, 0xA5, 0x48,
            0x08, 0x0C, 0x00, 0x48,
            0x00, 0x48, 0x00, 0x48,
        ]
    ),
    0, 0, 0, 0,
)
DIFA_SIZE = len(DIFA_BLOCK)


@dataclass
class SVDxHeader:
    """32-byte header at the start of the plugin's decompressed payload."""

    num_patches: int = 64
    magic: bytes = b"SVDx"
    header_size: int = 32
    patch_size: int = VST_PATCH_SIZE
    trailer: Tuple[int, ...] = field(default=(2, 0, 0, 0))

    STRUCT = struct.Struct("<4s3I4I")
    SIZE = 32

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> "SVDxHeader":
        values = unpack_at(cls.STRUCT, data, offset, "SVDx header")
        return cls(
            num_patches=values[3],
            magic=values[0],
            header_size=values[1],
            patch_size=values[2],
            trailer=tuple(values[4:8]),
        )

    def is_valid(self) -> bool:
        expected = SVDxHeader()
        return (
            self.magic == expected.magic
            and self.header_size == expected.header_size
            and self.patch_size == expected.patch_size
            and self.num_patches > 0
            and self.trailer == expected.trailer
        )

    def to_bytes(self) -> bytes:
        return self.STRUCT.pack(
            self.magic, self.header_size, self.patch_size, self.num_patches, *self.trailer
        )
