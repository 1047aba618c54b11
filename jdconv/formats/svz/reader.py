"""
SVZ container reader.

Reads JD-800 plugin (.bin) and ZC1 / JD-08 hardware (.svz) containers and
returns their patch records:

- Plugin: one EXTa chunk holding a 64-byte header and a zlib stream. The
  stream's CRC32 must match (fatal otherwise); it decompresses to a
  32-byte SVDx header followed by 22352-byte patch records.
- Hardware: a DIFa chunk (opaque) and an MDLa chunk holding a 16-byte
  header, one CRC32 per patch and the 2048-byte patch records. A stale
  per-patch CRC32 is only reported.
"""

import logging
import zlib
from pathlib import Path
from typing import List, Optional, Union

from jdconv.dialects import VST_PATCH_SIZE
from jdconv.errors import ContainerCrcError, FormatError, Issue, IssueKind, record_issue
from jdconv.formats.chunks import ENTRY_SIZE, ChunkEntry, read_u32le
from jdconv.formats.svz.structures import (
    DIFA_SIZE,
    HARDWARE_PATCH_SIZE,
    TAG_DIFA,
    TAG_EXTA,
    TAG_MDLA,
    ZCOR,
    EXTaHeader,
    MDLaHeader,
    SVDxHeader,
    SVZHeader,
)

logger = logging.getLogger(__name__)

# Offset of the model marker inside a hardware patch record
HARDWARE_MODEL_MARKER = 2045


class SVZReader:
    """
    Reader for SVZ plugin and hardware containers.

    Example:
        records = SVZReader.read("JD800.bin")
        print(f"{len(records)} patches")
    """

    def __init__(self):
        self.header: Optional[SVZHeader] = None
        self.entries: List[ChunkEntry] = []
        self.kind: Optional[str] = None
        self.issues: List[Issue] = []

    @classmethod
    def read(cls, filepath: Union[str, Path]) -> List[bytes]:
        """
        Read an SVZ file and return its patch records.

        Args:
            filepath: Path to .bin or .svz file

        Returns:
            List of patch records
        """
        reader = cls()
        return reader.parse_file(filepath)

    def parse_file(self, filepath: Union[str, Path]) -> List[bytes]:
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(filepath, "rb") as f:
            data = f.read()

        return self.parse_bytes(data)

    def parse_entries(self, data: bytes) -> List[ChunkEntry]:
        """Parse and validate the root header and chunk table."""
        self.header = SVZHeader.parse(data)
        if not self.header.is_valid():
            raise FormatError("Not a valid SVZ file!")

        self.entries = []
        for index in range(self.header.num_chunks):
            entry = ChunkEntry.parse(data, SVZHeader.STRUCT.size + index * ENTRY_SIZE)
            if entry.marker != ZCOR:
                raise FormatError(f"Not a valid SVZ file! Bad marker in chunk {index}")
            self.entries.append(entry)
        return self.entries

    def parse_bytes(self, data: bytes) -> List[bytes]:
        """
        Parse whichever patch chunk the container holds.

        Args:
            data: Raw file contents

        Returns:
            Plugin (22352-byte) or hardware (2048-byte) patch records
        """
        for entry in self.parse_entries(data):
            if entry.tag == TAG_MDLA:
                return self._read_hardware(data, entry)
            if entry.tag == TAG_EXTA:
                self.kind = "plugin"
                return self._read_exta(data, entry)

        raise FormatError("SVZ file does not contain any patches!")

    def parse_plugin(self, data: bytes) -> List[bytes]:
        """Parse a plugin container; FormatError if it has no EXTa chunk."""
        for entry in self.parse_entries(data):
            if entry.tag == TAG_EXTA:
                self.kind = "plugin"
                return self._read_exta(data, entry)
        raise FormatError("Not a plugin SVZ file (no EXTa chunk)")

    def parse_hardware(self, data: bytes) -> List[bytes]:
        """Parse a hardware container; FormatError if it has no MDLa chunk."""
        for entry in self.parse_entries(data):
            if entry.tag == TAG_MDLA:
                return self._read_hardware(data, entry)
        raise FormatError("Not a hardware SVZ file (no MDLa chunk)")

    def _read_hardware(self, data: bytes, mdla: ChunkEntry) -> List[bytes]:
        # Exactly one DIFa block next to the MDLa chunk
        others = [entry for entry in self.entries if entry is not mdla]
        if len(others) != 1 or others[0].tag != TAG_DIFA:
            raise FormatError(
                f"Hardware SVZ file must hold a DIFa and an MDLa chunk, "
                f"found {[entry.tag.decode('latin-1') for entry in self.entries]}"
            )
        if others[0].size != DIFA_SIZE:
            raise FormatError(f"Unexpected DIFa chunk size {others[0].size}")

        self.kind = "hardware"
        return self._read_mdla(data, mdla)

    def _read_exta(self, data: bytes, entry: ChunkEntry) -> List[bytes]:
        chunk_header = EXTaHeader.parse(data, entry.offset)
        if not chunk_header.is_valid(entry.size):
            raise FormatError("Not a valid SVZ file! Unexpected EXTa header")

        if entry.size - 0x20 != chunk_header.compressed_size:
            raise FormatError("Compressed data has unexpected length!")

        chunk = entry.payload(data)
        compressed = chunk[EXTaHeader.SIZE :]

        if zlib.crc32(compressed) != chunk_header.compressed_crc32:
            raise ContainerCrcError("Compressed data CRC32 mismatch!")

        if chunk_header.uncompressed_size < SVDxHeader.SIZE:
            raise FormatError(
                f"Declared uncompressed size {chunk_header.uncompressed_size} is too small"
            )

        # Inflate no further than the declared size
        decompressor = zlib.decompressobj()
        try:
            uncompressed = decompressor.decompress(compressed, chunk_header.uncompressed_size)
            overflow = b""
            if not decompressor.eof:
                # A full output buffer can leave the stream trailer unread
                overflow = decompressor.decompress(decompressor.unconsumed_tail, 1)
        except zlib.error as e:
            raise FormatError(f"Error during decompression: {e}") from e

        if overflow or not decompressor.eof:
            raise FormatError(
                f"Compressed data does not inflate to the declared "
                f"{chunk_header.uncompressed_size} bytes"
            )

        if len(uncompressed) != chunk_header.uncompressed_size:
            raise FormatError(
                f"Decompressed size {len(uncompressed)} does not match "
                f"declared {chunk_header.uncompressed_size}"
            )

        svd_header = SVDxHeader.parse(uncompressed)
        if not svd_header.is_valid():
            raise FormatError("Unexpected header after decompression!")

        start = SVDxHeader.SIZE
        end = start + svd_header.num_patches * VST_PATCH_SIZE
        if end > len(uncompressed):
            raise FormatError(
                f"Decompressed data holds fewer than {svd_header.num_patches} patches"
            )

        return [
            uncompressed[offset : offset + VST_PATCH_SIZE]
            for offset in range(start, end, VST_PATCH_SIZE)
        ]

    def _read_mdla(self, data: bytes, entry: ChunkEntry) -> List[bytes]:
        chunk_header = MDLaHeader.parse(data, entry.offset)
        if not chunk_header.is_valid(entry.size):
            raise FormatError("Not a valid SVZ file! Unexpected MDLa header")

        num_patches = chunk_header.num_patches
        if entry.size != MDLaHeader.chunk_size_for(num_patches):
            raise FormatError("SVZ file has unexpected length!")

        chunk = entry.payload(data)
        crc_table = MDLaHeader.SIZE
        records_start = crc_table + 4 * num_patches

        records = []
        for i in range(num_patches):
            stored_crc = read_u32le(chunk, crc_table + 4 * i)
            offset = records_start + i * HARDWARE_PATCH_SIZE
            record = chunk[offset : offset + HARDWARE_PATCH_SIZE]

            if zlib.crc32(record) != stored_crc:
                record_issue(
                    self.issues,
                    logger,
                    IssueKind.INTEGRITY,
                    f"CRC32 mismatch for patch {i + 1}",
                    entry.offset + offset,
                )

            if record[HARDWARE_MODEL_MARKER] != 1:
                raise FormatError("Patches appear to be for different synth model!")

            records.append(record)

        return records
