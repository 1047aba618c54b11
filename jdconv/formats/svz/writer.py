"""
SVZ container writer.

Builds plugin (.bin) and hardware (.svz) containers from scratch.
"""

import zlib
from pathlib import Path
from typing import List, Sequence, Union

from jdconv.dialects import VST_PATCH_SIZE
from jdconv.formats.chunks import ENTRY_SIZE, ChunkEntry
from jdconv.formats.svz.structures import (
    DIFA_BLOCK,
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

# Trailer bytes the hardware expects in every patch record
HARDWARE_RECORD_MARKERS = {2042: 0x44, 2045: 0x01, 2046: 0x09}


def _check_sizes(records: Sequence[bytes], size: int) -> None:
    for i, record in enumerate(records):
        if len(record) != size:
            raise ValueError(f"Patch record {i} is {len(record)} bytes, expected {size}")


class SVZWriter:
    """
    Writer for SVZ plugin and hardware containers.

    Example:
        SVZWriter.write_plugin(records, "JD800.bin")
    """

    @classmethod
    def write_plugin(cls, records: Sequence[bytes], filepath: Union[str, Path]) -> None:
        """
        Write plugin records (22352 bytes each) to a .bin file.

        Args:
            records: Patch records
            filepath: Output file path
        """
        cls._write(cls.to_plugin_bytes(records), filepath)

    @classmethod
    def write_hardware(cls, records: Sequence[bytes], filepath: Union[str, Path]) -> None:
        """
        Write hardware records (2048 bytes each) to a .svz file.

        Args:
            records: Patch records
            filepath: Output file path
        """
        cls._write(cls.to_hardware_bytes(records), filepath)

    @staticmethod
    def _write(data: bytes, filepath: Union[str, Path]) -> None:
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, "wb") as f:
            f.write(data)

    @staticmethod
    def to_plugin_bytes(records: Sequence[bytes]) -> bytes:
        """Build a plugin container with one compressed EXTa chunk."""
        _check_sizes(records, VST_PATCH_SIZE)

        uncompressed = SVDxHeader(num_patches=len(records)).to_bytes() + b"".join(records)
        compressed = zlib.compress(uncompressed, 9)

        header = SVZHeader(num_chunks=1, num_chunks_repeated=0)
        chunk_offset = SVZHeader.STRUCT.size + ENTRY_SIZE
        entry = ChunkEntry(TAG_EXTA, ZCOR, chunk_offset, len(compressed) + EXTaHeader.SIZE)
        chunk_header = EXTaHeader(
            compressed_size=len(compressed) + 0x20,
            compressed_crc32=zlib.crc32(compressed),
            uncompressed_size=len(uncompressed),
        )

        return header.to_bytes() + entry.to_bytes() + chunk_header.to_bytes() + compressed

    @staticmethod
    def to_hardware_bytes(records: Sequence[bytes]) -> bytes:
        """Build a hardware container with a DIFa and an MDLa chunk."""
        _check_sizes(records, HARDWARE_PATCH_SIZE)

        num_patches = len(records)
        header = SVZHeader(num_chunks=2, num_chunks_repeated=2)

        difa_offset = SVZHeader.STRUCT.size + 2 * ENTRY_SIZE
        entry_difa = ChunkEntry(TAG_DIFA, ZCOR, difa_offset, DIFA_SIZE)
        entry_mdla = ChunkEntry(
            TAG_MDLA, ZCOR, difa_offset + DIFA_SIZE, MDLaHeader.chunk_size_for(num_patches)
        )
        chunk_header = MDLaHeader(
            num_patches=num_patches, size_low_bits=entry_mdla.size & 0x1FF
        )

        patches: List[bytes] = []
        crc_table = bytearray()
        for record in records:
            patch = bytearray(record)
            for offset, value in HARDWARE_RECORD_MARKERS.items():
                patch[offset] = value
            crc_table += zlib.crc32(patch).to_bytes(4, "little")
            patches.append(bytes(patch))

        return b"".join(
            [
                header.to_bytes(),
                entry_difa.to_bytes(),
                entry_mdla.to_bytes(),
                DIFA_BLOCK,
                chunk_header.to_bytes(),
                bytes(crc_table),
            ]
            + patches
        )
