"""
SVD (JD-08 backup) reader.

Locates the PATa chunk in the variable-length chunk table and returns the
2048-byte patch records that follow its 16-byte header.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from jdconv.errors import FormatError
from jdconv.formats.chunks import ChunkEntry
from jdconv.formats.svd.structures import (
    BACKUP_PATCH_SIZE,
    DD07,
    TAG_PATA,
    SVDHeader,
    SVDPatchHeader,
)

logger = logging.getLogger(__name__)


def parse_chunk_table(data: bytes) -> Tuple[SVDHeader, List[ChunkEntry]]:
    """
    Parse and validate the SVD header and chunk table.

    Raises:
        FormatError: If the magic, header size or table is invalid
    """
    header = SVDHeader.parse(data)
    if not header.is_valid():
        raise FormatError("Not a valid SVD file!")

    entries = [ChunkEntry.parse(data, position) for position in header.entry_positions()]
    return header, entries


class SVDReader:
    """
    Reader for JD-08 backup files.

    Example:
        records = SVDReader.read("JD08Backup.svd")
    """

    def __init__(self):
        self.header: Optional[SVDHeader] = None
        self.entries: List[ChunkEntry] = []
        self.patch_entry: Optional[ChunkEntry] = None

    @property
    def header_size(self) -> int:
        return self.header.header_size if self.header else 0

    @classmethod
    def read(cls, filepath: Union[str, Path]) -> List[bytes]:
        """
        Read an SVD file and return its patch records.

        Args:
            filepath: Path to .svd file

        Returns:
            List of 2048-byte patch records
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

    def parse_bytes(self, data: bytes) -> List[bytes]:
        """
        Parse SVD data from bytes.

        Args:
            data: Raw file contents

        Returns:
            List of 2048-byte patch records
        """
        self.header, self.entries = parse_chunk_table(data)

        self.patch_entry = None
        for entry in self.entries:
            if entry.tag == TAG_PATA and entry.marker == DD07:
                self.patch_entry = entry
                break

        if self.patch_entry is None or self.patch_entry.offset == 0 or self.patch_entry.size < 16:
            raise FormatError("SVD file does not contain any patches!")

        patch_header = SVDPatchHeader.parse(data, self.patch_entry.offset)
        if patch_header.patch_size != BACKUP_PATCH_SIZE:
            raise FormatError("SVD file has unexpected patch size!")

        if not patch_header.has_expected_constants():
            raise FormatError("SVD file has unexpected patch header!")

        start = self.patch_entry.offset + SVDPatchHeader.SIZE
        end = start + patch_header.num_patches * BACKUP_PATCH_SIZE
        if end > len(data):
            raise FormatError(
                f"SVD file is truncated: {patch_header.num_patches} patches declared"
            )

        logger.debug("SVD patch chunk at 0x%X holds %d patches", start, patch_header.num_patches)
        return [
            data[offset : offset + BACKUP_PATCH_SIZE]
            for offset in range(start, end, BACKUP_PATCH_SIZE)
        ]
