"""
SVD (JD-08 backup) writer.

The JD-08 rejects backup files that lack its PRFa, SYSa or DIFa chunks,
even empty ones, so a backup is never synthesized: an existing backup is
used as a template. Every chunk is copied byte for byte except the patch
chunk, which is rebuilt from the new records; chunk offsets are then
recomputed and the chunk table is rewritten in place.
"""

import logging
from pathlib import Path
from typing import List, Sequence, Union

from jdconv.errors import FormatError, Issue, IssueKind, record_issue
from jdconv.formats.chunks import ENTRY_SIZE, ChunkEntry
from jdconv.formats.svd.reader import parse_chunk_table
from jdconv.formats.svd.structures import (
    BACKUP_PATCH_SIZE,
    DD07,
    TAG_PATA,
    SVDHeader,
    SVDPatchHeader,
)

logger = logging.getLogger(__name__)


class SVDWriter:
    """
    Writes patch records into a copy of a template backup.

    Example:
        writer = SVDWriter()
        writer.write("JD08Backup.svd", records, "out/JD08Backup.svd")
    """

    def __init__(self):
        self.issues: List[Issue] = []

    def write(
        self,
        template_path: Union[str, Path],
        records: Sequence[bytes],
        output_path: Union[str, Path],
    ) -> None:
        """
        Write records into a copy of ``template_path``.

        Args:
            template_path: Existing, valid JD-08 backup file
            records: 2048-byte patch records
            output_path: Output file path (may equal template_path)
        """
        template_path = Path(template_path)
        if not template_path.exists():
            raise FormatError(
                f"Could not open {template_path} for reading! An original JD-08 backup "
                "file is required to write the patch data into."
            )

        with open(template_path, "rb") as f:
            template = f.read()

        data = self.to_bytes(template, records)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "wb") as f:
            f.write(data)

    def to_bytes(self, template: bytes, records: Sequence[bytes]) -> bytes:
        """
        Build a backup from ``template`` with its patch chunk replaced.

        Args:
            template: Contents of an existing backup file
            records: 2048-byte patch records

        Returns:
            The new file contents

        Raises:
            FormatError: If the template is not a valid backup
        """
        for i, record in enumerate(records):
            if len(record) != BACKUP_PATCH_SIZE:
                raise ValueError(
                    f"Patch record {i} is {len(record)} bytes, expected {BACKUP_PATCH_SIZE}"
                )

        if len(template) < 32:
            raise FormatError("Output file must be a valid JD-08 backup SVD file!")

        header, template_entries = parse_chunk_table(template)
        if header.header_size > len(template) - 2:
            raise FormatError("Output file must be a valid JD-08 backup SVD file!")

        entries = [
            ChunkEntry(entry.tag, entry.marker, entry.offset, entry.size)
            for entry in template_entries
        ]
        if not any(entry.tag == TAG_PATA for entry in entries):
            entries.append(ChunkEntry(TAG_PATA, DD07, 0, 0))
            header = SVDHeader(header.header_size + ENTRY_SIZE, header.magic)

        patch_chunk = SVDPatchHeader(num_patches=len(records)).to_bytes() + b"".join(records)

        out = bytearray(header.to_bytes())
        table_offset = len(out)
        out += bytes(ENTRY_SIZE * len(entries))

        for entry in entries:
            if entry.tag == TAG_PATA:
                chunk = patch_chunk
            elif entry.in_bounds(template):
                chunk = entry.payload(template)
            else:
                record_issue(
                    self.issues,
                    logger,
                    IssueKind.TRUNCATION,
                    f"Dropping SVD chunk {entry.tag!r}, it appears to be truncated",
                    entry.offset,
                )
                chunk = b""

            entry.offset = len(out)
            entry.size = len(chunk)
            out += chunk

        out[table_offset : table_offset + ENTRY_SIZE * len(entries)] = b"".join(
            entry.to_bytes() for entry in entries
        )
        return bytes(out)
