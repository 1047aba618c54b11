"""
Input stream type detection.

Matches the leading bytes of a file against the known signatures:

    "MThd"              Standard MIDI File
    "SVZa" + EXTa chunk JD-800 plugin container (.bin)
    "SVZa" + MDLa chunk ZC1 / JD-08 hardware container (.svz)
    ?? ?? "SVD5"        JD-08 backup container (.svd)
    F0 ...              Raw SysEx dump (.syx)
"""

from enum import Enum
from pathlib import Path
from typing import Union

from jdconv.errors import FormatError
from jdconv.formats.chunks import ENTRY_SIZE, ChunkEntry
from jdconv.formats.svd.structures import SVD_MAGIC
from jdconv.formats.svz.structures import SVZ_MAGIC, TAG_EXTA, TAG_MDLA, SVZHeader
from jdconv.formats.sysex.demuxer import MIDI_FILE_MAGIC, SYSEX_START


class StreamKind(Enum):
    """Recognized input kinds, valued by their usual file extension."""

    SYSEX = "syx"
    MIDI_FILE = "mid"
    SVZ_PLUGIN = "bin"
    SVZ_HARDWARE = "svz"
    SVD_BACKUP = "svd"

    @property
    def is_container(self) -> bool:
        return self not in (StreamKind.SYSEX, StreamKind.MIDI_FILE)


def _svz_kind(data: bytes) -> StreamKind:
    header = SVZHeader.parse(data)
    for index in range(header.num_chunks):
        position = SVZHeader.STRUCT.size + index * ENTRY_SIZE
        if position + ENTRY_SIZE > len(data):
            break
        tag = ChunkEntry.parse(data, position).tag
        if tag == TAG_EXTA:
            return StreamKind.SVZ_PLUGIN
        if tag == TAG_MDLA:
            return StreamKind.SVZ_HARDWARE
    raise FormatError("SVZ file without a known patch chunk")


def detect_kind(data: bytes) -> StreamKind:
    """
    Detect what kind of archive ``data`` holds.

    Args:
        data: File contents (at least the first few hundred bytes)

    Returns:
        The detected StreamKind

    Raises:
        FormatError: If no signature matches
    """
    if data[:4] == MIDI_FILE_MAGIC:
        return StreamKind.MIDI_FILE
    if data[:4] == SVZ_MAGIC:
        return _svz_kind(data)
    if data[2:16] == SVD_MAGIC:
        return StreamKind.SVD_BACKUP
    if SYSEX_START in data:
        return StreamKind.SYSEX
    raise FormatError("Unrecognized file format")


def detect_file_kind(filepath: Union[str, Path]) -> StreamKind:
    """Detect the kind of a file from its first bytes."""
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    with open(filepath, "rb") as f:
        data = f.read()

    return detect_kind(data)
