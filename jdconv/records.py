"""
Patch record framing for the JD-800 software family.

The plugin stores 22352-byte patch records: a 16-byte ZEN header, the
16-character name and the patch body, then a large zero-filled reserve.
The ZC1 hardware stores 2048-byte records starting at the name, and the
JD-08 backup stores 2048-byte records that start with its own 16-byte
header. These helpers move records between the three framings without
touching any parameter; parameter remapping between JD-800 / JD-990 and
the software format is done elsewhere on already parsed records.
"""

import struct
from typing import List, Sequence

from jdconv.dialects import PATCHES_PER_BANK, VST_PATCH_SIZE
from jdconv.formats.svd.structures import BACKUP_PATCH_SIZE
from jdconv.formats.svz.structures import HARDWARE_PATCH_SIZE

ZEN_HEADER_SIZE = 16
NAME_SIZE = 16

# modelID1, modelID2, rating, unknown (100), 8 empty bytes
DEFAULT_ZEN_HEADER = struct.pack("<4H8s", 3, 5, 0, 100, bytes(8))

# Name plus patch body; everything after it is reserve
PATCH_BODY_SIZE = 2016

# Bytes a JD-08 backup record carries in front of the name
BACKUP_RECORD_TEMPLATE_BYTES = {4: 1, 5: 1, 6: 5, 8: 15, 2044: 8}

# A JD-08 backup holds four banks
MAX_BACKUP_PATCHES = 4 * PATCHES_PER_BANK


def vst_from_hardware(record: bytes) -> bytes:
    """Expand a 2048-byte hardware record to a plugin record."""
    body = record[:PATCH_BODY_SIZE]
    return DEFAULT_ZEN_HEADER + body + bytes(VST_PATCH_SIZE - ZEN_HEADER_SIZE - len(body))


def hardware_from_vst(record: bytes) -> bytes:
    """Cut a plugin record down to the 2048 bytes the hardware stores."""
    return record[ZEN_HEADER_SIZE : ZEN_HEADER_SIZE + HARDWARE_PATCH_SIZE]


def vst_from_backup(record: bytes) -> bytes:
    """Expand a 2048-byte backup record to a plugin record."""
    body = record[ZEN_HEADER_SIZE : ZEN_HEADER_SIZE + PATCH_BODY_SIZE]
    return DEFAULT_ZEN_HEADER + body + bytes(VST_PATCH_SIZE - ZEN_HEADER_SIZE - len(body))


def backup_from_vst(record: bytes) -> bytes:
    """Frame a plugin record as a 2048-byte backup record."""
    patch = bytearray(BACKUP_PATCH_SIZE)
    for offset, value in BACKUP_RECORD_TEMPLATE_BYTES.items():
        patch[offset] = value
    patch[ZEN_HEADER_SIZE : ZEN_HEADER_SIZE + PATCH_BODY_SIZE] = record[
        ZEN_HEADER_SIZE : ZEN_HEADER_SIZE + PATCH_BODY_SIZE
    ]
    return bytes(patch)


def is_vst_model(record: bytes) -> bool:
    """True if the ZEN header names the JD-800 model (3 / 5)."""
    model1, model2 = struct.unpack_from("<2H", record, 0)
    return model1 == 3 and model2 == 5


def empty_vst_patch() -> bytes:
    """A blank plugin record: default header, name of spaces."""
    name = b" " * NAME_SIZE
    return DEFAULT_ZEN_HEADER + name + bytes(VST_PATCH_SIZE - ZEN_HEADER_SIZE - NAME_SIZE)


def patch_name(record: bytes, offset: int = 0) -> str:
    """
    Decode a 16-character patch name.

    Args:
        record: Patch record
        offset: Offset of the name (0 for JD-800 / JD-990 and hardware
            records, 16 for plugin and backup records)
    """
    return record[offset : offset + NAME_SIZE].decode("ascii", errors="replace")


def patch_index_label(patch: int, num_patches: int, is_card: bool = False) -> str:
    """
    Front-panel style patch number.

    "I11".."I88" for a single internal bank, "A11".."D88" for larger sets
    and "C11".."C88" for card patches.
    """
    if is_card:
        prefix = "C"
    elif num_patches <= PATCHES_PER_BANK:
        prefix = "I"
    else:
        prefix = chr(ord("A") + patch // PATCHES_PER_BANK)
    return f"{prefix}{(patch // 8) % 8 + 1}{patch % 8 + 1}"


def parse_backup_position(position: str) -> int:
    """
    Parse a JD-08 patch position.

    Accepts a bank letter ("B") or a patch number ("B42"), either case.

    Returns:
        0-based patch index

    Raises:
        ValueError: If the position is malformed
    """
    text = position.upper()
    if len(text) not in (1, 3) or text[0] not in "ABCD":
        raise ValueError(
            "Position parameter needs to be a bank (A/B/C/D) or patch number (e.g. B42)!"
        )

    index = (ord(text[0]) - ord("A")) * PATCHES_PER_BANK
    if len(text) == 3:
        if text[1] not in "12345678" or text[2] not in "12345678":
            raise ValueError(
                "Position parameter needs to be a bank (A/B/C/D) or patch number (e.g. B42)!"
            )
        index += (int(text[1]) - 1) * 8 + int(text[2]) - 1
    return index


def merge_into_backup(
    patches: Sequence[bytes], existing: Sequence[bytes], offset: int
) -> List[bytes]:
    """
    Place ``patches`` at ``offset`` inside the existing backup patch list.

    Existing patches before the offset and after the new ones are kept;
    the result never exceeds the four banks a backup can hold.
    """
    merged = list(existing[: min(len(existing), offset)]) + list(patches)
    if len(merged) < len(existing):
        merged.extend(existing[len(merged) :])
    elif len(merged) > MAX_BACKUP_PATCHES:
        del merged[MAX_BACKUP_PATCHES:]
    return merged
