"""
Device memory image.

Mirrors the addressable memory of a JD-800 or JD-990 for the duration of
one conversion. Data Set messages are written into a sentinel-filled
buffer (last write wins), so several dump files can be merged by
ingesting them one after another into the same image.

Every write to the dialect's temporary-patch trigger address also appends
a snapshot of the temporary patch to ``temporary_patches``; a live
session capture therefore yields the whole edit history, not only the
final edit buffer.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple, Union

from jdconv.dialects import DISPLAY_LINE_LENGTH, PATCHES_PER_BANK, UNDEFINED_MEMORY, Dialect
from jdconv.errors import ChecksumError, Issue, IssueKind, record_issue
from jdconv.formats.sysex.demuxer import SysExDemuxer
from jdconv.formats.sysex.message import DEFAULT_DEVICE_ID, DataSetMessage
from jdconv.formats.sysex.writer import emit_data_set

logger = logging.getLogger(__name__)


class DeviceMemoryImage:
    """
    Sparse, sentinel-filled image of a device's address space.

    The dialect is either given up front or fixed by the first message
    that is successfully ingested. Messages of another dialect are dropped.

    Example:
        image = DeviceMemoryImage()
        image.ingest_file("bank.syx")
        patch = image.read_region(image.dialect.patch_address(0), image.dialect.patch_size)
    """

    def __init__(self, dialect: Optional[Dialect] = None, sentinel: int = UNDEFINED_MEMORY):
        self.sentinel = sentinel
        self.temporary_patches: List[bytes] = []
        self.issues: List[Issue] = []
        self.messages_ingested = 0
        self._dialect: Optional[Dialect] = None
        self._buffer = bytearray()

        if dialect is not None:
            self._set_dialect(dialect)

    @property
    def dialect(self) -> Optional[Dialect]:
        return self._dialect

    @property
    def capacity(self) -> int:
        return len(self._buffer)

    def _set_dialect(self, dialect: Dialect) -> None:
        self._dialect = dialect
        self._buffer = bytearray([self.sentinel]) * dialect.capacity

    def ingest(self, msg: DataSetMessage) -> bool:
        """
        Write one Data Set message into the image.

        Args:
            msg: Decoded message

        Returns:
            True if the payload was stored, False if the message was dropped

        Raises:
            ChecksumError: If the message checksum does not verify
        """
        if not msg.checksum_valid:
            raise ChecksumError(
                f"Invalid SysEx checksum for {msg.dialect.name} message at 0x{msg.address:06X}"
            )

        if self._dialect is not None and msg.dialect is not self._dialect:
            record_issue(
                self.issues,
                logger,
                IssueKind.DIALECT_MISMATCH,
                f"File contains mixed {self._dialect.name} and {msg.dialect.name} dumps. "
                f"Only {self._dialect.name} dumps will be processed.",
                msg.address,
            )
            return False

        dialect = msg.dialect
        if msg.end_address > dialect.capacity:
            record_issue(
                self.issues,
                logger,
                IssueKind.BOUNDS,
                f"Too large address, ignoring SysEx message ({len(msg.payload)} bytes)",
                msg.address,
            )
            return False

        if self._dialect is None:
            self._set_dialect(dialect)

        self._buffer[msg.address : msg.end_address] = msg.payload
        self.messages_ingested += 1

        if msg.address == dialect.temporary_trigger:
            start = dialect.patch_temporary
            self.temporary_patches.append(bytes(self._buffer[start : start + dialect.patch_size]))

        return True

    def ingest_raw(self, body: bytes) -> bool:
        """Decode a raw SysEx body and ingest it if it is a Data Set message."""
        msg = DataSetMessage.from_raw(body, self.issues)
        if msg is None:
            return False
        return self.ingest(msg)

    def ingest_bytes(self, data: bytes) -> int:
        """
        Ingest every message of a .syx or .mid byte stream.

        Returns:
            Number of messages stored
        """
        demuxer = SysExDemuxer(data)
        stored = 0
        for body in demuxer:
            if self.ingest_raw(body):
                stored += 1
        self.issues.extend(demuxer.issues)
        return stored

    def ingest_file(self, filepath: Union[str, Path]) -> int:
        """
        Ingest a .syx or .mid file; call repeatedly to merge files.

        Args:
            filepath: Path to the dump

        Returns:
            Number of messages stored
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(filepath, "rb") as f:
            data = f.read()

        return self.ingest_bytes(data)

    def is_defined(self, address: int) -> bool:
        return 0 <= address < len(self._buffer) and self._buffer[address] != self.sentinel

    def read_region(self, address: int, length: int) -> Optional[bytes]:
        """
        Read ``length`` bytes at ``address``.

        Returns:
            The bytes, or None if the first byte was never written
        """
        if not self.is_defined(address):
            return None
        return bytes(self._buffer[address : address + length])

    def emit(
        self,
        sink: BinaryIO,
        address: int,
        data: Optional[bytes] = None,
        dialect: Optional[Dialect] = None,
        device_id: int = DEFAULT_DEVICE_ID,
        length: Optional[int] = None,
    ) -> int:
        """
        Write Data Set messages to ``sink``.

        Emits ``data`` if given, otherwise ``length`` bytes of this image
        starting at ``address``.

        Returns:
            Number of messages written
        """
        dialect = dialect or self._dialect
        if dialect is None:
            raise ValueError("No dialect given and none determined from input")

        if data is None:
            if length is None:
                raise ValueError("Either data or length is required")
            data = self.read_region(address, length)
            if data is None:
                return 0

        return emit_data_set(sink, address, dialect, data, device_id)

    def internal_patches(self) -> Dict[int, bytes]:
        """Defined internal patches, keyed by 0-based patch index."""
        return self._patches(self._dialect.patch_address if self._dialect else None)

    def card_patches(self) -> Dict[int, bytes]:
        """Defined card patches (JD-990 only), keyed by 0-based patch index."""
        if self._dialect is None or self._dialect.patch_card is None:
            return {}
        return self._patches(self._dialect.card_patch_address)

    def _patches(self, address_of) -> Dict[int, bytes]:
        patches = {}
        if address_of is None:
            return patches
        for index in range(PATCHES_PER_BANK):
            patch = self.read_region(address_of(index), self._dialect.patch_size)
            if patch is not None:
                patches[index] = patch
        return patches

    def special_setup(self, kind: str = "internal") -> Optional[bytes]:
        """
        Read a special setup.

        Args:
            kind: "internal", "temporary" or "card"
        """
        if self._dialect is None:
            return None
        address = {
            "internal": self._dialect.setup_internal,
            "temporary": self._dialect.setup_temporary,
            "card": self._dialect.setup_card,
        }[kind]
        if address is None:
            return None
        return self.read_region(address, self._dialect.setup_size)

    def present_regions(self) -> List[Tuple[str, int]]:
        """Named auxiliary regions whose first byte has been written."""
        if self._dialect is None:
            return []
        return [
            (name, address) for name, address in self._dialect.regions if self.is_defined(address)
        ]

    def display_text(self) -> Optional[Tuple[str, str]]:
        """The two LCD lines of a JD-800 display dump, if present."""
        if self._dialect is None:
            return None
        address = dict(self._dialect.regions).get("Display")
        if address is None:
            return None
        data = self.read_region(address, 2 * DISPLAY_LINE_LENGTH)
        if data is None:
            return None
        text = data.decode("ascii", errors="replace")
        return text[:DISPLAY_LINE_LENGTH], text[DISPLAY_LINE_LENGTH:]
