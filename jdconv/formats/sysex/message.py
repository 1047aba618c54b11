"""
Roland Data Set message decoding.

Data Set (DT1) format, as extracted by the demuxer (leading F0 removed):

    41 dd mm 12 [address...] [data...] CS F7

Where:
    - 41: Roland manufacturer ID
    - dd: Device ID (0x10 = device 17, the factory default)
    - mm: Model ID (0x3D = JD-800, 0x57 = JD-990)
    - 12: Data Set command
    - address: 3 (JD-800) or 4 (JD-990) 7-bit digits, big-endian
    - data: up to 256 bytes
    - CS: Roland checksum over address + data
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from jdconv.dialects import Dialect, get_dialect
from jdconv.errors import Issue, IssueKind, record_issue
from jdconv.utils.checksum import calculate_roland_checksum, checksum_residue

logger = logging.getLogger(__name__)

ROLAND_ID = 0x41
DATA_SET = 0x12
SYSEX_START = 0xF0
SYSEX_END = 0xF7
DEFAULT_DEVICE_ID = 0x10

# Manufacturer, device, model, command
HEADER_SIZE = 4


@dataclass
class DataSetMessage:
    """
    A decoded Data Set message.

    Attributes:
        manufacturer_id: Manufacturer byte (always 0x41 once decoded)
        device_id: SysEx device ID
        dialect: Dialect selected by the model byte
        address: Target device address
        payload: Data bytes written at ``address``
        checksum: Checksum byte as transmitted
    """

    manufacturer_id: int
    device_id: int
    dialect: Dialect
    address: int
    payload: bytes
    checksum: int

    @property
    def address_bytes(self) -> bytes:
        return self.dialect.encode_address(self.address)

    @property
    def checksum_valid(self) -> bool:
        """True when address + payload + checksum sum to zero mod 128."""
        return checksum_residue(self.address_bytes + self.payload + bytes([self.checksum])) == 0

    @property
    def end_address(self) -> int:
        return self.address + len(self.payload)

    @classmethod
    def build(
        cls,
        dialect: Dialect,
        address: int,
        payload: bytes,
        device_id: int = DEFAULT_DEVICE_ID,
    ) -> "DataSetMessage":
        """Create a message with a freshly computed checksum."""
        payload = bytes(payload)
        checksum = calculate_roland_checksum(dialect.encode_address(address) + payload)
        return cls(ROLAND_ID, device_id & 0x7F, dialect, address, payload, checksum)

    @classmethod
    def from_raw(
        cls, body: bytes, issues: Optional[List[Issue]] = None
    ) -> Optional["DataSetMessage"]:
        """
        Decode a raw SysEx body.

        The checksum is not enforced here; callers check ``checksum_valid``.

        Args:
            body: Message bytes after F0, normally ending in F7
            issues: Collection that receives an issue for ignored messages

        Returns:
            Decoded message, or None if the body is not a JD Data Set message
        """
        if issues is None:
            issues = []

        if len(body) < 6:
            record_issue(issues, logger, IssueKind.IGNORED_MESSAGE, "Too short")
            return None

        if body[0] != ROLAND_ID:
            record_issue(issues, logger, IssueKind.IGNORED_MESSAGE, "Not a Roland device")
            return None

        dialect = get_dialect(body[2])
        if dialect is None:
            record_issue(
                issues,
                logger,
                IssueKind.IGNORED_MESSAGE,
                f"Not a JD-800 or JD-990 message (model 0x{body[2]:02X})",
            )
            return None

        if body[3] != DATA_SET:
            record_issue(
                issues,
                logger,
                IssueKind.IGNORED_MESSAGE,
                f"Not a Data Set message (command 0x{body[3]:02X})",
            )
            return None

        if body[-1] == SYSEX_END:
            body = body[:-1]

        # Header, address digits and the checksum
        if len(body) < HEADER_SIZE + dialect.address_digits + 1:
            record_issue(
                issues,
                logger,
                IssueKind.IGNORED_MESSAGE,
                f"Skipping {dialect.name} SysEx, too short",
            )
            return None

        address_end = HEADER_SIZE + dialect.address_digits
        return cls(
            manufacturer_id=body[0],
            device_id=body[1],
            dialect=dialect,
            address=dialect.decode_address(body[HEADER_SIZE:address_end]),
            payload=bytes(body[address_end:-1]),
            checksum=body[-1],
        )

    def to_bytes(self) -> bytes:
        """Serialize to a complete F0 ... F7 message."""
        msg = bytearray(
            [SYSEX_START, self.manufacturer_id, self.device_id, self.dialect.model_id, DATA_SET]
        )
        msg.extend(self.address_bytes)
        msg.extend(self.payload)
        msg.append(self.checksum)
        msg.append(SYSEX_END)
        return bytes(msg)
