"""
Device dialect descriptors.

Each Roland model that speaks Data Set messages for this product family
has its own address width, address-space size and patch layout. All of
those constants live here so that readers and writers query one
descriptor instead of re-deriving offsets.

Address map (7-bit digits, big-endian):

    JD-800 (model 0x3D, 3 address digits)
        0x00 xx xx  Patch (temporary)
        0x01 xx xx  Special setup (temporary)
        0x02 xx xx  System
        0x03 xx xx  Part
        0x04 xx xx  Special setup (internal)
        0x05 xx xx  Patches (internal), 3 * 128 bytes apart
        0x07 xx xx  Display

    JD-990 (model 0x57, 4 address digits)
        0x00 ...    System
        0x01 ...    Performance (temporary)
        0x02 ...    Performance patches (temporary)
        0x03 ...    Patch (temporary)
        0x04 ...    Special setup (temporary)
        0x05 ...    Performance (internal)
        0x06 ...    Patches (internal), one per 0x4000
        0x07 ...    Special setup (internal)
        0x08 ...    System (card)
        0x09 ...    Performance (card)
        0x0A ...    Patches (card)
        0x0B ...    Special setup (card)
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


PATCHES_PER_BANK = 64
UNDEFINED_MEMORY = 0xFE

# Fixed record lengths of the three patch dialects
JD800_PATCH_SIZE = 384
JD990_PATCH_SIZE = 486
VST_PATCH_SIZE = 22352


@dataclass(frozen=True)
class Dialect:
    """
    Per-model constants for one SysEx dialect.

    Attributes:
        name: Display name of the device
        model_id: Roland model byte following the device ID
        address_digits: Number of 7-bit address digits in a Data Set message
        capacity: Size of the modelled address space in bytes
        patch_size: Fixed patch record length
        patch_temporary: Address of the temporary (edit buffer) patch
        patch_internal: Address of internal patch 1
        patch_stride: Distance between two internal patches
        patch_card: Address of card patch 1, if the device has a card slot
        setup_size: Fixed special setup (rhythm setup) length
        setup_temporary: Address of the temporary special setup
        setup_internal: Address of the internal special setup
        setup_card: Address of the card special setup, if any
        regions: Other named areas, reported when present
    """

    name: str
    model_id: int
    address_digits: int
    capacity: int
    patch_size: int
    patch_temporary: int
    patch_internal: int
    patch_stride: int
    setup_size: int
    setup_temporary: int
    setup_internal: int
    patch_card: Optional[int] = None
    setup_card: Optional[int] = None
    regions: Tuple[Tuple[str, int], ...] = field(default_factory=tuple)

    @property
    def address_bits(self) -> int:
        return 7 * self.address_digits

    @property
    def temporary_trigger(self) -> int:
        """
        Address whose write completes a temporary patch transmission.

        The device sends the edit buffer as a 256-byte message followed by
        the remainder at +256; a write there marks one committed edit.
        """
        return self.patch_temporary + 256

    def patch_address(self, index: int) -> int:
        """Address of internal patch ``index`` (0-based)."""
        return self.patch_internal + index * self.patch_stride

    def card_patch_address(self, index: int) -> Optional[int]:
        if self.patch_card is None:
            return None
        return self.patch_card + index * self.patch_stride

    def encode_address(self, address: int) -> bytes:
        """
        Encode an address as big-endian base-128 digits.

        Args:
            address: Device address

        Returns:
            ``address_digits`` bytes, most significant first
        """
        if address < 0 or address >> self.address_bits:
            raise ValueError(f"Address 0x{address:X} does not fit {self.name} addressing")
        return bytes(
            (address >> (7 * shift)) & 0x7F for shift in reversed(range(self.address_digits))
        )

    def decode_address(self, digits: bytes) -> int:
        """Decode big-endian base-128 address digits."""
        address = 0
        for digit in digits[: self.address_digits]:
            address = (address << 7) | (digit & 0x7F)
        return address


JD800 = Dialect(
    name="JD-800",
    model_id=0x3D,
    address_digits=3,
    capacity=0x200000,
    patch_size=JD800_PATCH_SIZE,
    patch_temporary=0x00 << 14,
    patch_internal=0x05 << 14,
    patch_stride=0x03 << 7,
    setup_size=5378,
    setup_temporary=0x01 << 14,
    setup_internal=0x04 << 14,
    regions=(
        ("System", 0x02 << 14),
        ("Part", 0x03 << 14),
        ("Display", 0x07 << 14),
    ),
)

JD990 = Dialect(
    name="JD-990",
    model_id=0x57,
    address_digits=4,
    capacity=0x1800000,
    patch_size=JD990_PATCH_SIZE,
    patch_temporary=0x03 << 21,
    patch_internal=0x06 << 21,
    patch_stride=1 << 14,
    setup_size=6524,
    setup_temporary=0x04 << 21,
    setup_internal=0x07 << 21,
    patch_card=0x0A << 21,
    setup_card=0x0B << 21,
    regions=(
        ("System", 0x00 << 21),
        ("Performance (temporary)", 0x01 << 21),
        ("Performance patches (temporary)", 0x02 << 21),
        ("Performance (internal)", 0x05 << 21),
        ("System (card)", 0x08 << 21),
        ("Performance (card)", 0x09 << 21),
    ),
)

DIALECTS_BY_MODEL_ID: Dict[int, Dialect] = {
    JD800.model_id: JD800,
    JD990.model_id: JD990,
}

# JD-800 display memory holds two 22-character LCD lines
DISPLAY_LINE_LENGTH = 22


def get_dialect(model_id: int) -> Optional[Dialect]:
    """Look up a dialect by its SysEx model byte."""
    return DIALECTS_BY_MODEL_ID.get(model_id)
