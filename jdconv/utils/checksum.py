"""
Roland SysEx checksum calculation utilities.

Roland Data Set (DT1) messages carry one checksum byte after the payload:
1. Sum all bytes from the first address byte through the last data byte
2. Take the two's complement of the sum
3. Keep the lower 7 bits

Summing the address, the data and the checksum byte itself therefore gives
a multiple of 128.
"""

from typing import List, Union


def calculate_roland_checksum(data: Union[bytes, List[int]]) -> int:
    """
    Calculate the Roland checksum for address + data bytes.

    Args:
        data: Bytes to calculate checksum over (address field + payload)

    Returns:
        Checksum value (0-127)

    Example:
        >>> calculate_roland_checksum(bytes([0x05, 0x00, 0x00, 0x41]))
        58
    """
    return (-sum(data)) & 0x7F


def verify_checksum(data: Union[bytes, List[int]], expected_checksum: int) -> bool:
    """
    Verify a Roland SysEx checksum.

    Args:
        data: Bytes the checksum was calculated over
        expected_checksum: The checksum byte from the message

    Returns:
        True if checksum is valid, False otherwise
    """
    return calculate_roland_checksum(data) == expected_checksum


def checksum_residue(data_with_checksum: Union[bytes, List[int]]) -> int:
    """
    Sum of address, payload and checksum byte modulo 128.

    Zero for every well-formed message.
    """
    return sum(data_with_checksum) & 0x7F
