"""Utility functions for jdconv."""

from jdconv.utils.checksum import calculate_roland_checksum, verify_checksum

__all__ = [
    "calculate_roland_checksum",
    "verify_checksum",
]
