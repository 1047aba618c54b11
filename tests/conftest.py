"""Test configuration and fixtures.

Everything is synthesised in memory; no binary fixtures are checked in.
"""

import struct
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from jdconv.dialects import JD800_PATCH_SIZE, JD990_PATCH_SIZE, VST_PATCH_SIZE
from jdconv.records import DEFAULT_ZEN_HEADER, backup_from_vst


def make_patch(name: str, size: int, seed: int = 0) -> bytes:
    """A patch record: 16-character name followed by 7-bit filler."""
    body = bytes((seed + i) % 0x60 for i in range(size - 16))
    return name.ljust(16)[:16].encode("ascii") + body


def make_vst_patch(name: str, seed: int = 0) -> bytes:
    """A plugin record with the default ZEN header."""
    body = make_patch(name, 2016, seed)
    return DEFAULT_ZEN_HEADER + body + bytes(VST_PATCH_SIZE - 16 - len(body))


def build_svd(chunks) -> bytes:
    """Build a backup file from (tag, payload) pairs, laid out in order."""
    header_size = 14 + 16 * len(chunks)
    out = bytearray(struct.pack("<H14s", header_size, b"SVD5" + bytes(10)))
    table = len(out)
    out += bytes(16 * len(chunks))

    entries = []
    for tag, payload in chunks:
        entries.append(struct.pack("<4s4sII", tag, b"DD07", len(out), len(payload)))
        out += payload

    out[table : table + 16 * len(chunks)] = b"".join(entries)
    return bytes(out)


def build_patch_chunk(records) -> bytes:
    return struct.pack("<4I", len(records), 2048, 16, 0) + b"".join(records)


@pytest.fixture
def jd800_patch():
    """A 384-byte JD-800 patch."""
    return make_patch("JD-800 TEST", JD800_PATCH_SIZE)


@pytest.fixture
def jd990_patch():
    """A 486-byte JD-990 patch."""
    return make_patch("JD-990 TEST", JD990_PATCH_SIZE, seed=7)


@pytest.fixture
def vst_patches():
    """Three plugin records with distinct names."""
    return [make_vst_patch(f"VST PATCH {i + 1}", seed=i) for i in range(3)]


@pytest.fixture
def system_chunk():
    """Opaque non-patch chunk that must survive rewriting untouched."""
    return bytes(range(256)) * 2


@pytest.fixture
def svd_template(system_chunk):
    """Backup with a system chunk, a patch chunk of two records and a trailer chunk."""
    records = [backup_from_vst(make_vst_patch(f"OLD {i + 1}", seed=i)) for i in range(2)]
    return build_svd(
        [
            (b"SYSa", system_chunk),
            (b"PATa", build_patch_chunk(records)),
            (b"RHYa", b"\x01\x02\x03\x04" * 8),
        ]
    )


@pytest.fixture
def svd_template_without_patches(system_chunk):
    """Backup that only holds a system chunk."""
    return build_svd([(b"SYSa", system_chunk)])


@pytest.fixture
def write_file(tmp_path):
    """Write bytes to a file in tmp_path and return its path."""

    def _write(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write
