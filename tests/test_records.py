"""Tests for patch record framing helpers."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from jdconv.dialects import VST_PATCH_SIZE
from jdconv.records import (
    DEFAULT_ZEN_HEADER,
    backup_from_vst,
    empty_vst_patch,
    hardware_from_vst,
    is_vst_model,
    merge_into_backup,
    parse_backup_position,
    patch_index_label,
    patch_name,
    vst_from_backup,
    vst_from_hardware,
)


class TestRecordFraming:
    """Test cases for moving records between container framings."""

    def test_hardware_from_vst(self, vst_patches):
        record = hardware_from_vst(vst_patches[0])
        assert len(record) == 2048
        assert patch_name(record) == "VST PATCH 1     "

    def test_vst_from_hardware(self, vst_patches):
        record = vst_from_hardware(hardware_from_vst(vst_patches[0]))
        assert len(record) == VST_PATCH_SIZE
        assert record[:16] == DEFAULT_ZEN_HEADER
        assert record[:2032] == vst_patches[0][:2032]
        assert record[2032:] == bytes(VST_PATCH_SIZE - 2032)

    def test_backup_from_vst(self, vst_patches):
        record = backup_from_vst(vst_patches[1])
        assert len(record) == 2048
        assert (record[4], record[5], record[6], record[8], record[2044]) == (1, 1, 5, 15, 8)
        assert record[16:2032] == vst_patches[1][16:2032]
        assert patch_name(record, 16) == "VST PATCH 2     "

    def test_vst_from_backup(self, vst_patches):
        record = vst_from_backup(backup_from_vst(vst_patches[2]))
        assert record[:2032] == vst_patches[2][:2032]
        assert len(record) == VST_PATCH_SIZE

    def test_default_zen_header(self):
        assert DEFAULT_ZEN_HEADER == bytes([3, 0, 5, 0, 0, 0, 100, 0]) + bytes(8)

    def test_is_vst_model(self, vst_patches):
        assert is_vst_model(vst_patches[0])
        other = bytes([4, 0, 5, 0]) + vst_patches[0][4:]
        assert not is_vst_model(other)

    def test_empty_vst_patch(self):
        patch = empty_vst_patch()
        assert len(patch) == VST_PATCH_SIZE
        assert is_vst_model(patch)
        assert patch_name(patch, 16) == " " * 16


class TestPatchNumbering:
    """Test cases for front-panel patch numbers."""

    @pytest.mark.parametrize(
        "index, count, is_card, label",
        [
            (0, 64, False, "I11"),
            (9, 64, False, "I22"),
            (63, 64, False, "I88"),
            (0, 128, False, "A11"),
            (64, 128, False, "B11"),
            (255, 256, False, "D88"),
            (7, 64, True, "C18"),
        ],
    )
    def test_label(self, index, count, is_card, label):
        assert patch_index_label(index, count, is_card) == label

    @pytest.mark.parametrize(
        "position, index",
        [("A", 0), ("b", 64), ("D", 192), ("A11", 0), ("B42", 97), ("d88", 255)],
    )
    def test_parse_position(self, position, index):
        assert parse_backup_position(position) == index

    @pytest.mark.parametrize("position", ["", "E", "A1", "A19", "A01", "B423", "11"])
    def test_parse_position_invalid(self, position):
        with pytest.raises(ValueError):
            parse_backup_position(position)


class TestMergeIntoBackup:
    """Test cases for placing new patches inside an existing backup."""

    def test_replace_middle(self):
        existing = [b"e%d" % i for i in range(10)]
        merged = merge_into_backup([b"n0", b"n1"], existing, 3)
        assert merged == existing[:3] + [b"n0", b"n1"] + existing[5:]

    def test_append_past_end(self):
        existing = [b"e0", b"e1"]
        assert merge_into_backup([b"n0"], existing, 5) == [b"e0", b"e1", b"n0"]

    def test_empty_backup(self):
        assert merge_into_backup([b"n0"], [], 64) == [b"n0"]

    def test_capped_at_four_banks(self):
        existing = [b"e"] * 250
        merged = merge_into_backup([b"n"] * 10, existing, 250)
        assert len(merged) == 256
        assert merged[-1] == b"n"
