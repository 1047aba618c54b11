"""Tests for SVZ plugin and hardware containers."""

import struct
import zlib
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from jdconv.errors import ContainerCrcError, FormatError, IssueKind
from jdconv.formats.svz import SVZReader, SVZWriter
from jdconv.formats.svz.structures import DIFA_BLOCK, MDLaHeader
from jdconv.records import hardware_from_vst

EXTA_OFFSET = 0x20
MDLA_OFFSET = 0x64
UNCOMPRESSED_SIZE_OFFSET = EXTA_OFFSET + 40


def hardware_record_offset(num_patches: int, index: int) -> int:
    return MDLA_OFFSET + 16 + 4 * num_patches + index * 2048


class TestPluginContainer:
    """Test cases for .bin plugin banks."""

    def test_round_trip(self, vst_patches):
        data = SVZWriter.to_plugin_bytes(vst_patches)

        reader = SVZReader()
        assert reader.parse_bytes(data) == vst_patches
        assert reader.kind == "plugin"
        assert reader.issues == []

    def test_layout(self, vst_patches):
        data = SVZWriter.to_plugin_bytes(vst_patches)

        assert data[:4] == b"SVZa"
        assert data[4:6] == bytes([1, 0])
        assert data[6:12] == b"RC001\x01"

        tag, marker, offset, size = struct.unpack_from("<4s4sII", data, 16)
        assert (tag, marker, offset) == (b"EXTa", b"ZCOR", EXTA_OFFSET)
        assert offset + size == len(data)

        values = struct.unpack_from("<6III8sI5I", data, EXTA_OFFSET)
        compressed = data[EXTA_OFFSET + 64 :]
        assert values[:6] == (1, 0, 32, 0, 1, 32)
        assert values[6] == size - 0x20
        assert values[7] == zlib.crc32(compressed)
        assert values[9] == 32 + 3 * 22352

        header = zlib.decompress(compressed)[:32]
        assert struct.unpack("<4s3I4I", header) == (b"SVDx", 32, 22352, 3, 2, 0, 0, 0)

    @pytest.mark.parametrize("position", [EXTA_OFFSET + 28, EXTA_OFFSET + 64 + 10])
    def test_corrupted_crc(self, vst_patches, position):
        """A stale CRC32 or damaged compressed data is fatal."""
        data = bytearray(SVZWriter.to_plugin_bytes(vst_patches))
        data[position] ^= 0xFF

        reader = SVZReader()
        records = None
        with pytest.raises(ContainerCrcError) as excinfo:
            records = reader.parse_bytes(bytes(data))
        assert records is None
        assert excinfo.value.exit_code == 4

    def test_truncated(self, vst_patches):
        data = SVZWriter.to_plugin_bytes(vst_patches)
        with pytest.raises(FormatError):
            SVZReader().parse_bytes(data[:-10])

    def test_wrong_record_size(self):
        with pytest.raises(ValueError):
            SVZWriter.to_plugin_bytes([bytes(2048)])

    def test_file_round_trip(self, tmp_path, vst_patches):
        path = tmp_path / "out" / "JD800.bin"
        SVZWriter.write_plugin(vst_patches, path)
        assert SVZReader.read(path) == vst_patches

    def test_parse_hardware_rejects_plugin(self, vst_patches):
        with pytest.raises(FormatError):
            SVZReader().parse_hardware(SVZWriter.to_plugin_bytes(vst_patches))

    @pytest.mark.parametrize("delta", [-22352, -1, 1, 100])
    def test_declared_size_mismatch(self, vst_patches, delta):
        data = bytearray(SVZWriter.to_plugin_bytes(vst_patches))
        declared = struct.unpack_from("<I", data, UNCOMPRESSED_SIZE_OFFSET)[0]
        struct.pack_into("<I", data, UNCOMPRESSED_SIZE_OFFSET, declared + delta)

        with pytest.raises(FormatError):
            SVZReader().parse_bytes(bytes(data))

    def test_declared_size_too_small(self, vst_patches):
        data = bytearray(SVZWriter.to_plugin_bytes(vst_patches))
        struct.pack_into("<I", data, UNCOMPRESSED_SIZE_OFFSET, 0)

        with pytest.raises(FormatError):
            SVZReader().parse_bytes(bytes(data))

    def test_oversized_stream_rejected(self, vst_patches):
        """A stream inflating far past the declared size is not inflated fully."""
        header = bytearray(SVZWriter.to_plugin_bytes(vst_patches)[: EXTA_OFFSET + 64])
        stream = zlib.compress(bytes(16 * 1024 * 1024), 9)
        struct.pack_into("<I", header, 28, len(stream) + 64)
        struct.pack_into("<I", header, EXTA_OFFSET + 24, len(stream) + 0x20)
        struct.pack_into("<I", header, EXTA_OFFSET + 28, zlib.crc32(stream))

        with pytest.raises(FormatError):
            SVZReader().parse_bytes(bytes(header) + stream)


class TestHardwareContainer:
    """Test cases for .svz hardware patch files."""

    def records(self, vst_patches):
        return [hardware_from_vst(patch) for patch in vst_patches]

    def test_round_trip(self, vst_patches):
        records = self.records(vst_patches)
        data = SVZWriter.to_hardware_bytes(records)

        reader = SVZReader()
        parsed = reader.parse_bytes(data)

        assert reader.kind == "hardware"
        assert reader.issues == []
        assert len(parsed) == 3
        for original, record in zip(records, parsed):
            assert record[:2042] == original[:2042]
            assert (record[2042], record[2045], record[2046]) == (0x44, 0x01, 0x09)

    def test_layout(self, vst_patches):
        data = SVZWriter.to_hardware_bytes(self.records(vst_patches))

        assert data[4:6] == bytes([2, 2])
        difa = struct.unpack_from("<4s4sII", data, 16)
        mdla = struct.unpack_from("<4s4sII", data, 32)
        assert difa == (b"DIFa", b"ZCOR", 0x30, 52)
        assert mdla == (b"MDLa", b"ZCOR", MDLA_OFFSET, MDLaHeader.chunk_size_for(3))
        assert data[0x30:MDLA_OFFSET] == DIFA_BLOCK
        assert struct.unpack_from("<4I", data, MDLA_OFFSET) == (3, 0x800, mdla[3] & 0x1FF, 0)
        assert len(data) == MDLA_OFFSET + mdla[3]

    def test_crc_table(self, vst_patches):
        data = SVZWriter.to_hardware_bytes(self.records(vst_patches))
        for index in range(3):
            offset = hardware_record_offset(3, index)
            stored = struct.unpack_from("<I", data, MDLA_OFFSET + 16 + 4 * index)[0]
            assert stored == zlib.crc32(data[offset : offset + 2048])

    def test_stale_patch_crc_is_a_warning(self, vst_patches):
        data = bytearray(SVZWriter.to_hardware_bytes(self.records(vst_patches)))
        data[hardware_record_offset(3, 1)] ^= 0x01

        reader = SVZReader()
        parsed = reader.parse_bytes(bytes(data))

        assert len(parsed) == 3
        assert [issue.kind for issue in reader.issues] == [IssueKind.INTEGRITY]
        assert "patch 2" in reader.issues[0].message

    def test_other_model_rejected(self, vst_patches):
        data = bytearray(SVZWriter.to_hardware_bytes(self.records(vst_patches)))
        data[hardware_record_offset(3, 0) + 2045] = 0x02

        with pytest.raises(FormatError):
            SVZReader().parse_hardware(bytes(data))

    def test_bad_magic(self, vst_patches):
        data = b"XVZa" + SVZWriter.to_hardware_bytes(self.records(vst_patches))[4:]
        with pytest.raises(FormatError):
            SVZReader().parse_bytes(data)

    def test_bad_chunk_marker(self, vst_patches):
        data = bytearray(SVZWriter.to_hardware_bytes(self.records(vst_patches)))
        data[20:24] = b"ZCOX"
        with pytest.raises(FormatError):
            SVZReader().parse_bytes(bytes(data))

    def test_parse_plugin_rejects_hardware(self, vst_patches):
        with pytest.raises(FormatError):
            SVZReader().parse_plugin(SVZWriter.to_hardware_bytes(self.records(vst_patches)))

    def test_file_round_trip(self, tmp_path, vst_patches):
        path = tmp_path / "JD08.svz"
        SVZWriter.write_hardware(self.records(vst_patches), path)
        assert len(SVZReader.read(path)) == 3

    def test_difa_size_checked(self, vst_patches):
        data = bytearray(SVZWriter.to_hardware_bytes(self.records(vst_patches)))
        struct.pack_into("<I", data, 28, 48)

        with pytest.raises(FormatError):
            SVZReader().parse_bytes(bytes(data))
        with pytest.raises(FormatError):
            SVZReader().parse_hardware(bytes(data))

    def test_missing_difa(self, vst_patches):
        """Only the MDLa chunk listed in the table."""
        data = bytearray(SVZWriter.to_hardware_bytes(self.records(vst_patches)))
        data[16:32] = data[32:48]
        data[4:6] = bytes([1, 1])

        with pytest.raises(FormatError):
            SVZReader().parse_bytes(bytes(data))

    def test_unknown_chunk_instead_of_difa(self, vst_patches):
        data = bytearray(SVZWriter.to_hardware_bytes(self.records(vst_patches)))
        data[16:20] = b"XXXa"

        with pytest.raises(FormatError):
            SVZReader().parse_bytes(bytes(data))
