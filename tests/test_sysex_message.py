"""Tests for Data Set message decoding and the SysEx writer."""

import io
import logging
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from jdconv.dialects import JD800, JD990
from jdconv.errors import FormatError, IssueKind
from jdconv.formats.sysex import SysExDemuxer, SysExWriter
from jdconv.formats.sysex.message import DataSetMessage
from jdconv.formats.sysex.writer import MAX_PAYLOAD, build_data_set_messages, emit_data_set
from jdconv.utils.checksum import checksum_residue


class TestDataSetMessage:
    """Test cases for decoding Data Set bodies."""

    def test_decode_jd800(self):
        # F0 41 10 3D 12 05 00 00 41 3A F7
        body = bytes([0x41, 0x10, 0x3D, 0x12, 0x05, 0x00, 0x00, 0x41, 0x3A, 0xF7])
        msg = DataSetMessage.from_raw(body)

        assert msg.dialect is JD800
        assert msg.device_id == 0x10
        assert msg.address == 0x05 << 14
        assert msg.payload == b"A"
        assert msg.checksum == 0x3A
        assert msg.checksum_valid

    def test_decode_jd990_four_digit_address(self):
        msg = DataSetMessage.build(JD990, JD990.patch_address(3), b"\x01\x02")
        decoded = DataSetMessage.from_raw(msg.to_bytes()[1:])

        assert decoded.dialect is JD990
        assert decoded.address == (6 << 21) + 3 * (1 << 14)
        assert decoded.address_bytes == bytes([0x06, 0x03, 0x00, 0x00])
        assert decoded.payload == b"\x01\x02"

    def test_missing_terminator(self):
        msg = DataSetMessage.build(JD800, 0x100, b"\x10\x20")
        decoded = DataSetMessage.from_raw(msg.to_bytes()[1:-1])
        assert decoded.payload == b"\x10\x20"
        assert decoded.checksum_valid

    def test_empty_payload(self):
        body = bytes([0x41, 0x10, 0x3D, 0x12, 0x00, 0x02, 0x00, 0x7E, 0xF7])
        msg = DataSetMessage.from_raw(body)
        assert msg.payload == b""
        assert msg.checksum_valid

    def test_bad_checksum_is_decoded(self):
        """Decoding keeps the message; the checksum is judged at ingest."""
        body = bytearray(DataSetMessage.build(JD800, 0, b"\x10").to_bytes()[1:])
        body[-2] ^= 0x01
        msg = DataSetMessage.from_raw(bytes(body))
        assert msg is not None
        assert not msg.checksum_valid

    @pytest.mark.parametrize(
        "body",
        [
            bytes([0x41, 0x10, 0x3D, 0xF7]),  # too short
            bytes([0x43, 0x10, 0x3D, 0x12, 0x00, 0x00, 0x00, 0x00, 0xF7]),  # Yamaha
            bytes([0x41, 0x10, 0x16, 0x12, 0x00, 0x00, 0x00, 0x00, 0xF7]),  # other model
            bytes([0x41, 0x10, 0x3D, 0x11, 0x00, 0x00, 0x00, 0x00, 0xF7]),  # Data Request
            bytes([0x41, 0x10, 0x57, 0x12, 0x00, 0x00, 0xF7]),  # short JD-990 address
        ],
    )
    def test_ignored(self, body):
        issues = []
        assert DataSetMessage.from_raw(body, issues) is None
        assert [issue.kind for issue in issues] == [IssueKind.IGNORED_MESSAGE]

    def test_to_bytes(self):
        msg = DataSetMessage.build(JD800, 0x05 << 14, b"A")
        assert msg.to_bytes() == bytes(
            [0xF0, 0x41, 0x10, 0x3D, 0x12, 0x05, 0x00, 0x00, 0x41, 0x3A, 0xF7]
        )

    def test_address_out_of_range(self):
        with pytest.raises(ValueError):
            DataSetMessage.build(JD800, 1 << 21, b"\x00")


class TestBuildDataSetMessages:
    """Test cases for splitting data into messages."""

    def test_chunking(self):
        data = bytes(i % 0x80 for i in range(600))
        messages = build_data_set_messages(JD990.patch_address(0), JD990, data)

        decoded = [DataSetMessage.from_raw(message[1:]) for message in messages]
        assert [len(msg.payload) for msg in decoded] == [MAX_PAYLOAD, MAX_PAYLOAD, 88]
        assert [msg.address for msg in decoded] == [
            JD990.patch_address(0),
            JD990.patch_address(0) + 256,
            JD990.patch_address(0) + 512,
        ]
        assert b"".join(msg.payload for msg in decoded) == data

    def test_checksum_law(self):
        data = bytes([0x7F] * 300)
        for message in build_data_set_messages(0x123, JD800, data):
            assert message[0] == 0xF0 and message[-1] == 0xF7
            assert checksum_residue(message[5:-1]) == 0

    def test_device_id(self):
        message = build_data_set_messages(0, JD800, b"\x00", device_id=0x11)[0]
        assert message[2] == 0x11

    def test_high_bit_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            messages = build_data_set_messages(0, JD800, bytes([0x10, 0x90, 0xA0]))

        assert len(messages) == 1
        assert len([r for r in caplog.records if "Invalid byte" in r.getMessage()]) == 1

    def test_emit_to_sink(self):
        sink = io.BytesIO()
        count = emit_data_set(sink, 0, JD800, bytes(512))
        assert count == 2
        assert sink.getvalue().count(0xF0) == 2


class TestSysExWriter:
    """Test cases for .syx / .mid output."""

    def test_raw_output(self, tmp_path, jd800_patch):
        writer = SysExWriter()
        assert writer.add(JD800.patch_address(1), JD800, jd800_patch) == 2

        path = tmp_path / "bank.syx"
        writer.write(path)

        assert path.read_bytes() == writer.to_bytes()
        assert len(SysExDemuxer(path.read_bytes()).messages()) == 2

    def test_midi_output(self, tmp_path, jd800_patch):
        writer = SysExWriter()
        writer.add(JD800.patch_address(1), JD800, jd800_patch)

        path = tmp_path / "bank.mid"
        writer.write(path)

        demuxer = SysExDemuxer.from_file(path)
        assert demuxer.is_midi_file
        assert [b"\xf0" + body for body in demuxer.messages()] == writer.messages

    def test_midi_file_structure(self):
        writer = SysExWriter(device_id=0x12)
        writer.add(0, JD800, b"\x01\x02")
        midi_file = writer.to_midi_file()

        assert len(midi_file.tracks) == 1
        sysex = [msg for msg in midi_file.tracks[0] if msg.type == "sysex"]
        assert len(sysex) == 1
        assert bytes(sysex[0].data)[:3] == bytes([0x41, 0x12, 0x3D])

    def test_midi_file_rejects_high_bit_data(self):
        writer = SysExWriter()
        writer.add(0, JD800, b"\x01\xfe\x02")

        with pytest.raises(FormatError):
            writer.to_midi_file()

    def test_high_bit_data_still_written_raw(self, tmp_path):
        writer = SysExWriter()
        writer.add(0, JD800, b"\x01\xfe\x02")

        path = tmp_path / "bank.syx"
        writer.write(path)
        assert path.read_bytes() == writer.to_bytes()

    def test_failed_midi_write_leaves_no_file(self, tmp_path):
        writer = SysExWriter()
        writer.add(0, JD800, b"\xfe")

        path = tmp_path / "bank.mid"
        with pytest.raises(FormatError):
            writer.write(path)
        assert not path.exists()
