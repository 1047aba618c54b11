"""SysEx and Standard MIDI File handlers."""

from jdconv.formats.sysex.demuxer import SysExDemuxer, read_variable_length
from jdconv.formats.sysex.message import DataSetMessage
from jdconv.formats.sysex.writer import SysExWriter, build_data_set_messages, emit_data_set

__all__ = [
    "SysExDemuxer",
    "read_variable_length",
    "DataSetMessage",
    "SysExWriter",
    "build_data_set_messages",
    "emit_data_set",
]
