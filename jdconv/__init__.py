"""
JDConv - Patch archive tools for the Roland JD-800 family.

This library provides tools to:
- Demultiplex SysEx dumps from raw .syx and Standard MIDI Files (.mid)
- Mirror JD-800 / JD-990 device memory and emit Data Set messages
- Read and write JD-800 plugin (.bin), ZC1 / JD-08 hardware (.svz)
  and JD-08 backup (.svd) containers

Example usage:
    from jdconv import DeviceMemoryImage, SVZWriter
    from jdconv.records import empty_vst_patch

    # Merge two dumps, later files win
    image = DeviceMemoryImage()
    image.ingest_file("bank_a.syx")
    image.ingest_file("edits.mid")

    # Write an empty plugin bank
    SVZWriter.write_plugin([empty_vst_patch()] * 64, "JD800.bin")
"""

__version__ = "0.1.0"
__author__ = "JDConv Contributors"

from jdconv.dialects import JD800, JD990, Dialect, get_dialect
from jdconv.errors import (
    ChecksumError,
    ContainerCrcError,
    FormatError,
    Issue,
    IssueKind,
    JDConvError,
)
from jdconv.formats import (
    SVDReader,
    SVDWriter,
    SVZReader,
    SVZWriter,
    StreamKind,
    SysExDemuxer,
    SysExWriter,
    detect_file_kind,
    detect_kind,
)
from jdconv.formats.sysex.message import DataSetMessage
from jdconv.memory import DeviceMemoryImage

__all__ = [
    "JD800",
    "JD990",
    "Dialect",
    "get_dialect",
    "JDConvError",
    "FormatError",
    "ChecksumError",
    "ContainerCrcError",
    "Issue",
    "IssueKind",
    "DataSetMessage",
    "DeviceMemoryImage",
    "StreamKind",
    "detect_kind",
    "detect_file_kind",
    "SysExDemuxer",
    "SysExWriter",
    "SVZReader",
    "SVZWriter",
    "SVDReader",
    "SVDWriter",
]
