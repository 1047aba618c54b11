"""Format handlers for SysEx dumps and SVZ / SVD containers."""

from jdconv.formats.detect import StreamKind, detect_file_kind, detect_kind
from jdconv.formats.svd import SVDReader, SVDWriter
from jdconv.formats.svz import SVZReader, SVZWriter
from jdconv.formats.sysex import SysExDemuxer, SysExWriter

__all__ = [
    "StreamKind",
    "detect_kind",
    "detect_file_kind",
    "SVDReader",
    "SVDWriter",
    "SVZReader",
    "SVZWriter",
    "SysExDemuxer",
    "SysExWriter",
]
