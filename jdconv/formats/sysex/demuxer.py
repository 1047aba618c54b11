"""
SysEx demultiplexer for raw dumps and Standard MIDI Files.

Extracts successive SysEx message bodies from either a flat byte stream
(.syx) or the track events of a Standard MIDI File (.mid). The mode is
selected once by sniffing the first four bytes of the input.

Returned bodies never include the leading F0; they include the trailing
F7 whenever the source had one.

Standard MIDI File structure:
    "MThd" <u32 length> <header data, skipped>
    "MTrk" <u32 length> <delta-time, event>...
    ...

Only meta events (FF) and SysEx events (F0 / F7) matter here; channel
events are skipped according to their status byte, honoring running
status.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from jdconv.errors import Issue, IssueKind, record_issue

logger = logging.getLogger(__name__)

MIDI_FILE_MAGIC = b"MThd"
TRACK_MAGIC = b"MTrk"

SYSEX_START = 0xF0
SYSEX_END = 0xF7
META_EVENT = 0xFF

# Data bytes following a channel status byte, by high nibble
CHANNEL_DATA_LENGTH = {
    0x80: 2,  # Note off
    0x90: 2,  # Note on
    0xA0: 2,  # Polyphonic key pressure
    0xB0: 2,  # Control change
    0xC0: 1,  # Program change
    0xD0: 1,  # Channel pressure
    0xE0: 2,  # Pitch bend
}

# Data bytes following a system common status byte
SYSTEM_DATA_LENGTH = {
    0xF1: 1,  # MTC quarter frame
    0xF2: 2,  # Song position pointer
    0xF3: 1,  # Song select
}


def read_variable_length(data: bytes, offset: int) -> Tuple[int, int]:
    """
    Decode a MIDI variable-length quantity.

    Seven bits per byte, most significant group first; a set high bit
    means another byte follows.

    Args:
        data: Source bytes
        offset: Position of the first byte of the quantity

    Returns:
        Tuple of (value, offset after the quantity)

    Raises:
        EOFError: If the data ends inside the quantity

    Example:
        >>> read_variable_length(bytes([0x81, 0x00]), 0)
        (128, 2)
    """
    value = 0
    while True:
        if offset >= len(data):
            raise EOFError("Variable-length quantity runs past end of data")
        byte = data[offset]
        offset += 1
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, offset


class _TruncatedTrack(Exception):
    """Raised internally when a track ends in the middle of an event."""


class SysExDemuxer:
    """
    Pull-style SysEx extractor.

    Example:
        demuxer = SysExDemuxer.from_file("dump.mid")
        for body in demuxer:
            print(body.hex())
    """

    def __init__(self, data: Union[bytes, bytearray]):
        self._data = bytes(data)
        self._pos = 0
        self._track_end = 0
        self._running_status = 0
        self._finished = False
        self.issues: List[Issue] = []
        self.is_midi_file = self._data[:4] == MIDI_FILE_MAGIC

        if self.is_midi_file:
            self._skip_file_header()

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> "SysExDemuxer":
        """
        Create a demuxer over the contents of a file.

        Args:
            filepath: Path to .syx or .mid file

        Returns:
            Demuxer positioned at the first message
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(filepath, "rb") as f:
            return cls(f.read())

    @property
    def track_bytes_remaining(self) -> int:
        return max(0, self._track_end - self._pos)

    def __iter__(self) -> Iterator[bytes]:
        while True:
            message = self.next_message()
            if message is None:
                return
            yield message

    def messages(self) -> List[bytes]:
        """Return all remaining message bodies."""
        return list(self)

    def next_message(self) -> Optional[bytes]:
        """
        Return the next SysEx body, or None at end of stream.

        Malformed MIDI file structure ends the stream with an issue instead
        of raising.
        """
        if self._finished:
            return None

        if self.is_midi_file:
            message = self._next_midi_file_message()
        else:
            message = self._next_raw_message()

        if message is None:
            self._finished = True
        return message

    # Raw mode

    def _next_raw_message(self) -> Optional[bytes]:
        start = self._data.find(SYSEX_START, self._pos)
        if start < 0:
            self._pos = len(self._data)
            return None

        end = self._data.find(SYSEX_END, start + 1)
        if end < 0:
            message = self._data[start + 1 :]
            self._pos = len(self._data)
            if not message:
                return None
            record_issue(
                self.issues,
                logger,
                IssueKind.UNTERMINATED_SYSEX,
                "SysEx message is not terminated by F7",
                start,
            )
            return message

        self._pos = end + 1
        return self._data[start + 1 : end + 1]

    # MIDI file mode

    def _skip_file_header(self) -> None:
        if len(self._data) < 8:
            self._malformed("Truncated MIDI file header")
            return
        header_length = int.from_bytes(self._data[4:8], "big")
        self._pos = 8 + header_length
        self._track_end = self._pos

    def _malformed(self, message: str) -> None:
        record_issue(self.issues, logger, IssueKind.MALFORMED_TRACK, message, self._pos)
        self._finished = True

    def _open_track(self) -> bool:
        if self._pos >= len(self._data):
            return False

        magic = self._data[self._pos : self._pos + 4]
        if len(magic) < 4 or magic != TRACK_MAGIC:
            self._malformed("Malformed MIDI file? Unexpected track header value")
            return False

        length_bytes = self._data[self._pos + 4 : self._pos + 8]
        if len(length_bytes) < 4:
            self._malformed("Truncated track header")
            return False

        self._pos += 8
        self._track_end = self._pos + int.from_bytes(length_bytes, "big")
        self._running_status = 0
        return True

    def _read_u8(self) -> int:
        if self._pos >= len(self._data):
            raise _TruncatedTrack()
        value = self._data[self._pos]
        self._pos += 1
        return value

    def _read_varint(self) -> int:
        try:
            value, self._pos = read_variable_length(self._data, self._pos)
        except EOFError:
            raise _TruncatedTrack() from None
        return value

    def _skip(self, count: int) -> None:
        if self._pos + count > len(self._data):
            raise _TruncatedTrack()
        self._pos += count

    def _next_midi_file_message(self) -> Optional[bytes]:
        while not self._finished:
            if self.track_bytes_remaining == 0:
                if not self._open_track():
                    return None
                continue

            try:
                message = self._read_event()
            except _TruncatedTrack:
                self._malformed("Unexpected end of file inside track")
                return None

            if message is not None:
                return message

        return None

    def _read_event(self) -> Optional[bytes]:
        """Read one track event; return its payload if it is SysEx."""
        # Delta time is irrelevant for extraction
        self._read_varint()

        status = self._read_u8()
        if status == META_EVENT:
            self._skip(1)
            self._skip(self._read_varint())
            return None

        if status & 0x80:
            command = status
            if status < 0xF0:
                self._running_status = status
                data_remaining = CHANNEL_DATA_LENGTH[status & 0xF0]
            else:
                data_remaining = 0
        else:
            # Running status: the byte just read is the first data byte
            command = self._running_status
            if not command:
                record_issue(
                    self.issues,
                    logger,
                    IssueKind.MALFORMED_TRACK,
                    "Data byte without running status",
                    self._pos - 1,
                )
                return None
            data_remaining = CHANNEL_DATA_LENGTH[command & 0xF0] - 1

        if command < 0xF0:
            self._skip(data_remaining)
            return None

        if command in (SYSEX_START, SYSEX_END):
            return self._read_sysex_event()

        self._skip(SYSTEM_DATA_LENGTH.get(command, 0))
        return None

    def _read_sysex_event(self) -> Optional[bytes]:
        start = self._pos
        length = self._read_varint()
        message = self._data[self._pos : self._pos + length]
        self._pos += len(message)

        if len(message) < length:
            record_issue(
                self.issues,
                logger,
                IssueKind.UNTERMINATED_SYSEX,
                f"SysEx event truncated ({len(message)} of {length} bytes)",
                start,
            )
            return message or None

        if not message:
            return None

        if message[-1] != SYSEX_END:
            record_issue(
                self.issues,
                logger,
                IssueKind.UNTERMINATED_SYSEX,
                "Continued SysEx messages are not supported",
                start,
            )
        return message
