"""
Data Set message writer.

Splits arbitrary byte ranges into Data Set messages of at most 256 data
bytes and writes them either as a raw .syx stream or wrapped in a
Standard MIDI File (one track, one SysEx event per message).
"""

import logging
from pathlib import Path
from typing import BinaryIO, List, Union

import mido

from jdconv.dialects import Dialect
from jdconv.errors import FormatError
from jdconv.formats.sysex.message import DEFAULT_DEVICE_ID, DataSetMessage

logger = logging.getLogger(__name__)

# Maximum data bytes per Data Set message
MAX_PAYLOAD = 256


def build_data_set_messages(
    address: int,
    dialect: Dialect,
    data: bytes,
    device_id: int = DEFAULT_DEVICE_ID,
) -> List[bytes]:
    """
    Split data into complete Data Set messages.

    Args:
        address: Device address of the first data byte
        dialect: Target dialect (selects model byte and address width)
        data: Bytes to transmit
        device_id: SysEx device ID

    Returns:
        List of F0 ... F7 messages, addresses advancing by chunk length
    """
    for i, byte in enumerate(data):
        if byte >= 0x80:
            logger.warning(
                "Invalid byte 0x%02X in SysEx data block at %d - either broken parameter "
                "conversion or broken SysEx source",
                byte,
                i,
            )
            break

    messages = []
    for offset in range(0, len(data), MAX_PAYLOAD):
        chunk = data[offset : offset + MAX_PAYLOAD]
        messages.append(DataSetMessage.build(dialect, address, chunk, device_id).to_bytes())
        address += len(chunk)
    return messages


def emit_data_set(
    sink: BinaryIO,
    address: int,
    dialect: Dialect,
    data: bytes,
    device_id: int = DEFAULT_DEVICE_ID,
) -> int:
    """
    Write Data Set messages for ``data`` to a binary sink.

    Returns:
        Number of messages written
    """
    messages = build_data_set_messages(address, dialect, data, device_id)
    for message in messages:
        sink.write(message)
    return len(messages)


class SysExWriter:
    """
    Collects Data Set messages and writes them as .syx or .mid.

    Example:
        writer = SysExWriter()
        writer.add(JD800.patch_address(0), JD800, patch_bytes)
        writer.write("bank.syx")
    """

    def __init__(self, device_id: int = DEFAULT_DEVICE_ID):
        """
        Initialize writer.

        Args:
            device_id: SysEx device ID (0x10 is the factory default)
        """
        self.device_id = device_id & 0x7F
        self.messages: List[bytes] = []

    def add(self, address: int, dialect: Dialect, data: bytes) -> int:
        """Queue ``data`` at ``address``; returns the number of messages added."""
        messages = build_data_set_messages(address, dialect, data, self.device_id)
        self.messages.extend(messages)
        return len(messages)

    def to_bytes(self) -> bytes:
        """Concatenate all queued messages as a raw SysEx stream."""
        return b"".join(self.messages)

    def to_midi_file(self) -> mido.MidiFile:
        """
        Wrap all queued messages in a single-track Standard MIDI File.

        Raises:
            FormatError: If a message carries a data byte above 0x7F, which
                a MIDI file cannot hold
        """
        midi_file = mido.MidiFile(type=0)
        track = mido.MidiTrack()
        midi_file.tracks.append(track)

        for index, message in enumerate(self.messages):
            # mido adds F0 / F7 itself
            data = message[1:-1]
            if any(byte >= 0x80 for byte in data):
                raise FormatError(
                    f"Message {index + 1} holds data bytes above 0x7F "
                    "(incomplete or corrupt patch data), cannot write a MIDI file"
                )
            track.append(mido.Message("sysex", data=data, time=0))

        track.append(mido.MetaMessage("end_of_track", time=0))
        return midi_file

    def write(self, filepath: Union[str, Path]) -> None:
        """
        Write queued messages to a file.

        A ``.mid`` suffix selects Standard MIDI File output, anything else
        a raw SysEx dump.

        Args:
            filepath: Output file path
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        if filepath.suffix.lower() == ".mid":
            self.to_midi_file().save(str(filepath))
            return

        with open(filepath, "wb") as f:
            f.write(self.to_bytes())
