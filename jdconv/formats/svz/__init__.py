"""SVZ (plugin / hardware) container handlers."""

from jdconv.formats.svz.reader import SVZReader
from jdconv.formats.svz.writer import SVZWriter

__all__ = ["SVZReader", "SVZWriter"]
