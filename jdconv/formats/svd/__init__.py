"""SVD (JD-08 backup) container handlers."""

from jdconv.formats.svd.reader import SVDReader
from jdconv.formats.svd.writer import SVDWriter

__all__ = ["SVDReader", "SVDWriter"]
