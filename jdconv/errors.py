"""
Error taxonomy for jdconv.

Fatal problems (anything that would make the output ill-formed) are raised
as exceptions derived from JDConvError. Problems that only reduce how much
of the input is recovered are recorded as Issue objects on the component
that found them and processing continues.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class JDConvError(Exception):
    """Base class for fatal conversion errors."""

    exit_code = 1


class FormatError(JDConvError):
    """Unrecognized magic/marker or truncated structure."""

    exit_code = 2


class ChecksumError(JDConvError):
    """A Data Set message whose Roland checksum does not sum to zero."""

    exit_code = 3


class ContainerCrcError(JDConvError):
    """Container-level CRC32 mismatch over compressed data."""

    exit_code = 4


class IssueKind(Enum):
    """Recoverable problem categories."""

    INTEGRITY = "integrity"
    BOUNDS = "bounds"
    DIALECT_MISMATCH = "dialect-mismatch"
    TRUNCATION = "truncation"
    UNTERMINATED_SYSEX = "unterminated-sysex"
    MALFORMED_TRACK = "malformed-track"
    IGNORED_MESSAGE = "ignored-message"


@dataclass
class Issue:
    """
    A recoverable problem found while reading or writing.

    Attributes:
        kind: Issue category
        message: Human readable description
        offset: Byte offset or device address the issue refers to, if any
    """

    kind: IssueKind
    message: str
    offset: Optional[int] = None

    def __str__(self) -> str:
        if self.offset is None:
            return f"{self.kind.value}: {self.message}"
        return f"{self.kind.value} @ 0x{self.offset:06X}: {self.message}"


def record_issue(
    issues: List[Issue],
    logger: logging.Logger,
    kind: IssueKind,
    message: str,
    offset: Optional[int] = None,
) -> Issue:
    """Append an issue to a collection and log it once."""
    issue = Issue(kind, message, offset)
    issues.append(issue)
    level = logging.INFO if kind is IssueKind.IGNORED_MESSAGE else logging.WARNING
    logger.log(level, "%s", issue)
    return issue
