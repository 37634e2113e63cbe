"""
Error types.

Every error raised by a writer or slicer is latched on that instance: the
same exception object is raised again by every later call.
"""

from __future__ import annotations


class ByteBlockError(Exception):
    """Base class for framing errors."""


class BlockAlreadyOpenError(ByteBlockError):
    """A new block was started before the previous one was fully appended."""


class OverAppendError(ByteBlockError):
    """More bytes were appended than remain in the open block."""


class InvalidLengthError(ByteBlockError, ValueError):
    """A block was declared with a negative length."""


class SinkError(ByteBlockError):
    """The underlying sink failed. Its exception is chained as __cause__."""


class ShortWriteError(SinkError):
    """The sink accepted fewer bytes than it was given."""


class TruncatedError(ByteBlockError):
    """The buffer ended in the middle of a frame."""


class CorruptFrameError(ByteBlockError):
    """A frame header holds a value no writer could have produced."""
