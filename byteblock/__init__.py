"""
byteblock — aligned, self-describing blocks of bytes in a flat stream.

Architecture:
    Writer:  ByteBlockWriter(sink)   -> frames appended to any binary sink
    Slicer:  ByteBlockSlicer(buffer) -> zero-copy memoryviews, in order
    Files:   open_blocks(path)       -> read-only mmap + per-caller slicers

Frame layout (see byteblock.spec):
    [length int64 LE] [offset int64 LE] [offset padding bytes] [payload]
"""

__version__ = "0.1.0"

from byteblock.errors import (
    ByteBlockError, BlockAlreadyOpenError, OverAppendError, InvalidLengthError,
    SinkError, ShortWriteError, TruncatedError, CorruptFrameError,
)
from byteblock.writer import ByteBlockWriter
from byteblock.slicer import ByteBlockSlicer
from byteblock.mapped import MappedBlocks, open_blocks
