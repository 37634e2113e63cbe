"""
Read-only memory-mapped access to stream files.

Payload views returned by slicers point straight into the mapping, so large
aligned payloads (e.g. numeric arrays) can be wrapped without a copy. A mapping
with views still referenced is unmapped once the last of them is released.
"""

from __future__ import annotations

import logging
import mmap
from pathlib import Path

from byteblock.slicer import ByteBlockSlicer
from byteblock.spec import MAX_FILE_SIZE

log = logging.getLogger(__name__)


class MappedBlocks:
    """Handle on a mapped stream file.

    Usage:
        with open_blocks("arrays.blk") as blocks:
            for block in blocks.slicer():
                ...
    """

    def __init__(self, path: Path, mapping: mmap.mmap | None) -> None:
        self.path = path
        self._mmap = mapping
        self._slicers: list[ByteBlockSlicer] = []
        self.closed = False

    @property
    def size(self) -> int:
        return len(self._mmap) if self._mmap is not None else 0

    def slicer(self) -> ByteBlockSlicer:
        """A new slicer positioned at the start of the file."""
        if self.closed:
            raise ValueError(f"{self.path} is closed")
        slicer = ByteBlockSlicer(self._mmap if self._mmap is not None else b"")
        self._slicers.append(slicer)
        return slicer

    def close(self) -> None:
        """Release all slicers handed out and unmap the file.

        If payload views from this file are still referenced, unmapping is
        left to the mapping object once the last view is gone.
        """
        self.closed = True
        for slicer in self._slicers:
            slicer.release()
        self._slicers.clear()
        if self._mmap is not None:
            try:
                self._mmap.close()
            except BufferError:
                log.debug("%s still has live views; unmapping deferred", self.path)
            self._mmap = None

    def __enter__(self) -> MappedBlocks:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def open_blocks(path: str | Path, max_size: int = MAX_FILE_SIZE) -> MappedBlocks:
    """Map a stream file read-only."""
    path = Path(path)
    file_size = path.stat().st_size
    if file_size > max_size:
        raise ValueError(
            f"File size {file_size} exceeds maximum {max_size} bytes. "
            f"Pass max_size= to override."
        )
    if file_size == 0:
        # mmap refuses empty files
        return MappedBlocks(path, None)
    with open(path, "rb") as f:
        mapping = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
    return MappedBlocks(path, mapping)
