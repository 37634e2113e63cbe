"""
Slicer — zero-copy sequential decoding of a block stream.

The slicer borrows the buffer it is given and hands back read-only
memoryviews into it. Views stay valid as long as the backing buffer does;
call ``bytes(view)`` to keep a payload beyond that.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from byteblock.codec import decode_int64
from byteblock.errors import ByteBlockError, CorruptFrameError, TruncatedError
from byteblock.spec import FIELD_SIZE

log = logging.getLogger(__name__)


class ByteBlockSlicer:
    """Slices a buffer, usually produced by a ByteBlockWriter, into blocks.

    Usage:
        slicer = ByteBlockSlicer(data)
        while (block := slicer.slice()) is not None:
            handle(block)

        # or
        for block in ByteBlockSlicer(data):
            handle(block)

    A slicer keeps a cursor, so each caller needs its own instance even when
    several of them share one buffer.
    """

    def __init__(self, data: Any) -> None:
        view = memoryview(data)
        if view.format != "B" or view.ndim != 1:
            view = view.cast("B")
        self._data = view.toreadonly()
        self._pos = 0
        self._err: ByteBlockError | None = None
        self._released = False

    @property
    def position(self) -> int:
        """Bytes consumed so far."""
        return self._pos

    @property
    def error(self) -> ByteBlockError | None:
        return self._err

    def slice(self) -> memoryview | None:
        """Return the next block's payload, or None at the end of the stream.

        Raises TruncatedError if the buffer ends inside a frame and
        CorruptFrameError if a header field is negative. Either error is
        raised again by every later call. Raises ByteBlockError once the
        slicer has been released.
        """
        if self._err is not None:
            raise self._err.with_traceback(None)
        if self._released:
            raise ByteBlockError("Slicer has been released")
        if self._pos >= len(self._data):
            return None

        length = decode_int64(self._take(FIELD_SIZE, "length"))
        offset = decode_int64(self._take(FIELD_SIZE, "offset"))
        if length < 0 or offset < 0:
            raise self._latch(CorruptFrameError(
                f"Invalid frame header at {self._pos - 2 * FIELD_SIZE}: "
                f"length={length} offset={offset}"
            ))
        self._take(offset, "padding")
        return self._take(length, "payload")

    def __iter__(self) -> Iterator[memoryview]:
        while True:
            block = self.slice()
            if block is None:
                return
            yield block

    def release(self) -> None:
        """Release this slicer's hold on the buffer.

        Views already returned are unaffected. Further slice() calls raise
        ByteBlockError.
        """
        self._released = True
        self._data.release()

    def _take(self, n: int, what: str) -> memoryview:
        end = self._pos + n
        if end > len(self._data):
            raise self._latch(TruncatedError(
                f"Not enough bytes for {what}: need {n} at {self._pos}, "
                f"have {len(self._data) - self._pos}"
            ))
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def _latch(self, err: ByteBlockError) -> ByteBlockError:
        self._err = err
        log.debug("Slicer failed at %d: %s", self._pos, err)
        return err
