"""
Writer — frames blocks onto a binary sink.

Each block is a 16-byte header (length, offset), ``offset`` zero bytes of
padding, then the payload. A block can be written in one call (``write``) or
declared up front and filled incrementally (``new_block`` + ``append``).

Alignment is computed from the number of bytes this writer has emitted, so a
sink that already held data when the writer was attached gets payloads aligned
relative to the writer's first byte, not to the sink's absolute position.
"""

from __future__ import annotations

import logging
from typing import Any

from byteblock.align import align_offset
from byteblock.codec import encode_int64
from byteblock.errors import (
    BlockAlreadyOpenError, ByteBlockError, InvalidLengthError, OverAppendError,
    ShortWriteError, SinkError,
)
from byteblock.spec import FIELD_SIZE

log = logging.getLogger(__name__)


def _as_bytes_view(data: Any) -> memoryview:
    """Flat unsigned-byte view of any bytes-like object, without copying."""
    view = memoryview(data)
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view


class ByteBlockWriter:
    """Sequential block writer bound to one sink.

    Only one writer should be attached to a given sink; interleaved writers
    corrupt the stream. The writer never closes or flushes the sink.

    Usage:
        writer = ByteBlockWriter(f)
        writer.write(b"header", align=0)
        writer.new_block(align=64, length=len(a) + len(b))
        writer.append(a)
        writer.append(b)

    Once any call fails, the error is latched and raised again by every later
    call without touching the sink.
    """

    def __init__(self, sink: Any) -> None:
        self._sink = sink
        self._bytes_written = 0
        self._remaining = 0
        self._err: ByteBlockError | None = None

    @property
    def bytes_written(self) -> int:
        """Bytes the sink has accepted since this writer was created."""
        return self._bytes_written

    @property
    def remaining(self) -> int:
        """Bytes still owed to the open block (0 when no block is open)."""
        return self._remaining

    @property
    def error(self) -> ByteBlockError | None:
        return self._err

    def new_block(self, align: int, length: int) -> None:
        """Start a block of ``length`` bytes whose payload is aligned at ``align``.

        Alignments of 1 or less mean no alignment. The previous block must
        have been fully appended.
        """
        self._check()
        if self._remaining > 0:
            raise self._latch(BlockAlreadyOpenError(
                f"Cannot start a new block: {self._remaining} bytes "
                f"still owed to the previous one"
            ))
        if length < 0:
            raise self._latch(InvalidLengthError(f"Block length must be >= 0, got {length}"))

        self._raw_write(encode_int64(length))
        # Counted from the end of the offset field, i.e. the end of the header
        offset = align_offset(align, self._bytes_written + FIELD_SIZE)
        self._raw_write(encode_int64(offset))
        if offset:
            self._raw_write(bytes(offset))
        self._remaining = length

    def append(self, data: Any) -> None:
        """Append a chunk of the open block's payload.

        ``data`` may be any bytes-like object; it is handed to the sink
        without copying.
        """
        self._check()
        view = _as_bytes_view(data)
        if view.nbytes > self._remaining:
            raise self._latch(OverAppendError(
                f"Appending {view.nbytes} bytes but only {self._remaining} "
                f"remain in the current block"
            ))
        if view.nbytes:
            self._remaining -= self._raw_write(view)

    def append_string(self, text: str, encoding: str = "utf-8") -> None:
        """Like append(), for text."""
        self.append(text.encode(encoding))

    def write(self, data: Any, align: int = 0) -> None:
        """Write ``data`` as one complete block."""
        view = _as_bytes_view(data)
        self.new_block(align, view.nbytes)
        self.append(view)

    def write_string(self, text: str, align: int = 0, encoding: str = "utf-8") -> None:
        """Like write(), for text. The block length is the encoded length."""
        self.write(text.encode(encoding), align)

    def _check(self) -> None:
        if self._err is not None:
            raise self._err.with_traceback(None)

    def _latch(self, err: ByteBlockError) -> ByteBlockError:
        self._err = err
        log.debug("Writer failed after %d bytes: %s", self._bytes_written, err)
        return err

    def _raw_write(self, data: bytes | memoryview) -> int:
        """Write to the sink, counting whatever it accepted. Returns bytes written.

        Does not touch the remaining counter; that is the caller's job.
        """
        size = len(data)
        try:
            n = self._sink.write(data)
        except Exception as e:
            # BlockingIOError reports how much went out before the failure
            self._bytes_written += getattr(e, "characters_written", 0)
            raise self._latch(SinkError(f"Sink write failed: {e}")) from e
        if n is None:
            # Non-blocking raw streams return None when nothing was written
            n = 0
        self._bytes_written += n
        if n < size:
            raise self._latch(ShortWriteError(f"Sink accepted {n} of {size} bytes"))
        return n
