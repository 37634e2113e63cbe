"""Padding computation for aligned payloads."""

from __future__ import annotations

from byteblock.spec import NO_ALIGN


def align_offset(align: int, pos: int) -> int:
    """Return the padding needed so that ``pos + padding`` is a multiple of align.

    Alignments of 1 or less (including zero and negative values) request no
    alignment and always yield 0. An already aligned position yields 0, never
    a full ``align`` of padding.
    """
    if align <= NO_ALIGN:
        return 0
    return (align - pos % align) % align
