"""Fixed-width integer codec for frame headers."""

from __future__ import annotations

import struct

# little-endian signed 64-bit
INT64_STRUCT = struct.Struct("<q")


def encode_int64(value: int) -> bytes:
    """Encode a signed 64-bit integer, least significant byte first."""
    return INT64_STRUCT.pack(value)


def decode_int64(data) -> int:
    """Decode exactly 8 bytes produced by encode_int64()."""
    return INT64_STRUCT.unpack(data)[0]
