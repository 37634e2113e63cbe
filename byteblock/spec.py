"""
Stream Format Specification.

Layout:
    Stream := Frame*                       <- no magic, no trailer, no block count
    Frame  := Header Padding Payload
    Header := Length(8) Offset(8)          <- signed int64, least significant byte first
    Padding:= Offset bytes                 <- writer emits zeros, reader skips them
    Payload:= Length bytes

Alignment:
    Offset is the smallest value making (header_end + offset) a multiple of
    the requested alignment. Positions are counted from the first byte the
    writer emitted, not from the start of whatever sink it was handed.
"""

# Width of each header field
FIELD_SIZE = 8

# Length + offset
HEADER_SIZE = 2 * FIELD_SIZE

# Alignments at or below this mean "no alignment"
NO_ALIGN = 1

# Conventional file extension for stream files
EXTENSION = ".blk"

# Safety limit for mapping files via byteblock.mapped
MAX_FILE_SIZE = 64 * 1024 * 1024 * 1024  # 64GB
