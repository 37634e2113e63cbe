"""
byteblock CLI — pack files into a block stream and take them back out.

Commands:
  byteblock pack    - Write each input file as one block of a new stream
  byteblock list    - Show offset, length and alignment of every block
  byteblock unpack  - Extract every block of a stream into its own file

Defaults come from ~/.byteblock/config.toml (or $BYTEBLOCK_CONFIG);
command line flags take priority.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

log = logging.getLogger(__name__)


def _setup_logging(config: dict, verbose: bool) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, str(config["log_level"]).upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def _alignment_of(offset: int) -> int:
    """Largest power of two dividing offset (0 for offset 0)."""
    return offset & -offset


def _pack_file(writer, path: Path, align: int, chunk_size: int) -> int:
    """Stream one file into the writer as a single block. Returns its size."""
    size = path.stat().st_size
    writer.new_block(align, size)
    with open(path, "rb") as f:
        while writer.remaining:
            chunk = f.read(min(chunk_size, writer.remaining))
            if not chunk:
                raise ValueError(f"{path} shrank while packing ({writer.remaining} bytes missing)")
            writer.append(chunk)
    return size


def cmd_pack(args: argparse.Namespace, config: dict) -> None:
    """Write each input file as one block of a new stream."""
    from byteblock.errors import ByteBlockError
    from byteblock.spec import EXTENSION
    from byteblock.writer import ByteBlockWriter

    align = args.align if args.align is not None else config["align"]
    chunk_size = args.chunk_size or config["chunk_size"]
    if chunk_size <= 0:
        print(f"Error: Chunk size must be positive, got {chunk_size}", file=sys.stderr)
        sys.exit(1)

    inputs = [Path(p) for p in args.files]
    for path in inputs:
        if not path.is_file():
            print(f"Error: Input file not found: {path}", file=sys.stderr)
            sys.exit(1)

    output = Path(args.output)
    if not output.suffix:
        output = output.with_suffix(EXTENSION)

    with open(output, "wb") as out:
        writer = ByteBlockWriter(out)
        for path in inputs:
            try:
                size = _pack_file(writer, path, align, chunk_size)
            except (ByteBlockError, ValueError, OSError) as e:
                print(f"Error: Packing {path} failed: {e}", file=sys.stderr)
                sys.exit(1)
            log.info("Packed %s (%d bytes, align %d)", path, size, align)

    print(f"Packed {len(inputs)} file(s) -> {output} ({writer.bytes_written} bytes)")


def _list_blocks(blocks) -> list[tuple[int, int]]:
    slicer = blocks.slicer()
    entries = []
    for block in slicer:
        entries.append((slicer.position - len(block), len(block)))
    return entries


def cmd_list(args: argparse.Namespace, config: dict) -> None:
    """Show offset, length and alignment of every block in a stream."""
    from byteblock.errors import ByteBlockError
    from byteblock.mapped import open_blocks

    try:
        with open_blocks(args.stream, max_size=config["max_size"]) as blocks:
            entries = _list_blocks(blocks)
    except (ByteBlockError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not entries:
        print(f"{args.stream}: no blocks.")
        return

    print(f"{args.stream}: {len(entries)} block(s)\n")
    print(f"  {'#':>6}  {'offset':>12}  {'length':>12}  align")
    for i, (offset, length) in enumerate(entries):
        align = _alignment_of(offset)
        print(f"  {i:>6}  {offset:>12}  {length:>12}  {align if align else '-'}")


def _unpack_blocks(blocks, out_dir: Path) -> int:
    count = 0
    for block in blocks.slicer():
        (out_dir / f"block-{count:06d}.bin").write_bytes(block)
        count += 1
    return count


def cmd_unpack(args: argparse.Namespace, config: dict) -> None:
    """Extract every block of a stream into its own file."""
    from byteblock.errors import ByteBlockError
    from byteblock.mapped import open_blocks

    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        with open_blocks(args.stream, max_size=config["max_size"]) as blocks:
            count = _unpack_blocks(blocks, out_dir)
    except (ByteBlockError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Unpacked {count} block(s) -> {out_dir}")


def main(argv: list[str] | None = None) -> None:
    from byteblock import __version__
    from byteblock.config import load_config

    parser = argparse.ArgumentParser(
        prog="byteblock",
        description="Aligned byte block streams",
    )
    parser.add_argument("--version", action="version", version=f"byteblock {__version__}")
    parser.add_argument("--config", help="Config file (default: ~/.byteblock/config.toml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    p_pack = sub.add_parser("pack", help="Pack files into a block stream")
    p_pack.add_argument("output", help="Stream file to create (.blk added if no extension)")
    p_pack.add_argument("files", nargs="+", help="Files to pack, one block each")
    p_pack.add_argument("-a", "--align", type=int, help="Payload alignment in bytes (default: 0, none)")
    p_pack.add_argument("--chunk-size", type=int, help="Read size when streaming inputs")

    p_list = sub.add_parser("list", help="List blocks in a stream")
    p_list.add_argument("stream", help="Stream file")

    p_unpack = sub.add_parser("unpack", help="Extract blocks from a stream")
    p_unpack.add_argument("stream", help="Stream file")
    p_unpack.add_argument("-d", "--output-dir", default=".", help="Output directory (default: .)")

    args = parser.parse_args(argv)

    if not args.command:
        print("byteblock: aligned byte block streams")
        print()
        print("Usage:")
        print("  byteblock pack out.blk a.bin b.bin --align 64")
        print("  byteblock list out.blk")
        print("  byteblock unpack out.blk -d blocks/")
        print()
        print("Run 'byteblock <command> --help' for details on any command.")
        sys.exit(0)

    config = load_config(Path(args.config) if args.config else None)
    _setup_logging(config, args.verbose)

    commands = {
        "pack": cmd_pack,
        "list": cmd_list,
        "unpack": cmd_unpack,
    }
    commands[args.command](args, config)


if __name__ == "__main__":
    main()
