"""
Tests for file-level tooling — mapped streams, config loading, CLI commands.

Every test runs against files under tmp_path; the user's config file is
masked by pointing BYTEBLOCK_CONFIG at a path that does not exist.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from byteblock import ByteBlockWriter, TruncatedError, open_blocks
from byteblock.cli import main
from byteblock.config import DEFAULT_CONFIG, load_config


@pytest.fixture(autouse=True)
def no_user_config(tmp_path, monkeypatch):
    monkeypatch.setenv("BYTEBLOCK_CONFIG", str(tmp_path / "missing.toml"))


@pytest.fixture
def stream_file(tmp_path):
    """A stream holding three blocks with mixed alignment."""
    path = tmp_path / "sample.blk"
    with open(path, "wb") as f:
        writer = ByteBlockWriter(f)
        writer.write(b"hello", 0)
        writer.write(b"world", 64)
        writer.write_string("third block", 16)
    return path


# ---------------------------------------------------------------------------
# TestMappedBlocks
# ---------------------------------------------------------------------------

class TestMappedBlocks:

    def test_read_all_blocks(self, stream_file):
        with open_blocks(stream_file) as blocks:
            payloads = [bytes(b) for b in blocks.slicer()]
        assert payloads == [b"hello", b"world", b"third block"]

    def test_size(self, stream_file):
        with open_blocks(stream_file) as blocks:
            assert blocks.size == stream_file.stat().st_size

    def test_slicers_are_independent(self, stream_file):
        with open_blocks(stream_file) as blocks:
            a = blocks.slicer()
            b = blocks.slicer()
            assert bytes(a.slice()) == b"hello"
            assert bytes(a.slice()) == b"world"
            assert bytes(b.slice()) == b"hello"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.blk"
        path.write_bytes(b"")
        with open_blocks(path) as blocks:
            assert blocks.size == 0
            assert blocks.slicer().slice() is None

    def test_max_size(self, stream_file):
        with pytest.raises(ValueError, match="exceeds maximum"):
            open_blocks(stream_file, max_size=10)

    def test_slicer_after_close(self, stream_file):
        blocks = open_blocks(stream_file)
        blocks.close()
        assert blocks.closed
        with pytest.raises(ValueError, match="closed"):
            blocks.slicer()

    def test_close_with_live_view(self, stream_file):
        """A view that outlives the handle keeps its bytes readable."""
        blocks = open_blocks(stream_file)
        first = blocks.slicer().slice()
        blocks.close()
        assert bytes(first) == b"hello"

    def test_truncated_file(self, stream_file, tmp_path):
        path = tmp_path / "cut.blk"
        path.write_bytes(stream_file.read_bytes()[:-3])
        with open_blocks(path) as blocks:
            slicer = blocks.slicer()
            assert bytes(slicer.slice()) == b"hello"
            assert bytes(slicer.slice()) == b"world"
            with pytest.raises(TruncatedError):
                slicer.slice()


# ---------------------------------------------------------------------------
# TestConfig
# ---------------------------------------------------------------------------

class TestConfig:

    def test_defaults_when_missing(self, tmp_path):
        assert load_config(tmp_path / "nope.toml") == DEFAULT_CONFIG

    def test_load_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('align = 64\nlog_level = "INFO"\n')
        config = load_config(path)
        assert config["align"] == 64
        assert config["log_level"] == "INFO"
        assert config["chunk_size"] == DEFAULT_CONFIG["chunk_size"]

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.toml"
        path.write_text("chunk_size = 4096\n")
        monkeypatch.setenv("BYTEBLOCK_CONFIG", str(path))
        assert load_config()["chunk_size"] == 4096

    def test_malformed_file(self, tmp_path, caplog):
        path = tmp_path / "bad.toml"
        path.write_text("align = = 3\n")
        with caplog.at_level(logging.WARNING, logger="byteblock.config"):
            config = load_config(path)
        assert config == DEFAULT_CONFIG
        assert "Failed to load config" in caplog.text

    def test_invalid_utf8_file(self, tmp_path, caplog):
        path = tmp_path / "binary.toml"
        path.write_bytes(b"align = 8\n# \xff\xfe\n")
        with caplog.at_level(logging.WARNING, logger="byteblock.config"):
            config = load_config(path)
        assert config == DEFAULT_CONFIG
        assert "Failed to load config" in caplog.text

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        path = tmp_path / "extra.toml"
        path.write_text("align = 8\nbogus = 1\n")
        with caplog.at_level(logging.WARNING, logger="byteblock.config"):
            config = load_config(path)
        assert config["align"] == 8
        assert "bogus" not in config
        assert "bogus" in caplog.text


# ---------------------------------------------------------------------------
# TestCLI
# ---------------------------------------------------------------------------

def _make_inputs(tmp_path: Path) -> list[Path]:
    a = tmp_path / "a.bin"
    b = tmp_path / "b.bin"
    c = tmp_path / "c.bin"
    a.write_bytes(b"first file")
    b.write_bytes(bytes(range(256)) * 5)
    c.write_bytes(b"")
    return [a, b, c]


class TestCLI:

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0
        assert "Usage:" in capsys.readouterr().out

    def test_pack_and_unpack(self, tmp_path, capsys):
        inputs = _make_inputs(tmp_path)
        out = tmp_path / "packed.blk"
        main(["pack", str(out), *map(str, inputs), "--align", "32", "--chunk-size", "100"])
        assert "Packed 3 file(s)" in capsys.readouterr().out

        with open_blocks(out) as blocks:
            slicer = blocks.slicer()
            for path in inputs:
                block = slicer.slice()
                assert bytes(block) == path.read_bytes()
                if len(block):
                    assert (slicer.position - len(block)) % 32 == 0

        out_dir = tmp_path / "unpacked"
        main(["unpack", str(out), "-d", str(out_dir)])
        assert "Unpacked 3 block(s)" in capsys.readouterr().out
        for i, path in enumerate(inputs):
            assert (out_dir / f"block-{i:06d}.bin").read_bytes() == path.read_bytes()

    def test_pack_uses_config_align(self, tmp_path, monkeypatch):
        config = tmp_path / "config.toml"
        config.write_text("align = 128\n")
        monkeypatch.setenv("BYTEBLOCK_CONFIG", str(config))
        inputs = _make_inputs(tmp_path)
        out = tmp_path / "packed.blk"
        main(["pack", str(out), str(inputs[0]), str(inputs[1])])

        with open_blocks(out) as blocks:
            slicer = blocks.slicer()
            for _ in range(2):
                block = slicer.slice()
                assert (slicer.position - len(block)) % 128 == 0

    def test_pack_adds_extension(self, tmp_path, capsys):
        inputs = _make_inputs(tmp_path)
        main(["pack", str(tmp_path / "packed"), str(inputs[0])])
        assert (tmp_path / "packed.blk").is_file()
        assert not (tmp_path / "packed").exists()
        assert "packed.blk" in capsys.readouterr().out

    def test_pack_missing_input(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["pack", str(tmp_path / "o.blk"), str(tmp_path / "missing.bin")])
        assert exc.value.code == 1
        assert "Input file not found" in capsys.readouterr().err

    def test_list(self, stream_file, capsys):
        main(["list", str(stream_file)])
        out = capsys.readouterr().out
        assert "3 block(s)" in out
        # header (16) + payload (5) + header (16) -> 37, padded to 64
        assert "64" in out

    def test_list_empty(self, tmp_path, capsys):
        path = tmp_path / "empty.blk"
        path.write_bytes(b"")
        main(["list", str(path)])
        assert "no blocks" in capsys.readouterr().out

    def test_list_truncated(self, stream_file, tmp_path, capsys):
        path = tmp_path / "cut.blk"
        path.write_bytes(stream_file.read_bytes()[:-1])
        with pytest.raises(SystemExit) as exc:
            main(["list", str(path)])
        assert exc.value.code == 1
        assert "Not enough bytes" in capsys.readouterr().err

    def test_unpack_missing_stream(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["unpack", str(tmp_path / "missing.blk"), "-d", str(tmp_path / "out")])
        assert exc.value.code == 1
        assert "Error:" in capsys.readouterr().err
