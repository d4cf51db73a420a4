"""Unit tests for compression strategies."""

import io
import zipfile

import pytest

from skill_pack_mcp.compressors import (
    ExternalCompressor,
    InProcessCompressor,
    encode_entries,
)
from skill_pack_mcp.exceptions import CompressionFailure, ExternalCompressorError
from skill_pack_mcp.models import ArchiveEntry


def read_archive(data: bytes) -> dict[str, bytes]:
    """Decompress an archive into a path -> content mapping."""
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        assert archive.testzip() is None
        return {name: archive.read(name) for name in archive.namelist()}


@pytest.fixture
def entries() -> list[ArchiveEntry]:
    """A small, ordered entry list."""
    return [
        ArchiveEntry(path="SKILL.md", content=b"# skill\n"),
        ArchiveEntry(path="scripts/main.ts", content=b"// code\n"),
        ArchiveEntry(path="references/empty.md", content=b""),
        ArchiveEntry(path="assets/blob.bin", content=bytes(range(256)) * 40),
    ]


@pytest.mark.unit
class TestInProcessCompressor:
    """Test the zipfile based compressor."""

    def test_compress_round_trip(self, entries):
        """Decompressed content equals the input entries."""
        data = InProcessCompressor().compress(entries)
        assert read_archive(data) == {e.path: e.content for e in entries}

    def test_compress_preserves_order(self, entries):
        """Entries appear in the archive in input order."""
        data = InProcessCompressor().compress(entries)
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.namelist() == [e.path for e in entries]

    def test_compress_uses_deflate(self, entries):
        """Entries are deflate-compressed."""
        data = InProcessCompressor().compress(entries)
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert all(
                info.compress_type == zipfile.ZIP_DEFLATED for info in archive.infolist()
            )

    def test_compress_is_reproducible(self, entries):
        """Identical input yields identical bytes."""
        compressor = InProcessCompressor()
        assert compressor.compress(entries) == compressor.compress(entries)

    def test_stream_round_trip(self, entries):
        """Joined stream chunks form an equivalent archive."""
        chunks = list(InProcessCompressor().stream(entries))

        assert len(chunks) > 1
        assert read_archive(b"".join(chunks)) == {e.path: e.content for e in entries}

    def test_stream_is_lazy(self, entries):
        """Nothing is written until the stream is consumed."""
        compressor = InProcessCompressor()
        stream = compressor.stream(entries)
        first = next(stream)
        assert first.startswith(b"PK\x03\x04")

    def test_empty_entry_list(self):
        """An empty entry list still yields a valid, empty archive."""
        data = InProcessCompressor().compress([])
        assert read_archive(data) == {}

    def test_compress_writer_failure(self, entries, monkeypatch):
        """Writer errors surface as CompressionFailure."""

        def broken(*args, **kwargs):
            raise OSError("sink closed")

        monkeypatch.setattr(zipfile.ZipFile, "writestr", broken)

        with pytest.raises(CompressionFailure, match="sink closed"):
            InProcessCompressor().compress(entries)

    def test_stream_writer_failure(self, entries, monkeypatch):
        """Writer errors during streaming surface as CompressionFailure."""

        def broken(*args, **kwargs):
            raise OSError("sink closed")

        monkeypatch.setattr(zipfile.ZipFile, "writestr", broken)

        with pytest.raises(CompressionFailure):
            list(InProcessCompressor().stream(entries))


@pytest.mark.unit
class TestEncodeEntries:
    """Test the native compressor stdin protocol."""

    def test_protocol_bytes(self):
        """Entries are framed as path, length, bytes, then DONE."""
        payload = encode_entries(
            [
                ArchiveEntry(path="SKILL.md", content=b"abc"),
                ArchiveEntry(path="references/ü.md", content="é\n".encode("utf-8")),
                ArchiveEntry(path="empty.txt", content=b""),
            ]
        )

        assert payload == (
            b"SKILL.md\n3\nabc"
            b"references/\xc3\xbc.md\n3\n\xc3\xa9\n"
            b"empty.txt\n0\n"
            b"DONE\n"
        )

    def test_no_entries(self):
        """Only the sentinel is written for an empty list."""
        assert encode_entries([]) == b"DONE\n"

    @pytest.mark.parametrize("path", ["bad\npath", "DONE"])
    def test_unframeable_path(self, path):
        """Paths that would break framing are rejected."""
        with pytest.raises(ExternalCompressorError):
            encode_entries([ArchiveEntry(path=path, content=b"x")])


@pytest.mark.unit
class TestExternalCompressorErrors:
    """Test ExternalCompressor failure modes that need no child process."""

    def test_no_command(self, entries):
        """An empty command is a compressor error."""
        with pytest.raises(ExternalCompressorError, match="No native compressor"):
            ExternalCompressor([]).compress(entries)

    def test_missing_executable(self, entries, tmp_path):
        """A missing binary is reported as a compressor error."""
        compressor = ExternalCompressor([str(tmp_path / "no-such-binary")])
        with pytest.raises(ExternalCompressorError, match="Failed to start"):
            compressor.compress(entries)
