"""Compression strategies turning archive entries into zip bytes.

Two implementations share the Compressor interface:
- InProcessCompressor: zipfile/deflate, buffered or streamed.
- ExternalCompressor: a native helper process fed over stdin with a
  line-delimited protocol, used to speed up large payloads.
"""

import io
import logging
import subprocess
import zipfile
import zlib
from abc import ABC, abstractmethod
from collections.abc import Iterator

from skill_pack_mcp.exceptions import CompressionFailure, ExternalCompressorError
from skill_pack_mcp.models import ArchiveEntry

logger = logging.getLogger(__name__)

# Fixed timestamp so identical input produces identical archives
ZIP_DATE_TIME = (1980, 1, 1, 0, 0, 0)
ENTRY_MODE = 0o644

DONE_SENTINEL = b"DONE\n"


class Compressor(ABC):
    """Bytes-in/bytes-out archive writer."""

    name: str = "compressor"

    @abstractmethod
    def compress(self, entries: list[ArchiveEntry]) -> bytes:
        """Write entries, in order, into a complete zip archive."""


class _ChunkSink:
    """Write-only, non-seekable file object collecting written chunks."""

    def __init__(self):
        self._chunks: list[bytes] = []

    def write(self, data) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


class InProcessCompressor(Compressor):
    """Deflate-based archive writer running in this process."""

    name = "in-process"

    def __init__(self, compression_level: int = 9):
        self.compression_level = compression_level

    def _zip_info(self, entry: ArchiveEntry) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(entry.path, date_time=ZIP_DATE_TIME)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = ENTRY_MODE << 16
        return info

    def _write_entry(self, archive: zipfile.ZipFile, entry: ArchiveEntry) -> None:
        archive.writestr(
            self._zip_info(entry),
            entry.content,
            compress_type=zipfile.ZIP_DEFLATED,
            compresslevel=self.compression_level,
        )

    def compress(self, entries: list[ArchiveEntry]) -> bytes:
        """Build the whole archive in memory.

        Raises:
            CompressionFailure: If the archive writer fails.
        """
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, mode="w") as archive:
                for entry in entries:
                    self._write_entry(archive, entry)
        except (OSError, ValueError, zlib.error, zipfile.LargeZipFile) as e:
            logger.error(f"In-process archive build failed: {e}")
            raise CompressionFailure(f"Archive writer failed: {e}") from e
        return buffer.getvalue()

    def stream(self, entries: list[ArchiveEntry]) -> Iterator[bytes]:
        """Yield archive bytes as each entry is written.

        The writer targets a non-seekable sink, so entries carry data
        descriptors instead of patched local headers.

        Raises:
            CompressionFailure: If the archive writer fails mid-stream.
        """
        sink = _ChunkSink()
        try:
            with zipfile.ZipFile(sink, mode="w") as archive:
                for entry in entries:
                    self._write_entry(archive, entry)
                    chunk = sink.drain()
                    if chunk:
                        yield chunk
        except (OSError, ValueError, zlib.error, zipfile.LargeZipFile) as e:
            logger.error(f"In-process archive stream failed: {e}")
            raise CompressionFailure(f"Archive writer failed: {e}") from e

        chunk = sink.drain()
        if chunk:
            yield chunk


def encode_entries(entries: list[ArchiveEntry]) -> bytes:
    """Encode entries into the native compressor's stdin protocol.

    Per entry: path line, decimal length line, raw bytes. Then "DONE".

    Raises:
        ExternalCompressorError: If a path cannot be framed as one line.
    """
    parts: list[bytes] = []
    for entry in entries:
        if "\n" in entry.path or entry.path == "DONE":
            raise ExternalCompressorError(f"Entry path cannot be framed: {entry.path!r}")
        parts.append(entry.path.encode("utf-8") + b"\n")
        parts.append(str(len(entry.content)).encode("ascii") + b"\n")
        parts.append(entry.content)
    parts.append(DONE_SENTINEL)
    return b"".join(parts)


class ExternalCompressor(Compressor):
    """Native helper process building the archive from stdin.

    One blocking request/response exchange per call: the full protocol is
    written to the child's stdin, then stdout is read to completion.
    """

    name = "external"

    def __init__(self, command: list[str], timeout: float | None = None):
        """Initialize the external compressor.

        Args:
            command: Executable and arguments of the native compressor.
            timeout: Optional limit in seconds for one run.
        """
        self.command = list(command)
        self.timeout = timeout

    def compress(self, entries: list[ArchiveEntry]) -> bytes:
        """Run the native compressor over the entries.

        Raises:
            ExternalCompressorError: On spawn failure, I/O error, timeout,
                non-zero exit or output that is not a zip archive.
        """
        if not self.command:
            raise ExternalCompressorError("No native compressor command configured")

        payload = encode_entries(entries)
        executable = self.command[0]

        try:
            proc = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalCompressorError(f"Failed to start {executable}: {e}") from e

        with proc:
            try:
                stdout, stderr = proc.communicate(payload, timeout=self.timeout)
            except subprocess.TimeoutExpired as e:
                proc.kill()
                proc.communicate()
                raise ExternalCompressorError(
                    f"{executable} timed out after {self.timeout} seconds"
                ) from e
            except OSError as e:
                proc.kill()
                proc.communicate()
                raise ExternalCompressorError(f"I/O error talking to {executable}: {e}") from e

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise ExternalCompressorError(
                f"{executable} exited with code {proc.returncode}: {message}"
            )

        if not stdout or not zipfile.is_zipfile(io.BytesIO(stdout)):
            raise ExternalCompressorError(f"{executable} did not produce a zip archive")

        logger.debug(f"{executable} produced {len(stdout)} bytes")
        return stdout
