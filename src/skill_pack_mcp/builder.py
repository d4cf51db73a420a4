"""Archive builder - turns a skill description into a skill pack archive."""

import logging
from collections.abc import Iterator
from typing import Any

from skill_pack_mcp.compressors import (
    Compressor,
    ExternalCompressor,
    InProcessCompressor,
)
from skill_pack_mcp.config import Config, get_config
from skill_pack_mcp.entries import assemble_entries, total_size
from skill_pack_mcp.exceptions import ExternalCompressorError
from skill_pack_mcp.models import ArchiveEntry
from skill_pack_mcp.renderer import render_skill_md
from skill_pack_mcp.validation import validate_skill_description

logger = logging.getLogger(__name__)

# Default for SkillPackBuilder(external=...): build from config
_FROM_CONFIG = object()


def select_compressor(
    size: int,
    threshold: int,
    in_process: Compressor,
    external: Compressor | None,
) -> Compressor:
    """Pick the compressor to try first for a payload of the given size.

    Args:
        size: Total entry size in bytes.
        threshold: Size at or above which the external compressor is used.
        in_process: In-process compressor.
        external: External compressor, or None if unavailable.

    Returns:
        The external compressor for large payloads, otherwise in_process.
    """
    if external is not None and size >= threshold:
        return external
    return in_process


class SkillPackBuilder:
    """Builds skill pack archives with a size-appropriate strategy."""

    def __init__(
        self,
        version: str | None = None,
        threshold_bytes: int | None = None,
        in_process: InProcessCompressor | None = None,
        external: Compressor | None | object = _FROM_CONFIG,
        config: Config | None = None,
    ):
        """Initialize the builder.

        Args:
            version: Skill pack version. If None, uses config default.
            threshold_bytes: External compressor threshold. If None, uses config default.
            in_process: In-process compressor. If None, built from config.
            external: External compressor. None disables the accelerated
                path. If omitted, built from config (disabled when no native
                command is configured).
            config: Configuration. If None, uses the global config.
        """
        self.config = config or get_config()
        self.version = version or self.config.skill_pack_version
        self.threshold_bytes = (
            threshold_bytes
            if threshold_bytes is not None
            else self.config.native_compressor_threshold_bytes
        )
        self.in_process = in_process or InProcessCompressor(
            compression_level=self.config.compression_level
        )

        if external is _FROM_CONFIG:
            command = self.config.get_native_compressor_args()
            external = (
                ExternalCompressor(command, timeout=self.config.native_compressor_timeout)
                if command
                else None
            )
        self.external = external

    def build_entries(self, data: Any) -> list[ArchiveEntry]:
        """Validate a description and compute its archive entries.

        Raises:
            SkillValidationError: If the description is invalid.
        """
        description = validate_skill_description(data)
        return assemble_entries(description, self.version)

    def build_buffer(self, data: Any) -> bytes:
        """Build a complete archive as bytes.

        Payloads at or above the threshold go to the external compressor
        first; any failure there falls back to the in-process writer.

        Args:
            data: Unvalidated description mapping or a SkillDescription.

        Returns:
            Zip archive bytes.

        Raises:
            SkillValidationError: If the description is invalid.
            CompressionFailure: If the in-process writer fails.
        """
        entries = self.build_entries(data)
        size = total_size(entries)
        compressor = select_compressor(
            size, self.threshold_bytes, self.in_process, self.external
        )

        if compressor is not self.in_process:
            try:
                archive = compressor.compress(entries)
                logger.info(
                    f"Built skill pack with {compressor.name} compressor "
                    f"({len(entries)} entries, {size} bytes in, {len(archive)} bytes out)"
                )
                return archive
            except ExternalCompressorError as e:
                logger.warning(
                    f"{compressor.name} compressor failed, falling back to in-process: {e}"
                )

        archive = self.in_process.compress(entries)
        logger.info(
            f"Built skill pack in-process "
            f"({len(entries)} entries, {size} bytes in, {len(archive)} bytes out)"
        )
        return archive

    def build_stream(self, data: Any) -> Iterator[bytes]:
        """Build an archive as a stream of byte chunks.

        Validation and entry assembly happen immediately; the returned
        iterator produces the archive with the in-process writer.

        Raises:
            SkillValidationError: If the description is invalid.
        """
        entries = self.build_entries(data)
        logger.info(f"Streaming skill pack ({len(entries)} entries)")
        return self.in_process.stream(entries)

    def render(self, data: Any) -> str:
        """Render only the SKILL.md document for a description."""
        description = validate_skill_description(data)
        return render_skill_md(description, self.version)
