"""Bulk export of skill descriptions as JSON or a zip of SKILL.md files."""

import logging
from datetime import datetime, timezone
from typing import Any

from skill_pack_mcp.compressors import InProcessCompressor
from skill_pack_mcp.entries import sanitize_name
from skill_pack_mcp.models import ArchiveEntry, SkillDescription
from skill_pack_mcp.renderer import render_skill_md
from skill_pack_mcp.validation import validate_skill_description

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "zip")


def export_json(descriptions: list[SkillDescription], version: str) -> dict[str, Any]:
    """Export skills as a JSON-serializable document."""
    return {
        "version": version,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "skills": [
            {
                "name": d.skill_name,
                "description": d.description,
                "triggers": d.triggers,
                "strategies": [s.model_dump() for s in d.strategies],
                "promptTemplates": [t.model_dump() for t in d.prompt_templates],
            }
            for d in descriptions
        ],
    }


def export_zip(
    descriptions: list[SkillDescription],
    version: str,
    compressor: InProcessCompressor | None = None,
) -> bytes:
    """Export skills as a zip with one <name>/SKILL.md per skill."""
    compressor = compressor or InProcessCompressor()
    entries: dict[str, bytes] = {}
    for description in descriptions:
        path = f"{sanitize_name(description.skill_name)}/SKILL.md"
        entries[path] = render_skill_md(description, version).encode("utf-8")
    return compressor.compress(
        [ArchiveEntry(path=path, content=content) for path, content in entries.items()]
    )


def export_skills(
    items: list[Any], format: str = "json", version: str = "1.0.0"
) -> dict[str, Any] | bytes:
    """Validate and export a list of skill descriptions.

    Args:
        items: Unvalidated description mappings or SkillDescription objects.
        format: "json" or "zip".
        version: Version stamped into the export.

    Returns:
        JSON document (dict) for "json", archive bytes for "zip".

    Raises:
        ValueError: If format is unknown.
        SkillValidationError: If any description is invalid.
    """
    if format not in EXPORT_FORMATS:
        raise ValueError(
            f"Invalid export format '{format}'. Must be one of: {', '.join(EXPORT_FORMATS)}."
        )

    descriptions = [validate_skill_description(item) for item in items]
    logger.info(f"Exporting {len(descriptions)} skills as {format}")

    if format == "zip":
        return export_zip(descriptions, version)
    return export_json(descriptions, version)
