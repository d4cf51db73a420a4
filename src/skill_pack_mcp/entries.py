"""Archive entry assembly - canonical layout of a skill pack."""

import json
import re

from skill_pack_mcp.models import ArchiveEntry, SkillDescription
from skill_pack_mcp.renderer import render_skill_md

SKILL_MD_PATH = "SKILL.md"
SCHEMA_PATH = "assets/schema.json"
PROMPTS_README_PATH = "assets/prompts/README.md"
STRATEGIES_PLACEHOLDER_PATH = "references/strategies.md"

STRATEGIES_PLACEHOLDER = "# Strategies\n\nAdd successful patterns here."
PROMPTS_PLACEHOLDER = "# Prompt templates\n\nAdd .txt templates here."

SCRIPT_EXTENSIONS = {"python": "py", "typescript": "ts"}
DEFAULT_SCRIPT_LANGUAGE = "typescript"
SCRIPT_PLACEHOLDERS = {
    "python": "# Skill logic placeholder\n# Implement your skill here\n",
    "typescript": "// Skill logic placeholder\n// Implement your skill here\n",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_name(value: str) -> str:
    """Turn a title into a filesystem-safe, lower-case token.

    Every character outside [A-Za-z0-9_-] becomes an underscore.
    """
    return _UNSAFE_CHARS.sub("_", value).lower()


def script_entry(description: SkillDescription) -> ArchiveEntry:
    """Build the scripts/main.<ext> entry."""
    logic = description.script_logic
    language = logic.language if logic else DEFAULT_SCRIPT_LANGUAGE
    code = logic.code if logic is not None else SCRIPT_PLACEHOLDERS[language]
    return ArchiveEntry(
        path=f"scripts/main.{SCRIPT_EXTENSIONS[language]}",
        content=code.encode("utf-8"),
    )


def reference_entries(description: SkillDescription) -> list[ArchiveEntry]:
    """Build one references/<title>.md entry per strategy.

    Strategies whose titles sanitize to the same name collapse into one
    entry: the first position is kept and the last content wins.
    """
    if not description.strategies:
        return [
            ArchiveEntry(
                path=STRATEGIES_PLACEHOLDER_PATH,
                content=STRATEGIES_PLACEHOLDER.encode("utf-8"),
            )
        ]

    by_path: dict[str, bytes] = {}
    for strategy in description.strategies:
        path = f"references/{sanitize_name(strategy.title)}.md"
        by_path[path] = f"# {strategy.title}\n\n{strategy.content}".encode("utf-8")
    return [ArchiveEntry(path=path, content=content) for path, content in by_path.items()]


def asset_entries(description: SkillDescription, version: str) -> list[ArchiveEntry]:
    """Build the prompt templates, their README index and schema.json."""
    entries: list[ArchiveEntry] = []
    templates = description.prompt_templates

    if templates:
        by_path: dict[str, bytes] = {}
        for template in templates:
            by_path[f"assets/prompts/{template.id}.txt"] = template.template.encode(
                "utf-8"
            )
        entries.extend(
            ArchiveEntry(path=path, content=content) for path, content in by_path.items()
        )
        index = "\n".join(f"- {t.id}: {t.name}" for t in templates)
        entries.append(ArchiveEntry(path=PROMPTS_README_PATH, content=index.encode("utf-8")))
    else:
        entries.append(
            ArchiveEntry(
                path=PROMPTS_README_PATH,
                content=PROMPTS_PLACEHOLDER.encode("utf-8"),
            )
        )

    schema = json.dumps(
        {"skillName": description.skill_name, "version": version},
        indent=2,
        ensure_ascii=False,
    )
    entries.append(ArchiveEntry(path=SCHEMA_PATH, content=schema.encode("utf-8")))
    return entries


def assemble_entries(description: SkillDescription, version: str) -> list[ArchiveEntry]:
    """Compute the canonical entry list for one archive.

    Order: SKILL.md, scripts, references, assets.

    Args:
        description: Validated skill description.
        version: Skill pack version.

    Returns:
        Entries in archive order.
    """
    entries = [
        ArchiveEntry(
            path=SKILL_MD_PATH,
            content=render_skill_md(description, version).encode("utf-8"),
        ),
        script_entry(description),
    ]
    entries.extend(reference_entries(description))
    entries.extend(asset_entries(description, version))
    return entries


def total_size(entries: list[ArchiveEntry]) -> int:
    """Sum of entry content sizes in bytes."""
    return sum(entry.size for entry in entries)
