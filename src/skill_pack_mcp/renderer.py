"""Render a skill description into the canonical SKILL.md document."""

from skill_pack_mcp.models import SkillDescription, Strategy

PREREQUISITE_KEYWORD = "prerequisite"
SETUP_KEYWORD = "setup"


def _escape_double_quoted(value: str) -> str:
    """Escape a value for a YAML double-quoted scalar."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _first_matching(
    strategies: list[Strategy], keyword: str, skip: set[int]
) -> int | None:
    """Index of the first strategy whose title contains keyword."""
    for index, strategy in enumerate(strategies):
        if index in skip:
            continue
        if keyword in strategy.title.lower():
            return index
    return None


def render_skill_md(description: SkillDescription, version: str) -> str:
    """Render SKILL.md text for a skill.

    Layout: YAML frontmatter, title and description, optional Prerequisites
    and Setup sections, numbered Core Workflows, Trigger Phrases and Version.

    Only the first strategy matching "prerequisite" (and the first remaining
    one matching "setup") is rendered in its section; every other strategy
    whose title matches either keyword is left out of the workflows.
    Bodies are passed through verbatim.

    Args:
        description: Validated skill description.
        version: Version string for the Version section.

    Returns:
        The SKILL.md document.
    """
    strategies = description.strategies
    lines: list[str] = []

    lines.append("---")
    lines.append(f"name: {description.skill_name}")
    lines.append(f'description: "{_escape_double_quoted(description.description)}"')
    lines.append("---")
    lines.append("")
    lines.append(f"# {description.skill_name}")
    lines.append("")
    lines.append(description.description)
    lines.append("")

    prerequisite_index = _first_matching(strategies, PREREQUISITE_KEYWORD, set())
    if prerequisite_index is not None:
        lines.append("## Prerequisites")
        lines.append("")
        lines.append(strategies[prerequisite_index].content)
        lines.append("")

    taken = {prerequisite_index} if prerequisite_index is not None else set()
    setup_index = _first_matching(strategies, SETUP_KEYWORD, taken)
    if setup_index is not None:
        lines.append("## Setup")
        lines.append("")
        lines.append(strategies[setup_index].content)
        lines.append("")

    workflows = [
        s
        for s in strategies
        if PREREQUISITE_KEYWORD not in s.title.lower()
        and SETUP_KEYWORD not in s.title.lower()
    ]
    if workflows:
        lines.append("## Core Workflows")
        lines.append("")
        for number, strategy in enumerate(workflows, start=1):
            lines.append(f"### {number}. {strategy.title}")
            lines.append("")
            lines.append(strategy.content)
            lines.append("")
            if number < len(workflows):
                lines.append("---")
                lines.append("")

    if description.triggers:
        lines.append("## Trigger Phrases")
        lines.append("")
        for trigger in description.triggers:
            lines.append(f"- {trigger}")
        lines.append("")

    lines.append("## Version")
    lines.append("")
    lines.append(version)
    lines.append("")

    return "\n".join(lines)
