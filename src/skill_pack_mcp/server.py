"""FastMCP server and command line for building skill pack archives."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import typer
import yaml
from fastmcp import FastMCP

from skill_pack_mcp.builder import SkillPackBuilder
from skill_pack_mcp.config import get_config
from skill_pack_mcp.download_store import DownloadStore
from skill_pack_mcp.entries import sanitize_name
from skill_pack_mcp.exceptions import SkillPackError, SkillValidationError
from skill_pack_mcp.service import SkillPackService
from skill_pack_mcp.storage import create_object_storage
from skill_pack_mcp.validation import validate_skill_description

# Logging
logger = logging.getLogger(__name__)

# Typer app
app = typer.Typer()


def setup_logging():
    """
    Configure logging to output to stderr.
    This prevents stdout pollution for stdio transport.
    Log level can be controlled via LOG_LEVEL environment variable.
    """
    config = get_config()
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    log_formatter = logging.Formatter("%(asctime)s [%(levelname)s] - %(message)s")
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    root_logger.handlers.clear()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(log_formatter)
    root_logger.addHandler(stream_handler)


def create_service() -> SkillPackService:
    """Create the service from the global configuration."""
    config = get_config()
    return SkillPackService(
        builder=SkillPackBuilder(config=config),
        storage=create_object_storage(config),
        download_store=DownloadStore(),
    )


# Initialize FastMCP server
mcp = FastMCP(
    "skill-pack-mcp-server",
    instructions="""Skill Packs - build downloadable .skills archives

Workflow:
1. Preview: skill_pack_render to check the SKILL.md document
2. Build: skill_pack_build to produce the archive (returns a download URL,
   or the archive as base64 when no storage is configured)
3. Retrieve: skill_pack_download_url with the session_id from step 2
4. Bulk: skill_pack_export for several skills at once (json or zip)

A skill description has: skillName, description, triggers (list),
strategies (list of {title, content}), optional promptTemplates
(list of {id, name, template}) and optional scriptLogic
({language: python|typescript, code}).""",
)

_service: SkillPackService | None = None


def get_service() -> SkillPackService:
    """Get the shared service, created on first use."""
    global _service
    if _service is None:
        _service = create_service()
    return _service


@mcp.tool()
async def skill_pack_render(skill: dict) -> dict:
    """Render the SKILL.md document for a skill description.

    Args:
        skill: Skill description (skillName, description, triggers, strategies, ...).

    Returns:
        Dict with skill_md, or error and fields if the description is invalid.
    """
    return get_service().render(skill)


@mcp.tool()
async def skill_pack_build(skill: dict, session_id: str | None = None) -> dict:
    """Build a .skills archive for a skill description.

    Args:
        skill: Skill description (skillName, description, triggers, strategies, ...).
        session_id: Optional session identifier to file the archive under.

    Returns:
        Dict with session_id, size_bytes and either download_url/key
        or archive_base64/filename. Contains error on failure.
    """
    return await asyncio.to_thread(get_service().build, skill, session_id)


@mcp.tool()
async def skill_pack_download_url(session_id: str) -> dict:
    """Get the download URL of the archive built for a session.

    Args:
        session_id: Session identifier returned by skill_pack_build.
    """
    return get_service().get_download_url(session_id)


@mcp.tool()
async def skill_pack_export(skills: list[dict], format: str = "json") -> dict:
    """Export several skill descriptions at once.

    Args:
        skills: List of skill descriptions.
        format: "json" for a JSON document, "zip" for a base64 zip of
            <name>/SKILL.md files.
    """
    return await asyncio.to_thread(get_service().export, skills, format)


def _load_description(path: Path) -> dict:
    """Read a skill description from a JSON or YAML file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a single skill description object")
    return data


def _read_input_or_exit(input_path: Path) -> dict:
    try:
        return _load_description(input_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logging.error(f"Failed to read {input_path}: {e}")
        raise typer.Exit(code=1) from e


def _report_validation_error(e: SkillValidationError) -> None:
    for error in e.errors:
        logging.error(f"{error.field}: {error.message}")


@app.command()
def serve(
    transport: str = typer.Option(
        default="stdio",
        help="Transport protocol to use ('stdio' or 'http')",
    ),
    host: str = typer.Option(
        default="127.0.0.1",
        help="Host for HTTP server (http mode only)",
    ),
    port: int = typer.Option(
        default=8080,
        help="Port for HTTP server (http mode only)",
    ),
):
    """
    Start the MCP server with stdio or http transport.
    """
    setup_logging()

    try:
        get_service()
    except ValueError as e:
        logging.error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1) from e

    if transport == "stdio":
        logging.info("Starting MCP server with stdio transport...")
        mcp.run()
    elif transport == "http":
        logging.info(f"Starting MCP server with http transport on {host}:{port}...")
        mcp.run(transport="http", host=host, port=port)
    else:
        logging.error(f"Invalid transport: {transport}. Use 'stdio' or 'http'.")
        raise typer.Exit(code=1)


@app.command()
def build(
    input_path: Path = typer.Argument(
        ..., help="Skill description file (.json, .yaml or .yml)"
    ),
    output: Path | None = typer.Option(
        default=None,
        help="Archive path (default: <skill-name>.skills in the current directory)",
    ),
):
    """
    Build a .skills archive from a skill description file.
    """
    setup_logging()
    data = _read_input_or_exit(input_path)

    builder = SkillPackBuilder(config=get_config())
    try:
        description = validate_skill_description(data)
        archive = builder.build_buffer(description)
    except SkillValidationError as e:
        _report_validation_error(e)
        raise typer.Exit(code=1) from e
    except SkillPackError as e:
        logging.error(f"Build failed: {e}")
        raise typer.Exit(code=1) from e

    if output is None:
        output = Path(f"{sanitize_name(description.skill_name)}.skills")
    output.write_bytes(archive)
    typer.echo(f"Wrote {output} ({len(archive)} bytes)")


@app.command()
def render(
    input_path: Path = typer.Argument(
        ..., help="Skill description file (.json, .yaml or .yml)"
    ),
):
    """
    Print the SKILL.md document for a skill description file.
    """
    setup_logging()
    data = _read_input_or_exit(input_path)

    builder = SkillPackBuilder(config=get_config())
    try:
        typer.echo(builder.render(data), nl=False)
    except SkillValidationError as e:
        _report_validation_error(e)
        raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
