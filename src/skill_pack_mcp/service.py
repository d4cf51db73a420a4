"""Skill pack operations exposed to tools and the CLI.

Results are plain dicts. Failures are reported in the dict instead of
raised, so tool clients always receive a structured answer.
"""

import base64
import logging
import uuid
from typing import Any

from skill_pack_mcp.builder import SkillPackBuilder
from skill_pack_mcp.download_store import DownloadStore
from skill_pack_mcp.entries import sanitize_name
from skill_pack_mcp.exceptions import SkillPackError, SkillValidationError
from skill_pack_mcp.exporter import export_skills
from skill_pack_mcp.storage import ObjectStorage, skill_key
from skill_pack_mcp.validation import validate_skill_description

logger = logging.getLogger(__name__)


def _validation_error_result(e: SkillValidationError) -> dict[str, Any]:
    return {"error": "Invalid skill description", "fields": e.to_dict()}


class SkillPackService:
    """Build, store and export skill packs."""

    def __init__(
        self,
        builder: SkillPackBuilder,
        storage: ObjectStorage | None = None,
        download_store: DownloadStore | None = None,
    ):
        """Initialize the service.

        Args:
            builder: Archive builder.
            storage: Object storage for archives. None returns archives inline.
            download_store: Session to download URL record.
        """
        self.builder = builder
        self.storage = storage
        self.download_store = (
            download_store if download_store is not None else DownloadStore()
        )

    def render(self, data: Any) -> dict[str, Any]:
        """Render the SKILL.md document for a description."""
        try:
            return {"skill_md": self.builder.render(data)}
        except SkillValidationError as e:
            return _validation_error_result(e)

    def build(self, data: Any, session_id: str | None = None) -> dict[str, Any]:
        """Build an archive and store it (or return it inline).

        Args:
            data: Unvalidated skill description.
            session_id: Session the archive belongs to. Generated if None.

        Returns:
            With storage: key, download_url, size_bytes, session_id.
            Without storage: archive_base64, filename, size_bytes, session_id.
            On failure: error (and fields for validation errors).
        """
        try:
            description = validate_skill_description(data)
            archive = self.builder.build_buffer(description)
        except SkillValidationError as e:
            return _validation_error_result(e)
        except SkillPackError as e:
            logger.error(f"Skill pack build failed: {e}")
            return {"error": f"Skill pack build failed: {e}"}

        session_id = session_id or uuid.uuid4().hex
        filename = f"{sanitize_name(description.skill_name)}.skills"

        if self.storage is None:
            return {
                "session_id": session_id,
                "filename": filename,
                "size_bytes": len(archive),
                "archive_base64": base64.b64encode(archive).decode("ascii"),
            }

        key = skill_key(session_id, description.skill_name)
        try:
            self.storage.upload(key, archive)
            url = self.storage.get_signed_download_url(key)
        except SkillPackError as e:
            logger.error(f"Failed to store skill pack '{key}': {e}")
            return {"error": f"Failed to store skill pack: {e}", "session_id": session_id}

        self.download_store.set_download_url(session_id, url)
        return {
            "session_id": session_id,
            "key": key,
            "filename": filename,
            "size_bytes": len(archive),
            "download_url": url,
        }

    def get_download_url(self, session_id: str) -> dict[str, Any]:
        """Look up the download URL recorded for a session."""
        url = self.download_store.get_download_url(session_id)
        if url is None:
            return {"session_id": session_id, "error": "No skill pack for this session"}
        return {"session_id": session_id, "download_url": url}

    def export(self, items: list[Any], format: str = "json") -> dict[str, Any]:
        """Export several skills as a JSON document or a base64 zip."""
        try:
            result = export_skills(items, format=format, version=self.builder.version)
        except SkillValidationError as e:
            return _validation_error_result(e)
        except (ValueError, SkillPackError) as e:
            return {"error": str(e)}

        if isinstance(result, bytes):
            return {
                "format": "zip",
                "size_bytes": len(result),
                "archive_base64": base64.b64encode(result).decode("ascii"),
            }
        return {"format": "json", "export": result}
