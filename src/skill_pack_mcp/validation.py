"""Skill description validation - schema checks and normalization."""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from skill_pack_mcp.exceptions import FieldError, SkillValidationError
from skill_pack_mcp.models import SkillDescription

logger = logging.getLogger(__name__)


def _field_path(loc: tuple) -> str:
    """Join a pydantic error location into a dotted path."""
    return ".".join(str(part) for part in loc) or "<root>"


def validate_skill_description(data: Any) -> SkillDescription:
    """Validate and normalize an unvalidated skill description.

    Args:
        data: Mapping with camelCase (or snake_case) keys, or an existing
            SkillDescription.

    Returns:
        Normalized SkillDescription.

    Raises:
        SkillValidationError: If the input does not match the schema. Carries
            one FieldError per offending field.
    """
    if isinstance(data, SkillDescription):
        data = data.to_wire()

    if not isinstance(data, Mapping):
        raise SkillValidationError(
            [FieldError(field="<root>", message="skill description must be an object")]
        )

    try:
        return SkillDescription.model_validate(dict(data))
    except ValidationError as e:
        errors = [
            FieldError(field=_field_path(err["loc"]), message=err["msg"])
            for err in e.errors()
        ]
        logger.debug(f"Skill description rejected: {errors}")
        raise SkillValidationError(errors) from e
