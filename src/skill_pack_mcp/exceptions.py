"""Exceptions raised by the skill pack pipeline."""

from dataclasses import dataclass


class SkillPackError(Exception):
    """Base exception for skill pack operations."""

    pass


@dataclass(frozen=True)
class FieldError:
    """A single offending field in a skill description."""

    field: str
    message: str


class SkillValidationError(SkillPackError, ValueError):
    """Skill description failed schema validation."""

    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        details = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(f"Invalid skill description: {details}")

    @property
    def fields(self) -> list[str]:
        """Dotted paths of all offending fields."""
        return [e.field for e in self.errors]

    def to_dict(self) -> list[dict[str, str]]:
        return [{"field": e.field, "message": e.message} for e in self.errors]


class ExternalCompressorError(SkillPackError):
    """The native compressor could not produce an archive."""

    pass


class CompressionFailure(SkillPackError):
    """The in-process archive writer failed."""

    pass


class StorageError(SkillPackError):
    """Object storage is unavailable or rejected a request."""

    pass
