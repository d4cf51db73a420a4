"""Data models for skill packs."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Base model accepting camelCase wire keys and snake_case names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Strategy(_WireModel):
    """A titled block of guidance rendered as one workflow section."""

    title: str = Field(..., description="Strategy title")
    content: str = Field(..., description="Markdown body, emitted verbatim")


class PromptTemplate(_WireModel):
    """Prompt template shipped under assets/prompts/."""

    id: str = Field(
        ...,
        min_length=1,
        description="Template identifier, used as the file name",
    )
    name: str = Field(..., description="Human readable template name")
    template: str = Field(..., description="Template text")

    @field_validator("id")
    @classmethod
    def _reject_path_hazards(cls, value: str) -> str:
        if value in (".", "..") or any(c in value for c in "/\\\r\n"):
            raise ValueError("template id must be a single file name")
        return value


class ScriptLogic(_WireModel):
    """Executable logic written to scripts/main.<ext>."""

    language: Literal["python", "typescript"] = Field(
        ..., description="Script language, selects the file extension"
    )
    code: str = Field(..., description="Script source code")


class SkillDescription(_WireModel):
    """Validated skill description, the input of every archive build."""

    skill_name: str = Field(
        ..., min_length=1, description="Display name, sanitized for file paths"
    )
    description: str = Field(..., description="Free text skill description")
    triggers: list[str] = Field(..., description="Trigger phrases in order")
    research_summary: str | None = Field(
        None, description="Research notes carried with the skill (not rendered)"
    )
    strategies: list[Strategy] = Field(..., description="Ordered strategies")
    prompt_templates: list[PromptTemplate] = Field(
        default_factory=list, description="Ordered prompt templates"
    )
    script_logic: ScriptLogic | None = Field(
        None, description="Optional executable logic"
    )

    @field_validator("skill_name")
    @classmethod
    def _reject_blank_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("skill name must not be blank")
        return value

    @field_validator("prompt_templates", mode="before")
    @classmethod
    def _none_means_no_templates(cls, value):
        return [] if value is None else value

    def to_wire(self) -> dict:
        """Dump with camelCase keys, as accepted on input."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class ArchiveEntry:
    """One file inside a skill pack archive."""

    path: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
