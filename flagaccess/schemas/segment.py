"""Segment input schemas (create body and partial-update patch)."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

RuleOperator = Literal["in", "not_in", "eq", "neq", "contains", "starts_with", "ends_with"]


class SegmentRule(BaseModel):
    """One targeting rule: ``attribute <operator> values``."""

    model_config = ConfigDict(extra="forbid")

    attribute: str = Field(..., min_length=1, max_length=255)
    operator: RuleOperator
    values: list[str] = Field(default_factory=list)


class _SegmentInput(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("flag_ids", check_fields=False)
    @classmethod
    def dedupe_flag_ids(cls, value: list[str] | None) -> list[str] | None:
        """Drop repeated flag ids while keeping first-seen order."""
        if value is None:
            return None
        return list(dict.fromkeys(value))


class SegmentCreate(_SegmentInput):
    """Body for creating a segment."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    rules: list[SegmentRule] = Field(default_factory=list)
    archived: bool = False
    flag_ids: list[str] = Field(default_factory=list)


class SegmentUpdate(_SegmentInput):
    """Patch for a segment; only fields explicitly set are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    rules: list[SegmentRule] | None = None
    archived: bool | None = None
    flag_ids: list[str] | None = None

    @field_validator("name", "rules", "archived", "flag_ids")
    @classmethod
    def reject_explicit_null(cls, value: Any) -> Any:
        """Columns that cannot be null may be omitted but not set to None."""
        if value is None:
            raise ValueError("may be omitted but not null")
        return value
