"""Candidate record and query filter models."""

import math
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import InvalidFilterCombinationError


def _coerce_period(value: Any) -> Any:
    """Accept audit years given as integers; blank strings mean "unset"."""
    if isinstance(value, bool):
        raise ValueError("period must be a string or an integer year")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return value


class Candidate(BaseModel):
    """One retrievable audit finding.

    Immutable once retrieved. Field aliases accept the document store's
    native names (``year``, ``department``, ``descriptions``, ``nilai``, ...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("id", "audit_result_id", "auditResultId"),
        description="Stable identifier",
    )
    period: str | None = Field(
        default=None,
        validation_alias=AliasChoices("period", "year"),
        description="Temporal period (audit year)",
    )
    unit: str | None = Field(
        default=None,
        validation_alias=AliasChoices("unit", "department"),
        description="Organizational unit",
    )
    project_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("project_id", "projectId"),
        description="Project identifier",
    )
    project_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("project_name", "projectName"),
        description="Human-readable project name",
    )
    risk_area: str | None = Field(
        default=None,
        validation_alias=AliasChoices("risk_area", "riskArea"),
        description="Risk area the finding belongs to",
    )
    description: str = Field(
        default="",
        validation_alias=AliasChoices("description", "descriptions"),
        description="Free-text finding description",
    )
    code: str = Field(default="", description="Finding code ('NF...' marks a non-finding)")
    subholding: str | None = Field(
        default=None,
        validation_alias=AliasChoices("subholding", "sh"),
        description="Subholding the project belongs to",
    )
    severity: float = Field(
        default=0.0,
        validation_alias=AliasChoices("severity", "nilai"),
        description="Severity/priority scalar",
    )

    @field_validator("period", mode="before")
    @classmethod
    def _normalize_period(cls, value: Any) -> Any:
        return _coerce_period(value)


class QueryFilters(BaseModel):
    """Structured constraints extracted upstream for one request.

    Build from untrusted input with :meth:`parse`, which converts validation
    failures into :class:`InvalidFilterCombinationError`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    period: str | None = Field(default=None, validation_alias=AliasChoices("period", "year"))
    unit: str | None = Field(default=None, validation_alias=AliasChoices("unit", "department"))
    project_id: str | None = Field(
        default=None, validation_alias=AliasChoices("project_id", "project")
    )
    keywords: tuple[str, ...] = Field(default=())
    min_severity: float | None = Field(default=None, ge=0.0)
    exclude_non_findings: bool = Field(default=False, strict=True)

    @field_validator("period", mode="before")
    @classmethod
    def _normalize_period(cls, value: Any) -> Any:
        return _coerce_period(value)

    @field_validator("unit", "project_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str) or not isinstance(value, list | tuple | set | frozenset):
            raise ValueError("keywords must be a list of strings")
        seen: set[str] = set()
        keywords: list[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ValueError(f"keywords must be strings, got {type(item).__name__}")
            keyword = item.strip()
            if keyword and keyword.lower() not in seen:
                seen.add(keyword.lower())
                keywords.append(keyword)
        return tuple(keywords)

    @field_validator("min_severity", mode="before")
    @classmethod
    def _numeric_threshold(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise ValueError(f"min_severity must be a number, got {type(value).__name__}")
        if math.isnan(value) or math.isinf(value):
            raise ValueError("min_severity must be finite")
        return value

    @property
    def has_specific_constraint(self) -> bool:
        """True when any of period, unit, project or keywords is set."""
        return bool(self.period or self.unit or self.project_id or self.keywords)

    @classmethod
    def parse(cls, data: "QueryFilters | Mapping[str, Any] | None") -> "QueryFilters":
        """Validate caller-supplied filters.

        Args:
            data: Existing filters, a mapping of filter fields, or None.

        Returns:
            Validated, immutable filters.

        Raises:
            InvalidFilterCombinationError: If the filters are malformed.
        """
        if data is None:
            return cls()
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise InvalidFilterCombinationError(
                f"filters must be a mapping, got {type(data).__name__}"
            )
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise InvalidFilterCombinationError(
                f"Invalid filters ({field}): {first.get('msg')}", field=field
            ) from e
