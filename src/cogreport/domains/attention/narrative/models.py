"""Report data models produced by the narrative composer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

from cogreport.core.blocks.models import freeze, thaw


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class IntakeContext:
    """Caller-supplied context shown in the intake summary."""

    name: str | None = None
    age: int | None = None
    assessment_type: str | None = None
    tests_completed: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> IntakeContext:
        if not data:
            return cls()
        age = data.get("age")
        if isinstance(age, bool) or not isinstance(age, (int, float)):
            age = None
        return cls(
            name=data.get("name") or None,
            age=int(age) if age is not None else None,
            assessment_type=data.get("assessment_type") or None,
            tests_completed=data.get("tests_completed") or None,
        )


@dataclass(frozen=True)
class Section:
    """One titled report section.

    ``paragraphs`` holds the prose; ``content`` holds the section-specific
    structured parts (tables, lists, cards) as frozen mappings and tuples.
    Unavailable sections carry a single placeholder paragraph.
    """

    key: str
    title: str
    subtitle: str = ""
    paragraphs: tuple[str, ...] = ()
    content: Mapping[str, Any] = field(default_factory=_empty)
    available: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "paragraphs", tuple(self.paragraphs))
        object.__setattr__(self, "content", freeze(self.content))

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "subtitle": self.subtitle,
            "available": self.available,
            "paragraphs": list(self.paragraphs),
            "content": thaw(self.content),
        }


@dataclass(frozen=True)
class ClinicalLevel:
    key: str
    title: str
    sections: tuple[Section, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "sections": [s.to_dict() for s in self.sections],
        }


@dataclass(frozen=True)
class Report:
    """The composed, immutable report artifact."""

    metadata: Mapping[str, Any]
    executive_summary: tuple[str, ...]
    sections: tuple[Section, ...]
    clinical_levels: tuple[ClinicalLevel, ...]
    life_predictions: tuple[Mapping[str, Any], ...]
    metrics: Mapping[str, Any]
    audience: str = "standard"
    annotations: Mapping[str, Any] = field(default_factory=_empty)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", freeze(self.metadata))
        object.__setattr__(self, "executive_summary", tuple(self.executive_summary))
        object.__setattr__(self, "sections", tuple(self.sections))
        object.__setattr__(self, "clinical_levels", tuple(self.clinical_levels))
        object.__setattr__(self, "life_predictions", freeze(tuple(self.life_predictions)))
        object.__setattr__(self, "metrics", freeze(self.metrics))
        object.__setattr__(self, "annotations", freeze(self.annotations))

    def section(self, key: str) -> Section:
        for section in self.sections:
            if section.key == key:
                return section
        raise KeyError(f"Report has no section {key!r}")

    def section_keys(self) -> list[str]:
        return [s.key for s in self.sections]

    def section_titles(self) -> list[str]:
        return [s.title for s in self.sections]

    def with_changes(self, **changes: Any) -> Report:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": thaw(self.metadata),
            "audience": self.audience,
            "executive_summary": list(self.executive_summary),
            "sections": [s.to_dict() for s in self.sections],
            "clinical_levels": [level.to_dict() for level in self.clinical_levels],
            "life_predictions": thaw(self.life_predictions),
            "metrics": thaw(self.metrics),
            "annotations": thaw(self.annotations),
        }
