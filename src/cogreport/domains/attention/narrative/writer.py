"""Block lookup and formatting bound to one composition pass."""

from __future__ import annotations

from typing import Any, Mapping

from cogreport.core.blocks.models import thaw
from cogreport.core.blocks.registry import BlockLibrary
from cogreport.core.blocks.selection import VariantPicker
from cogreport.domains.attention.narrative.models import Section


class BlockWriter:
    """Picks phrasing variants and fills their ``str.format`` fields.

    Every variant choice of a report goes through the same picker, so a
    seeded composition is reproducible end to end.
    """

    def __init__(self, library: BlockLibrary, picker: VariantPicker) -> None:
        self.library = library
        self.picker = picker

    def pick(self, topic: str, *path: str | int, **values: Any) -> str:
        """One variant from ``topic/path``, formatted with ``values``."""
        return _fill(self.picker.pick(self.library.variants(topic, *path)), values)

    def text(self, topic: str, *path: str | int, **values: Any) -> str:
        """A single fixed string, formatted with ``values``."""
        return _fill(self.library.entry(topic, *path), values)

    def raw(self, topic: str, *path: str | int) -> Any:
        """Plain dict/list copy of a structured block node."""
        return thaw(self.library.entry(topic, *path))

    def items(self, topic: str, *path: str | int) -> list[str]:
        """Every variant at ``topic/path``, in library order."""
        return list(self.library.variants(topic, *path))

    def section(
        self,
        key: str,
        paragraphs: list[str] | tuple[str, ...] = (),
        content: Mapping[str, Any] | None = None,
        title_path: tuple[str, ...] | None = None,
    ) -> Section:
        title, subtitle = self.titles(title_path or ("sections", key))
        return Section(
            key=key,
            title=title,
            subtitle=subtitle,
            paragraphs=tuple(p for p in paragraphs if p),
            content=content or {},
        )

    def placeholder(
        self,
        key: str,
        reason: str = "default",
        title_path: tuple[str, ...] | None = None,
    ) -> Section:
        """Stand-in for a section whose input data is unavailable."""
        title, subtitle = self.titles(title_path or ("sections", key))
        return Section(
            key=key,
            title=title,
            subtitle=subtitle,
            paragraphs=(self.text("insufficient_data", reason),),
            content={"insufficient_data": True},
            available=False,
        )

    def titles(self, path: tuple[str, ...]) -> tuple[str, str]:
        node = self.library.entry(path[0], *path[1:])
        return node["title"], node.get("subtitle", "")


def plain_number(value: float) -> int | float:
    """Drop the fraction of integral floats so ``85.0`` renders as ``85``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _fill(template: str, values: Mapping[str, Any]) -> str:
    return template.format(**values) if values else template
