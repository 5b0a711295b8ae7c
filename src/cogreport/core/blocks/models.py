"""Data models for narrative block files."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class LibraryManifest:
    """Library-level metadata read from ``_manifest.yaml``."""

    library: str = "default"
    version: str = "0.0.0"
    description: str = ""


@dataclass(frozen=True)
class BlockFile:
    """One versioned YAML file contributing topics to a library."""

    name: str
    version: str
    topics: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    source: str = ""


def freeze(value: Any) -> Any:
    """Recursively convert parsed YAML into read-only mappings and tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`, producing JSON-serialisable dicts and lists."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value
