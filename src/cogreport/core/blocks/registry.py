"""Block library: read-only index of narrative topics."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from cogreport.core.blocks.models import BlockFile, LibraryManifest

logger = logging.getLogger(__name__)


class BlockLibrary:
    """In-memory catalog of phrasing variants keyed by topic and level.

    Topics are registered while loading and the library is sealed
    afterwards; every leaf is a frozen mapping, tuple or string, so one
    instance can be shared by any number of concurrent report generations.
    """

    def __init__(self, manifest: LibraryManifest | None = None) -> None:
        self.manifest = manifest or LibraryManifest()
        self._topics: dict[str, Any] = {}
        self._topic_files: dict[str, str] = {}
        self._files: list[BlockFile] = []
        self._sealed = False

    @property
    def version(self) -> str:
        return self.manifest.version

    @property
    def sealed(self) -> bool:
        return self._sealed

    def register(self, block_file: BlockFile) -> None:
        """Add every topic of a block file to the library."""
        if self._sealed:
            raise RuntimeError("Block library is sealed; no further topics can be registered")
        for topic in block_file.topics:
            if topic in self._topics:
                raise ValueError(f"Duplicate block topic registered: {topic!r}")
        for topic, content in block_file.topics.items():
            self._topics[topic] = content
            self._topic_files[topic] = block_file.name
        self._files.append(block_file)

    def seal(self) -> None:
        """Refuse any further registration."""
        self._sealed = True

    def topics(self) -> list[str]:
        """Return all registered topic names, sorted."""
        return sorted(self._topics)

    def files(self) -> list[BlockFile]:
        """Return the registered block files in load order."""
        return list(self._files)

    def has(self, topic: str, *path: str) -> bool:
        try:
            self.entry(topic, *path)
        except KeyError:
            return False
        return True

    def entry(self, topic: str, *path: str | int) -> Any:
        """Look up the raw (frozen) node at ``topic/path...``.

        Raises KeyError when any segment is missing.
        """
        if topic not in self._topics:
            raise KeyError(f"Unknown block topic: {topic!r}")
        node: Any = self._topics[topic]
        walked = [topic]
        for segment in path:
            walked.append(str(segment))
            if isinstance(node, Mapping) and segment in node:
                node = node[segment]
            elif isinstance(node, tuple) and isinstance(segment, int) and -len(node) <= segment < len(node):
                node = node[segment]
            else:
                raise KeyError(f"Unknown block path: {'/'.join(walked)}")
        return node

    def variants(self, topic: str, *path: str | int) -> tuple[str, ...]:
        """Return the interchangeable phrasings stored at ``topic/path...``."""
        node = self.entry(topic, *path)
        if isinstance(node, str):
            return (node,) if node else ()
        if isinstance(node, tuple) and all(isinstance(v, str) for v in node):
            return node
        raise TypeError(f"Block path {'/'.join([topic, *map(str, path)])} is not a phrasing list")

    def terms(self) -> Mapping[str, str]:
        """Return the patient-friendly terminology table."""
        return self.entry("patient_terms")

    def topic_source(self, topic: str) -> str:
        """Name of the block file that defined ``topic``."""
        return self._topic_files[topic]
