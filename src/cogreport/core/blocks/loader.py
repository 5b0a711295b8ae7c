"""Block loader: reads versioned YAML phrasing files from disk."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

import yaml

from cogreport.core.blocks.models import BlockFile, LibraryManifest, freeze
from cogreport.core.blocks.registry import BlockLibrary

logger = logging.getLogger(__name__)

MANIFEST_NAME = "_manifest.yaml"

# Packaged attention library lives under src/cogreport/domains/attention/blocks/
DEFAULT_BLOCK_DIR = Path(__file__).resolve().parent.parent.parent / "domains" / "attention" / "blocks"

_default_library: BlockLibrary | None = None
_default_lock = threading.Lock()


def load_block_directory(directory: str | Path) -> BlockLibrary:
    """Load every YAML block file under ``directory`` into a sealed library.

    Files starting with an underscore are skipped; ``_manifest.yaml``
    is read separately for the library name and version. A file that
    fails to parse or register is logged and skipped.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Block directory does not exist: %s", directory)
        library = BlockLibrary()
        library.seal()
        return library

    library = BlockLibrary(load_manifest(directory / MANIFEST_NAME))
    count = 0
    for path in sorted(directory.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            block_file = load_block_file(path)
            library.register(block_file)
            count += 1
            logger.info(
                "Loaded block file: %s (v%s, %d topics)",
                block_file.name,
                block_file.version,
                len(block_file.topics),
            )
        except Exception:
            logger.exception("Failed to load block file from %s", path)
    library.seal()
    logger.info(
        "Block library %r v%s ready: %d files, %d topics",
        library.manifest.library,
        library.version,
        count,
        len(library.topics()),
    )
    return library


def load_block_file(path: Path) -> BlockFile:
    """Parse a YAML block file into a frozen BlockFile."""
    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    topics = data.get("topics")
    if not isinstance(topics, dict):
        raise ValueError(f"Block file {path.name} has no 'topics' mapping")

    return BlockFile(
        name=path.stem,
        version=str(data.get("version", "0.0.0")),
        topics=freeze(topics),
        source=str(path),
    )


def load_manifest(path: Path) -> LibraryManifest:
    """Read the library manifest; missing manifests yield defaults."""
    if not path.is_file():
        logger.warning("No block library manifest at %s", path)
        return LibraryManifest()
    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}
    return LibraryManifest(
        library=str(data.get("library", "default")),
        version=str(data.get("version", "0.0.0")),
        description=str(data.get("description", "")).strip(),
    )


def get_default_library() -> BlockLibrary:
    """Return the process-wide library, loading it on first use.

    ``COG_BLOCKS_DIR`` overrides the packaged directory.
    """
    global _default_library  # noqa: PLW0603
    if _default_library is not None:
        return _default_library
    with _default_lock:
        if _default_library is None:
            from cogreport.core.config.settings import get_settings

            override = get_settings().cog_blocks_dir
            directory = Path(override).expanduser() if override else DEFAULT_BLOCK_DIR
            _default_library = load_block_directory(directory)
    return _default_library
