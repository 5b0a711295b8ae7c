"""MCP resource for narrative block library discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from cogreport.core.blocks.registry import BlockLibrary


def register_block_library_resources(mcp: FastMCP, library: BlockLibrary) -> None:
    """Register block library discovery resources on the MCP server."""

    @mcp.resource("blocks://attention/library")
    def attention_block_library_resource() -> str:
        """Describe the loaded narrative block library: version, files and topics."""
        return json.dumps(
            {
                "library": library.manifest.library,
                "version": library.version,
                "description": library.manifest.description,
                "file_count": len(library.files()),
                "topic_count": len(library.topics()),
                "files": [
                    {
                        "name": f.name,
                        "version": f.version,
                        "topics": sorted(f.topics),
                    }
                    for f in library.files()
                ],
                "patient_term_count": len(library.terms()),
            },
            indent=2,
        )
