"""Cognitive report MCP server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from cogreport.core.blocks.loader import get_default_library
from cogreport.core.blocks.registry import BlockLibrary
from cogreport.core.config.settings import get_settings
from cogreport.domains.attention.resources.blocks import register_block_library_resources
from cogreport.domains.attention.tools.report_tools import register_report_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "Cognitive Attention Reports"
SERVER_VERSION = "0.1.0"


def create_app(*, library_override: BlockLibrary | None = None) -> FastMCP:
    """Create and configure the cognitive report MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Resolves the narrative block library (packaged, or COG_BLOCKS_DIR)
    3. Registers the report tools and the library resource
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Attention assessment reporting server. Turns the results of a "
            "CPT / Go-No-Go / N-Back / Flanker / Trail Making battery into "
            "attention metrics, functional biomarkers and a narrative report "
            "adapted for a patient or a clinician."
        ),
    )

    # --- Block library (packaged, or COG_BLOCKS_DIR) ---
    library = library_override if library_override is not None else get_default_library()
    logger.info(
        "Using block library %r v%s (%d topics)",
        library.manifest.library,
        library.version,
        len(library.topics()),
    )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "block_library": library.manifest.library,
            "block_library_version": library.version,
            "block_topics_loaded": len(library.topics()),
            "default_audience": settings.cog_default_audience,
        }

    register_report_tools(server, library, settings)
    logger.info("Report tools registered")

    # --- Register resources ---
    register_block_library_resources(server, library)

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
