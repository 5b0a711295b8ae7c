"""Server entry point: ``python -m cogreport.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from cogreport.core.config.settings import get_settings
from cogreport.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the cognitive report MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.cog_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.cog_allow_insecure_bind and not _is_loopback_host(settings.cog_host):
        raise RuntimeError(
            "Refusing to bind the report server to a non-loopback host without an auth layer. "
            "Set COG_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info("Starting cognitive report server on %s:%d", settings.cog_host, settings.cog_port)

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.cog_host,
        port=settings.cog_port,
    )


if __name__ == "__main__":
    run()
