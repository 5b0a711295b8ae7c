"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Cognitive report server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback: assessment data should not be exposed to your LAN/WAN.
    # Opt into `0.0.0.0` explicitly when you intend remote access.
    cog_host: str = "127.0.0.1"
    cog_port: int = 8003
    cog_log_level: str = "info"
    # If binding to non-loopback, refuse to start unless this is set true
    # (there is currently no auth layer).
    cog_allow_insecure_bind: bool = False

    # Narrative block library
    # Empty means the packaged attention library.
    cog_blocks_dir: str = ""

    # Report defaults
    cog_default_audience: Literal["standard", "patient", "clinician"] = "patient"
    # Unset means unseeded (variant wording may differ between calls).
    cog_default_seed: int | None = None


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
