"""
Configuration management for SolProof.

Loads settings from environment variables and an optional .env file and
exposes typed per-stage configuration.
"""

from solproof.config.settings import (  # noqa: F401
    FetchConfig,
    PipelineConfig,
    Settings,
    get_settings,
)

__all__ = ["FetchConfig", "PipelineConfig", "Settings", "get_settings"]
