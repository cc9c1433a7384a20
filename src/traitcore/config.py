"""
Centralized configuration for TraitCore.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (TRAITCORE_*)
3. .env file
4. Default values

Example:
    from traitcore.config import get_config

    config = get_config()
    print(config.log_level)  # From TRAITCORE_LOG_LEVEL or default

    # Override at runtime
    config = get_config(emit_span_events=False)
"""

from __future__ import annotations

import logging
import sys
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TraitCoreConfig(BaseSettings):
    """
    Central configuration for TraitCore.

    All settings can be overridden via environment variables
    prefixed with TRAITCORE_.

    Example:
        export TRAITCORE_LOG_LEVEL=debug
        export TRAITCORE_WARN_ON_SHADOW=false
        export TRAITCORE_EMIT_EVENTS=true
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAITCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    service_name: str = Field(
        default="traitcore",
        description="Service name attached to structured composition events",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for the traitcore logger hierarchy",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Output format for structured composition events",
    )
    emit_events: bool = Field(
        default=False,
        description="Write structured composition events to stdout in configure_logging()",
    )

    # Telemetry
    emit_span_events: bool = Field(
        default=True,
        description="Add adoption events to the current OTel span",
    )

    # Adoption
    warn_on_shadow: bool = Field(
        default=True,
        description="Warn when an installed operation replaces an existing attribute",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        """Accept upper-case level names (e.g. DEBUG)."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


# Global singleton
_config: Optional[TraitCoreConfig] = None


def get_config(**overrides) -> TraitCoreConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        TraitCoreConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = TraitCoreConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def configure_logging(config: Optional[TraitCoreConfig] = None) -> logging.Logger:
    """Apply the configured level to the ``traitcore`` logger hierarchy.

    Attaches a stderr handler only when the root ``traitcore`` logger has
    none, so repeated calls do not duplicate output.  With ``emit_events``
    set, ``traitcore.events`` lines go to stdout as bare messages instead
    of the stderr handler.
    """
    config = config or get_config()
    root = logging.getLogger("traitcore")
    root.setLevel(getattr(logging, config.log_level.upper()))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        root.addHandler(handler)

    events = logging.getLogger("traitcore.events")
    if config.emit_events:
        if not any(isinstance(h, _EventStreamHandler) for h in events.handlers):
            events.addHandler(_EventStreamHandler(sys.stdout))
        events.propagate = False
    return root


class _EventStreamHandler(logging.StreamHandler):
    """stdout handler for structured event lines."""

    def __init__(self, stream=None) -> None:
        super().__init__(stream)
        self.setFormatter(logging.Formatter("%(message)s"))
