"""TinyClaw configuration management."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class TinyclawSettings(BaseSettings):
    """Settings loaded from environment variables or .env file."""

    # Server
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8200, description="API port")
    debug: bool = Field(default=False, description="Debug mode")

    # Delivery
    default_max_length: int = Field(
        default=4000,
        description="Message length limit (code points) for channels without an override",
    )
    channel_max_lengths: dict[str, int] = Field(
        default_factory=dict,
        description="Per-channel length overrides, e.g. {\"telegram\": 4096}",
    )
    placeholder_text: Optional[str] = Field(
        default=None,
        description="Text of the placeholder message sent on inbound (None = no placeholder)",
    )
    done_text: str = Field(
        default="Done.",
        description="Placeholder replacement when a reply has no text (media-only or empty)",
    )

    # Media
    media_dir: str = Field(default="/tmp/tinyclaw_media", description="Scratch dir for turn media")

    # Logging
    log_file: Optional[str] = Field(default=None, description="Also log to this file")

    model_config = {"env_prefix": "TINYCLAW_", "env_file": ".env", "extra": "ignore"}


def load_settings() -> TinyclawSettings:
    """Load settings from environment."""
    settings = TinyclawSettings()

    import logging
    logger = logging.getLogger("tinyclaw.config")
    for name, limit in settings.channel_max_lengths.items():
        if limit < 0:
            logger.warning(
                f"Negative length limit for channel '{name}' ({limit}) disables splitting"
            )

    return settings
