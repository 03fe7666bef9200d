"""TinyClaw process wiring: logging setup, the delivery gateway and the HTTP API.

The agent loop embeds TinyClaw by building one ``Gateway`` at startup and
passing it (never a global) to whatever handles inbound messages.
"""

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Optional

from .api import Dispatcher, create_app
from .channels import ChannelCoordinator, ChannelManager, ConsoleChannel
from .config import TinyclawSettings, load_settings
from .media import MediaStore

_log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("tinyclaw")


def setup_logging(settings: TinyclawSettings) -> None:
    """Configure root logging: stderr always, a log file if configured."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]       # stderr (console)
    if settings.log_file:
        log_file = os.path.expanduser(settings.log_file)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=_log_format,
        handlers=handlers,
        force=True,
    )
    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


@dataclass
class Gateway:
    """Everything a turn needs, built once per process."""
    settings: TinyclawSettings
    media_store: MediaStore
    coordinator: ChannelCoordinator
    channels: ChannelManager

    def media_path(self, filename: str) -> str:
        """Path under the media dir for a new turn file.

        The file still has to be written by the caller and registered with
        ``media_store.store`` to be cleaned up with its scope.
        """
        os.makedirs(self.settings.media_dir, exist_ok=True)
        safe_name = os.path.basename(filename) or "file"
        return os.path.join(self.settings.media_dir, f"{uuid.uuid4().hex[:12]}_{safe_name}")


def build_gateway(settings: Optional[TinyclawSettings] = None, console: bool = True) -> Gateway:
    """Construct the media store, coordinator and channel manager.

    Args:
        settings: Loaded settings (loads from environment if None)
        console: Register the local console channel
    """
    settings = settings or load_settings()
    media_store = MediaStore()
    coordinator = ChannelCoordinator()
    channels = ChannelManager(
        coordinator,
        media_store,
        max_lengths=settings.channel_max_lengths,
        default_max_length=settings.default_max_length,
        placeholder_text=settings.placeholder_text,
        done_text=settings.done_text,
    )
    if console:
        channels.register(ConsoleChannel())

    logger.info(f"Gateway ready: channels={channels.names()}, media_dir={settings.media_dir}")
    return Gateway(
        settings=settings,
        media_store=media_store,
        coordinator=coordinator,
        channels=channels,
    )


def run_api(dispatcher: Dispatcher, settings: Optional[TinyclawSettings] = None) -> None:
    """Serve the HTTP API until interrupted (blocking)."""
    import uvicorn

    settings = settings or load_settings()
    setup_logging(settings)
    app = create_app(dispatcher)
    logger.info(f"Serving API on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
