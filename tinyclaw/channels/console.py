"""Console channel: deliver responses to the local terminal.

Typing is shown as a rich status spinner. Attachments are listed by name,
size and path. The terminal cannot edit what it already printed, so this
channel has no edit capability and never gets a placeholder.
"""

import itertools
import logging
import os
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.status import Status

from ..media.store import MediaMeta
from .base import Channel, ChannelCapabilities, StopTyping, idempotent_stop

logger = logging.getLogger("tinyclaw.console")


class ConsoleChannel(Channel):
    """Local terminal channel rendered with rich."""

    name = "console"

    def __init__(self, console: Optional[Console] = None, markdown: bool = True):
        self.console = console or Console()
        self.markdown = markdown
        self._ids = itertools.count(1)
        self._status: Optional[Status] = None

    async def send_message(self, chat_id: str, content: str) -> Optional[str]:
        self._display(content)
        return str(next(self._ids))

    def capabilities(self) -> ChannelCapabilities:
        return ChannelCapabilities(
            start_typing=self._start_typing,
            send_media=self._send_media,
        )

    async def _start_typing(self, chat_id: str) -> StopTyping:
        # One terminal, one spinner: a new indicator replaces the old one
        self._stop_status()
        status = self.console.status("[bold blue]Thinking...", spinner="dots")
        status.start()
        self._status = status

        def _stop():
            status.stop()
            if self._status is status:
                self._status = None

        return idempotent_stop(_stop)

    async def _send_media(self, chat_id: str, path: str, meta: MediaMeta) -> Optional[str]:
        filename = meta.filename or os.path.basename(path)
        try:
            size = _format_size(os.path.getsize(path))
        except OSError:
            size = "?"
        self.console.print(f"📎 [bold]{filename}[/bold] ({size}) [dim]{path}[/dim]")
        return str(next(self._ids))

    def _stop_status(self):
        """Safely stop a leftover spinner."""
        status, self._status = self._status, None
        if status is not None:
            try:
                status.stop()
            except Exception as e:
                logger.debug(f"Spinner stop failed: {e}")

    def _display(self, content: str):
        """Display a chunk, rendering markdown when it looks like markdown."""
        if self.markdown and ("```" in content or "**" in content or "# " in content):
            self.console.print(Markdown(content))
        else:
            self.console.print(content)


def _format_size(size_bytes: int) -> str:
    """Format file size in human-readable form."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
