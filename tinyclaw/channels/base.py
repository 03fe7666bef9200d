"""Base Channel class and capability descriptor.

Every channel can send a text message. Anything beyond that is optional
and advertised through ``ChannelCapabilities``: a slot is filled with a
callable when the channel supports it and left as ``None`` otherwise.
The gateway checks slots by presence, never by channel type.

## Capabilities

- ``start_typing(chat_id) -> stop``: begin a typing/thinking indicator.
  The returned ``stop`` MUST be idempotent and safe to call any number of
  times, including zero (platform indicators expire on their own).
- ``edit_message(chat_id, message_id, content)``: replace the text of a
  previously sent message. Message ids are always strings; channels
  convert platform-specific ids internally.
- ``send_media(chat_id, path, meta)``: deliver a local file as an
  attachment; returns the platform message id if there is one.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ..media.store import MediaMeta

logger = logging.getLogger("tinyclaw.channels")

StopTyping = Callable[[], None]
StartTyping = Callable[[str], Awaitable[StopTyping]]
EditMessage = Callable[[str, str, str], Awaitable[None]]
SendMedia = Callable[[str, str, MediaMeta], Awaitable[Optional[str]]]


@dataclass(frozen=True)
class ChannelCapabilities:
    """Optional features of one channel instance."""
    start_typing: Optional[StartTyping] = None
    edit_message: Optional[EditMessage] = None
    send_media: Optional[SendMedia] = None

    @property
    def can_type(self) -> bool:
        return self.start_typing is not None

    @property
    def can_edit(self) -> bool:
        return self.edit_message is not None

    @property
    def can_send_media(self) -> bool:
        return self.send_media is not None

    def describe(self) -> list[str]:
        """Names of the supported capabilities, for status output."""
        names = []
        if self.can_type:
            names.append("typing")
        if self.can_edit:
            names.append("edit")
        if self.can_send_media:
            names.append("media")
        return names


def idempotent_stop(stop: Callable[[], None]) -> StopTyping:
    """Wrap a stop action so only the first call has an effect.

    Channels use this to honor the ``start_typing`` contract when the
    underlying platform call is not itself idempotent.
    """
    lock = threading.Lock()
    done = False

    def _stop() -> None:
        nonlocal done
        with lock:
            if done:
                return
            done = True
        stop()

    return _stop


class Channel(ABC):
    """Base class for all delivery channels.

    Subclasses set ``name`` and implement ``send_message``. Optional
    features are exposed by overriding ``capabilities()``.
    """

    name: str

    @abstractmethod
    async def send_message(self, chat_id: str, content: str) -> Optional[str]:
        """Send one chunk of text to a conversation.

        Args:
            chat_id: Platform conversation id (as a string)
            content: Text that already fits the channel's length limit

        Returns:
            The platform message id, if the platform assigns one
        """

    def capabilities(self) -> ChannelCapabilities:
        """Optional features of this channel. Default: plain text only."""
        return ChannelCapabilities()

    def __repr__(self) -> str:
        caps = ",".join(self.capabilities().describe()) or "text"
        return f"<{type(self).__name__} {self.name} [{caps}]>"
