"""Per-conversation typing and placeholder state shared by inbound and outbound.

Inbound handling starts a typing indicator and maybe sends a placeholder
("Thinking..."), then records the stop action and the placeholder id here.
Outbound delivery, possibly on another worker, takes them back out to stop
typing and edit the placeholder into the final answer.

State is keyed by (channel, chat_id). Keys are spread over a fixed set of
lock stripes so unrelated conversations do not queue behind one lock.
"""

import logging
import threading
from typing import Optional

from .base import StopTyping

logger = logging.getLogger("tinyclaw.coordinator")

_DEFAULT_STRIPES = 32

Key = tuple[str, str]


class _Stripe:
    __slots__ = ("lock", "typing", "placeholders")

    def __init__(self):
        self.lock = threading.Lock()
        self.typing: dict[Key, StopTyping] = {}
        self.placeholders: dict[Key, str] = {}


class ChannelCoordinator:
    """Tracks typing-stop actions and placeholder ids per conversation.

    The coordinator stores whatever a channel reports; it never checks
    what a channel can do.

    Recording is last-writer-wins. Recording a new typing stop over an
    outstanding one does NOT call the old one: a caller that restarts
    typing while an indicator is active must stop the previous indicator
    itself.
    """

    def __init__(self, stripes: int = _DEFAULT_STRIPES):
        if stripes < 1:
            raise ValueError("stripes must be >= 1")
        self._stripes = [_Stripe() for _ in range(stripes)]

    def _stripe(self, key: Key) -> _Stripe:
        return self._stripes[hash(key) % len(self._stripes)]

    # ── Inbound side ──

    def record_placeholder(self, channel: str, chat_id: str, message_id: str) -> None:
        """Remember the placeholder message sent for a conversation."""
        key = (channel, chat_id)
        stripe = self._stripe(key)
        with stripe.lock:
            stripe.placeholders[key] = message_id

    def record_typing_stop(self, channel: str, chat_id: str, stop: StopTyping) -> None:
        """Remember how to stop the typing indicator of a conversation."""
        key = (channel, chat_id)
        stripe = self._stripe(key)
        with stripe.lock:
            replaced = key in stripe.typing
            stripe.typing[key] = stop
        if replaced:
            logger.debug(f"Typing stop for {channel}:{chat_id} replaced without stopping the old one")

    # ── Outbound side ──

    def take_typing_stop(self, channel: str, chat_id: str) -> Optional[StopTyping]:
        """Remove and return the typing stop action, if any."""
        key = (channel, chat_id)
        stripe = self._stripe(key)
        with stripe.lock:
            return stripe.typing.pop(key, None)

    def take_placeholder(self, channel: str, chat_id: str) -> Optional[str]:
        """Remove and return the placeholder message id, if any."""
        key = (channel, chat_id)
        stripe = self._stripe(key)
        with stripe.lock:
            return stripe.placeholders.pop(key, None)

    def stop_typing(self, channel: str, chat_id: str) -> bool:
        """Take the typing stop action and call it once.

        Errors from the stop action are logged, not raised: typing is
        best-effort and must never block delivery.

        Returns:
            True if a stop action was recorded
        """
        stop = self.take_typing_stop(channel, chat_id)
        if stop is None:
            return False
        try:
            stop()
        except Exception as e:
            logger.warning(f"Stopping typing for {channel}:{chat_id} failed: {e}")
        return True

    def discard(self, channel: str, chat_id: str) -> None:
        """Forget all state of a conversation without invoking anything."""
        key = (channel, chat_id)
        stripe = self._stripe(key)
        with stripe.lock:
            stripe.typing.pop(key, None)
            stripe.placeholders.pop(key, None)

    # ── Peeking / diagnostics ──

    def get_placeholder(self, channel: str, chat_id: str) -> Optional[str]:
        key = (channel, chat_id)
        stripe = self._stripe(key)
        with stripe.lock:
            return stripe.placeholders.get(key)

    def has_typing(self, channel: str, chat_id: str) -> bool:
        key = (channel, chat_id)
        stripe = self._stripe(key)
        with stripe.lock:
            return key in stripe.typing

    def active_keys(self) -> list[Key]:
        """All conversations with outstanding state (sorted)."""
        keys: set[Key] = set()
        for stripe in self._stripes:
            with stripe.lock:
                keys.update(stripe.typing)
                keys.update(stripe.placeholders)
        return sorted(keys)
