"""Channel manager: the delivery gateway between the agent loop and channels.

One turn, seen from here:

1. ``begin_turn``: on inbound, start the channel's typing indicator and
   (if configured and the channel can edit) send a placeholder message.
   Both are recorded with the coordinator.
2. The agent loop runs elsewhere and produces the final text, maybe
   registering media files with the media store under the turn's scope.
3. ``deliver``: split the text, stop typing, turn the placeholder into the
   first chunk (edit) or send it fresh, send the rest, send attachments,
   release the scope's files.

If the turn fails upstream, ``abort_turn`` stops typing and releases the
scope so no indicator gets stuck and no file leaks.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..communication.outbound import extract_media_refs
from ..communication.split import DEFAULT_MAX_LENGTH, channel_max_length, split_message
from ..errors import DeliveryError, UnknownChannelError, UnknownMediaRefError
from ..media.store import MediaStore, ReleaseResult
from .base import Channel
from .coordinator import ChannelCoordinator

logger = logging.getLogger("tinyclaw.manager")

# Placeholder text when a reply has no text of its own
DEFAULT_DONE_TEXT = "Done."


@dataclass
class DeliveryReport:
    """What ``deliver`` did for one turn."""
    channel: str
    chat_id: str
    chunks: int = 0
    edited: bool = False                # first chunk went into the placeholder
    message_ids: list[str] = field(default_factory=list)
    media_sent: int = 0
    media_failed: int = 0
    release: Optional[ReleaseResult] = None


class ChannelManager:
    """Owns the registered channels and runs outbound delivery."""

    def __init__(
        self,
        coordinator: ChannelCoordinator,
        media_store: MediaStore,
        max_lengths: Optional[dict[str, int]] = None,
        default_max_length: int = DEFAULT_MAX_LENGTH,
        placeholder_text: Optional[str] = None,
        done_text: str = DEFAULT_DONE_TEXT,
    ):
        self.coordinator = coordinator
        self.media_store = media_store
        self._max_lengths = dict(max_lengths or {})
        self._default_max_length = default_max_length
        self._placeholder_text = placeholder_text
        self._done_text = done_text
        self._channels: dict[str, Channel] = {}

    # ── Registry ──

    def register(self, channel: Channel) -> None:
        if channel.name in self._channels:
            logger.warning(f"Channel '{channel.name}' re-registered, replacing {self._channels[channel.name]!r}")
        self._channels[channel.name] = channel
        logger.info(f"Registered channel {channel!r}")

    def get(self, name: str) -> Channel:
        channel = self._channels.get(name)
        if channel is None:
            raise UnknownChannelError(name)
        return channel

    def names(self) -> list[str]:
        return sorted(self._channels)

    def max_length(self, name: str) -> int:
        return channel_max_length(name, self._max_lengths, self._default_max_length)

    def status(self) -> dict:
        """Registered channels and their capabilities, for /api/status."""
        return {
            name: {
                "capabilities": ch.capabilities().describe(),
                "max_length": self.max_length(name),
            }
            for name, ch in sorted(self._channels.items())
        }

    # ── Inbound ──

    async def begin_turn(
        self,
        channel: str,
        chat_id: str,
        placeholder_text: Optional[str] = None,
    ) -> bool:
        """Show feedback for a new inbound message.

        Typing and placeholder are best-effort: failures are logged and
        the turn proceeds without them.

        Returns:
            True if a typing indicator was started
        """
        ch = self.get(channel)
        caps = ch.capabilities()
        typing = False

        if caps.start_typing is not None:
            try:
                stop = await caps.start_typing(chat_id)
            except Exception as e:
                logger.warning(f"Could not start typing on {channel}:{chat_id}: {e}")
            else:
                self.coordinator.record_typing_stop(channel, chat_id, stop)
                typing = True

        text = placeholder_text or self._placeholder_text
        if text:
            if caps.edit_message is None:
                # A placeholder that can never be replaced would just linger
                logger.debug(f"Channel {channel} cannot edit, skipping placeholder")
            else:
                try:
                    message_id = await ch.send_message(chat_id, text)
                except Exception as e:
                    logger.warning(f"Could not send placeholder on {channel}:{chat_id}: {e}")
                else:
                    if message_id:
                        self.coordinator.record_placeholder(channel, chat_id, message_id)

        return typing

    # ── Outbound ──

    async def deliver(
        self,
        channel: str,
        chat_id: str,
        content: str,
        media: Iterable[str] = (),
        scope: Optional[str] = None,
    ) -> DeliveryReport:
        """Deliver a finished response to a conversation.

        Args:
            channel: Registered channel name
            chat_id: Conversation id
            content: Final response text (may contain "MEDIA: media://..." lines)
            media: Extra media refs to attach after the text
            scope: Media scope to release once delivery is over

        Returns:
            DeliveryReport

        Raises:
            UnknownChannelError: channel is not registered
            DeliveryError: a text chunk could not be sent (the scope is
                still released and typing still stopped)
        """
        ch = self.get(channel)
        caps = ch.capabilities()
        report = DeliveryReport(channel=channel, chat_id=chat_id)

        content, inline_refs = extract_media_refs(content)
        refs = list(dict.fromkeys([*media, *inline_refs]))
        chunks = split_message(content, self.max_length(channel))
        report.chunks = len(chunks)

        self.coordinator.stop_typing(channel, chat_id)
        placeholder_id = self.coordinator.take_placeholder(channel, chat_id)

        try:
            if not chunks and placeholder_id and caps.edit_message is not None:
                # Nothing to put in the placeholder, so close it with a short note
                note = self._attachment_note(refs) or self._done_text
                try:
                    await caps.edit_message(chat_id, placeholder_id, note)
                except Exception as e:
                    logger.warning(f"Closing placeholder {placeholder_id} on {channel}:{chat_id} failed: {e}")
                else:
                    report.edited = True
                    report.message_ids.append(placeholder_id)

            for i, chunk in enumerate(chunks):
                if i == 0 and placeholder_id and caps.edit_message is not None:
                    try:
                        await caps.edit_message(chat_id, placeholder_id, chunk)
                    except Exception as e:
                        logger.warning(
                            f"Editing placeholder {placeholder_id} on {channel}:{chat_id} failed, "
                            f"sending a new message instead: {e}"
                        )
                    else:
                        report.edited = True
                        report.message_ids.append(placeholder_id)
                        continue

                try:
                    message_id = await ch.send_message(chat_id, chunk)
                except Exception as e:
                    err = DeliveryError(channel, chat_id, i, e)
                    logger.error(f"{err} (user sees: {err.user_message})")
                    raise err from e
                if message_id:
                    report.message_ids.append(message_id)

            if placeholder_id and not report.edited:
                logger.debug(f"Placeholder {placeholder_id} on {channel}:{chat_id} left as sent")

            for ref in refs:
                if await self._send_media(ch, chat_id, ref):
                    report.media_sent += 1
                else:
                    report.media_failed += 1
        finally:
            if scope is not None:
                report.release = self.media_store.release_all(scope)

        logger.info(
            f"Delivered to {channel}:{chat_id}: {report.chunks} chunks"
            f"{' (placeholder edited)' if report.edited else ''}, "
            f"{report.media_sent} media"
        )
        return report

    def _attachment_note(self, refs: list[str]) -> str:
        """'📎 a.png, b.pdf' for the refs that still resolve, else ''."""
        names = []
        for ref in refs:
            try:
                path, meta = self.media_store.resolve_with_meta(ref)
            except UnknownMediaRefError:
                continue
            names.append(meta.filename or os.path.basename(path))
        return f"📎 {', '.join(names)}" if names else ""

    async def _send_media(self, ch: Channel, chat_id: str, ref: str) -> bool:
        """Send one attachment. Best effort: failures are logged, not raised."""
        send_media = ch.capabilities().send_media
        if send_media is None:
            logger.warning(f"Channel {ch.name} cannot send media, dropping {ref}")
            return False
        try:
            path, meta = self.media_store.resolve_with_meta(ref)
        except UnknownMediaRefError as e:
            logger.warning(f"Skipping attachment for {ch.name}:{chat_id}: {e}")
            return False
        try:
            await send_media(chat_id, path, meta)
        except Exception as e:
            logger.error(f"Failed to send {ref} ({meta.filename or path}) to {ch.name}:{chat_id}: {e}")
            return False
        return True

    async def abort_turn(
        self,
        channel: str,
        chat_id: str,
        scope: Optional[str] = None,
    ) -> Optional[ReleaseResult]:
        """Clean up after a turn that will never be delivered."""
        self.coordinator.stop_typing(channel, chat_id)
        self.coordinator.discard(channel, chat_id)
        if scope is None:
            return None
        return self.media_store.release_all(scope)
