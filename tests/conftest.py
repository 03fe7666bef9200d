"""Pytest configuration and shared fixtures."""

import itertools
from typing import Optional

import pytest

from tinyclaw.channels.base import Channel, ChannelCapabilities
from tinyclaw.channels.coordinator import ChannelCoordinator
from tinyclaw.channels.manager import ChannelManager
from tinyclaw.media.store import MediaMeta, MediaStore


class RecordingChannel(Channel):
    """Channel double that records every call.

    Capabilities are switched on per test with the constructor flags.
    """

    def __init__(
        self,
        name: str = "fake",
        typing: bool = False,
        edit: bool = False,
        media: bool = False,
        fail_send_at: Optional[int] = None,
        fail_edit: bool = False,
    ):
        self.name = name
        self._typing = typing
        self._edit = edit
        self._media = media
        self._fail_send_at = fail_send_at
        self._fail_edit = fail_edit
        self._ids = itertools.count(100)
        self.sent: list[tuple[str, str]] = []
        self.edits: list[tuple[str, str, str]] = []
        self.media_sent: list[tuple[str, str, MediaMeta]] = []
        self.typing_started: list[str] = []
        self.typing_stops = 0

    async def send_message(self, chat_id: str, content: str) -> Optional[str]:
        if self._fail_send_at is not None and len(self.sent) == self._fail_send_at:
            self._fail_send_at = None
            raise ConnectionError("platform unavailable")
        self.sent.append((chat_id, content))
        return str(next(self._ids))

    def capabilities(self) -> ChannelCapabilities:
        return ChannelCapabilities(
            start_typing=self._start_typing if self._typing else None,
            edit_message=self._edit_message if self._edit else None,
            send_media=self._send_media if self._media else None,
        )

    async def _start_typing(self, chat_id: str):
        self.typing_started.append(chat_id)

        def _stop():
            self.typing_stops += 1

        return _stop

    async def _edit_message(self, chat_id: str, message_id: str, content: str):
        if self._fail_edit:
            raise RuntimeError("message to edit not found")
        self.edits.append((chat_id, message_id, content))

    async def _send_media(self, chat_id: str, path: str, meta: MediaMeta):
        self.media_sent.append((chat_id, path, meta))
        return str(next(self._ids))


@pytest.fixture
def media_store():
    return MediaStore()


@pytest.fixture
def coordinator():
    return ChannelCoordinator()


@pytest.fixture
def manager(coordinator, media_store):
    return ChannelManager(coordinator, media_store, max_lengths={"fake": 100})


@pytest.fixture
def make_file(tmp_path):
    """Create a small file under tmp_path and return its path."""
    counter = itertools.count()

    def _make(name: Optional[str] = None, content: bytes = b"test content") -> str:
        path = tmp_path / (name or f"file{next(counter)}.bin")
        path.write_bytes(content)
        return str(path)

    return _make
