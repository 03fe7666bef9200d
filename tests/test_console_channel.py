"""Tests for the console channel."""

import io

import pytest
from rich.console import Console

from tinyclaw.channels.console import ConsoleChannel, _format_size
from tinyclaw.media.store import MediaMeta


def _channel(markdown: bool = False) -> tuple[ConsoleChannel, io.StringIO]:
    out = io.StringIO()
    console = Console(file=out, force_terminal=False, width=120)
    return ConsoleChannel(console=console, markdown=markdown), out


class TestConsoleChannel:

    @pytest.mark.asyncio
    async def test_send_prints_and_returns_ids(self):
        ch, out = _channel()
        first = await ch.send_message("local", "hello there")
        second = await ch.send_message("local", "again")
        assert "hello there" in out.getvalue()
        assert first == "1"
        assert second == "2"

    def test_capabilities(self):
        ch, _ = _channel()
        caps = ch.capabilities()
        assert caps.can_type
        assert caps.can_send_media
        assert not caps.can_edit

    @pytest.mark.asyncio
    async def test_typing_stop_is_idempotent(self):
        ch, _ = _channel()
        stop = await ch.capabilities().start_typing("local")
        assert ch._status is not None
        stop()
        stop()
        assert ch._status is None

    @pytest.mark.asyncio
    async def test_new_typing_replaces_spinner(self):
        ch, _ = _channel()
        stop_a = await ch.capabilities().start_typing("local")
        stop_b = await ch.capabilities().start_typing("local")
        stop_a()
        assert ch._status is not None
        stop_b()
        assert ch._status is None

    @pytest.mark.asyncio
    async def test_send_media_lists_file(self, make_file):
        ch, out = _channel()
        path = make_file("chart.png", b"x" * 2048)
        await ch.capabilities().send_media("local", path, MediaMeta(filename="chart.png"))
        printed = out.getvalue()
        assert "chart.png" in printed
        assert "2.0 KB" in printed

    @pytest.mark.asyncio
    async def test_markdown_rendering(self):
        ch, out = _channel(markdown=True)
        await ch.send_message("local", "**bold** text")
        assert "bold" in out.getvalue()
        assert "**" not in out.getvalue()

    def test_repr(self):
        ch, _ = _channel()
        assert repr(ch) == "<ConsoleChannel console [typing,media]>"


class TestFormatSize:
    def test_bytes(self):
        assert _format_size(10) == "10 B"

    def test_kilobytes(self):
        assert _format_size(1536) == "1.5 KB"

    def test_megabytes(self):
        assert _format_size(5 * 1024 * 1024) == "5.0 MB"
