"""Tests for settings and gateway wiring."""

import os

from tinyclaw.channels.console import ConsoleChannel
from tinyclaw.config import TinyclawSettings, load_settings
from tinyclaw.main import build_gateway


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TINYCLAW_PORT", raising=False)
        settings = TinyclawSettings(_env_file=None)
        assert settings.port == 8200
        assert settings.default_max_length == 4000
        assert settings.channel_max_lengths == {}
        assert settings.placeholder_text is None
        assert settings.done_text == "Done."

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TINYCLAW_PORT", "9001")
        monkeypatch.setenv("TINYCLAW_CHANNEL_MAX_LENGTHS", '{"telegram": 1000}')
        monkeypatch.setenv("TINYCLAW_PLACEHOLDER_TEXT", "Thinking...")
        settings = load_settings()
        assert settings.port == 9001
        assert settings.channel_max_lengths == {"telegram": 1000}
        assert settings.placeholder_text == "Thinking..."


class TestBuildGateway:

    def test_wires_components(self, tmp_path):
        settings = TinyclawSettings(
            _env_file=None,
            media_dir=str(tmp_path / "media"),
            channel_max_lengths={"console": 500},
        )
        gateway = build_gateway(settings)

        assert isinstance(gateway.channels.get("console"), ConsoleChannel)
        assert gateway.channels.coordinator is gateway.coordinator
        assert gateway.channels.media_store is gateway.media_store
        assert gateway.channels.max_length("console") == 500

    def test_done_text_passed_to_manager(self):
        settings = TinyclawSettings(_env_file=None, done_text="All set")
        gateway = build_gateway(settings, console=False)
        assert gateway.channels._done_text == "All set"

    def test_without_console(self, tmp_path):
        gateway = build_gateway(TinyclawSettings(_env_file=None), console=False)
        assert gateway.channels.names() == []

    def test_media_path(self, tmp_path):
        settings = TinyclawSettings(_env_file=None, media_dir=str(tmp_path / "media"))
        gateway = build_gateway(settings, console=False)

        path = gateway.media_path("../../etc/photo.jpg")

        assert os.path.dirname(path) == str(tmp_path / "media")
        assert path.endswith("_photo.jpg")
        assert os.path.isdir(tmp_path / "media")
