"""Tests for backend selection and shared playback models."""

from unittest.mock import patch

import pytest

from sonicradio.core.config import PlayerConfig
from sonicradio.domain.playback import player as player_module
from sonicradio.domain.playback.errors import ExecutableNotFound
from sonicradio.domain.playback.ffplay_player import FFPlayPlayer
from sonicradio.domain.playback.models import EngineType, clamp_volume, format_time
from sonicradio.domain.playback.mpv_player import MpvPlayer
from sonicradio.domain.playback.player import Player, create_player, resolve_engine


def _which(available):
    return lambda name: f"/usr/bin/{name}" if name in available else None


class TestResolveEngine:
    def test_explicit_engine(self):
        assert resolve_engine(PlayerConfig(engine="ffplay")) is EngineType.FFPLAY
        assert resolve_engine(PlayerConfig(engine="mpv")) is EngineType.MPV

    def test_auto_prefers_mpv(self):
        with patch.object(player_module.shutil, "which", _which({"mpv", "ffplay"})):
            assert resolve_engine(PlayerConfig()) is EngineType.MPV

    def test_auto_falls_back_to_ffplay(self):
        with patch.object(player_module.shutil, "which", _which({"ffplay"})):
            assert resolve_engine(PlayerConfig()) is EngineType.FFPLAY

    def test_auto_uses_configured_paths(self):
        config = PlayerConfig(mpv_path="my-mpv")
        with patch.object(player_module.shutil, "which", _which({"my-mpv"})):
            assert resolve_engine(config) is EngineType.MPV

    def test_auto_with_nothing_installed(self):
        with patch.object(player_module.shutil, "which", _which(set())):
            with pytest.raises(ExecutableNotFound):
                resolve_engine(PlayerConfig())


class TestCreatePlayer:
    def test_ffplay_backend(self):
        player = create_player(PlayerConfig(engine="ffplay", volume=33, ffplay_path="/opt/ffplay"))
        assert isinstance(player, FFPlayPlayer)
        assert isinstance(player, Player)
        assert player.volume == 33
        assert player.executable == "/opt/ffplay"

    def test_mpv_backend(self, mpv_engine, tmp_path):
        config = PlayerConfig(engine="mpv", volume=70, mpv_socket_path=str(tmp_path / "s.sock"))
        player = create_player(config)
        try:
            assert isinstance(player, MpvPlayer)
            assert isinstance(player, Player)
            assert "--volume=70" in mpv_engine.process.args
        finally:
            player.close()


class TestModels:
    @pytest.mark.parametrize("value,expected", [(-1, 0), (0, 0), (50, 50), (100, 100), (1000, 100)])
    def test_clamp_volume(self, value, expected):
        assert clamp_volume(value) == expected

    @pytest.mark.parametrize(
        "seconds,expected",
        [(None, "00:00"), (-5, "00:00"), (0, "00:00"), (65, "01:05"), (3725, "1:02:05")],
    )
    def test_format_time(self, seconds, expected):
        assert format_time(seconds) == expected
