"""Tests for TOML configuration handling."""

from __future__ import annotations

import pytest

from rlcomplete.core import config as cfg
from rlcomplete.core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def config_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("RLCOMPLETE_CONFIG_DIR", str(tmp_path / "conf"))
    return tmp_path / "conf"


class TestLoadSave:
    def test_defaults_when_missing(self, config_dir):
        loaded = cfg.load_config()
        assert loaded["engine"]["expected"] == "bash"
        assert loaded["engine"]["trigger_byte"] == 0x1E
        assert loaded["session"]["read_timeout"] == 0.0
        assert config_dir.is_dir()

    def test_defaults_not_shared(self):
        first = cfg.load_config()
        first["engine"]["args"].append("--norc")
        assert cfg.load_config()["engine"]["args"] == ["-i"]

    def test_update_merges_and_persists(self):
        cfg.update_config(session={"idle_timeout": 30.0})
        loaded = cfg.load_config()
        assert loaded["session"]["idle_timeout"] == 30.0
        assert loaded["session"]["sweep_interval"] == 60.0

    def test_broken_file(self, config_dir):
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "rlcomplete.toml").write_text("[engine\nshell = ")
        with pytest.raises(ConfigError, match="Failed to load"):
            cfg.load_config()


class TestHelpers:
    def test_resolve_shell_prefers_config(self, monkeypatch):
        monkeypatch.setenv("SHELL", "/bin/zsh")
        assert cfg.resolve_shell({"engine": {"shell": "/opt/bash"}}) == "/opt/bash"
        assert cfg.resolve_shell({"engine": {"shell": ""}}) == "/bin/zsh"
        monkeypatch.delenv("SHELL")
        assert cfg.resolve_shell({"engine": {}}) == "bash"

    def test_read_timeout(self):
        assert cfg.read_timeout({"session": {"read_timeout": 0}}) is None
        assert cfg.read_timeout({"session": {"read_timeout": 2.5}}) == 2.5

    @pytest.mark.parametrize(
        "raw, expected",
        [("true", True), ("False", False), ("12", 12), ("1.5", 1.5), ("bash", "bash")],
    )
    def test_coerce_value(self, raw, expected):
        assert cfg.coerce_value(raw) == expected
