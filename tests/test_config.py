"""Tests for Config resolution: env > YAML > defaults."""

import pytest

from thinker.config import Config
from thinker.errors import InvalidInputError


class TestDefaults:
    def test_defaults(self, isolated_env):
        cfg = Config.load()
        assert cfg.TARGET == ""
        assert cfg.BACKUP_SUFFIX == ".backup"
        assert cfg.GRAMMARS == ("javascript", "typescript")
        assert cfg.CONTENT_WINDOW == 500
        assert cfg.LOG_DIR == ""


class TestYaml:
    def test_cwd_file(self, isolated_env):
        (isolated_env / ".thinker.yaml").write_text(
            "target: /opt/cli.js\ncontent_window: 800\ngrammars: [javascript]\ncolor: pink\n",
            encoding="utf-8",
        )
        cfg = Config.load()
        assert cfg.TARGET == "/opt/cli.js"
        assert cfg.CONTENT_WINDOW == 800
        assert cfg.GRAMMARS == ("javascript",)
        assert cfg.COLOR == "pink"

    def test_home_file(self, isolated_env):
        (isolated_env / "home" / ".thinker.yml").write_text("theme: ocean\n", encoding="utf-8")
        assert Config.load().THEME == "ocean"

    def test_explicit_path(self, isolated_env):
        path = isolated_env / "custom.yaml"
        path.write_text("backup_suffix: .orig\n", encoding="utf-8")
        assert Config.load(str(path)).BACKUP_SUFFIX == ".orig"

    def test_explicit_missing(self, isolated_env):
        with pytest.raises(InvalidInputError):
            Config.load(str(isolated_env / "nope.yaml"))

    def test_broken_yaml_ignored(self, isolated_env):
        (isolated_env / ".thinker.yaml").write_text("target: [unclosed\n", encoding="utf-8")
        assert Config.load().TARGET == ""


class TestEnv:
    def test_env_beats_yaml(self, isolated_env, monkeypatch):
        (isolated_env / ".thinker.yaml").write_text("content_window: 800\n", encoding="utf-8")
        monkeypatch.setenv("THINKER_CONTENT_WINDOW", "900")
        monkeypatch.setenv("THINKER_GRAMMARS", "typescript, javascript")
        cfg = Config.load()
        assert cfg.CONTENT_WINDOW == 900
        assert cfg.GRAMMARS == ("typescript", "javascript")

    def test_bad_number(self, isolated_env, monkeypatch):
        monkeypatch.setenv("THINKER_CONTENT_WINDOW", "lots")
        with pytest.raises(InvalidInputError, match="content_window"):
            Config.load()

    def test_non_positive_window(self, isolated_env, monkeypatch):
        monkeypatch.setenv("THINKER_CONTENT_WINDOW", "0")
        with pytest.raises(InvalidInputError):
            Config.load()
