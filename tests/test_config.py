"""Tests for ClientConfig, TOML loading and overrides."""

import pytest

from unmatched_line import config as config_module
from unmatched_line.config import ClientConfig, load_config, merge_cli_overrides

ENV_VARS = (
    "UNMATCHED_LINE_URL",
    "UNMATCHED_LINE_SESSION",
    "UNMATCHED_LINE_TIMEOUT",
    "UNMATCHED_LINE_CACHE_TTL",
)


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    """Keep the real home directory and environment out of every test."""
    for key in ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [tmp_path])
    monkeypatch.setattr(config_module, "GLOBAL_CONFIG_PATH", tmp_path / "global.toml")


class TestDefaults:
    def test_service(self):
        cfg = ClientConfig()
        assert cfg.service.base_url == "http://localhost:3000"
        assert cfg.service.session_cookie == ""
        assert cfg.service.timeout is None
        assert cfg.service.is_authenticated is False

    def test_cache(self):
        cfg = ClientConfig()
        assert cfg.cache.ttl_seconds == 600
        assert cfg.cache.max_size is None

    def test_pagination(self):
        cfg = ClientConfig()
        assert cfg.pagination.feed_limit == 20
        assert cfg.pagination.category_limit == 10
        assert cfg.pagination.poem_list_limit == 10
        assert cfg.pagination.article_feed_limit == 10
        assert cfg.pagination.poet_limit == 20
        assert cfg.pagination.search_limit == 10


class TestLoadConfig:
    def test_no_file_gives_defaults(self):
        assert load_config() == ClientConfig()

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('[service]\nbase_url = "https://poetry.example"\n\n[cache]\nttl_seconds = 60\n')
        cfg = load_config(path)
        assert cfg.service.base_url == "https://poetry.example"
        assert cfg.cache.ttl_seconds == 60

    def test_cwd_file_found(self, tmp_path):
        (tmp_path / ".unmatched-line.toml").write_text("[pagination]\nfeed_limit = 5\n")
        assert load_config().pagination.feed_limit == 5

    def test_global_file_used_when_no_local(self, tmp_path):
        (tmp_path / "global.toml").write_text('[service]\nsession_cookie = "sid=1"\n')
        cfg = load_config()
        assert cfg.service.session_cookie == "sid=1"
        assert cfg.service.is_authenticated is True

    def test_missing_explicit_path_falls_back(self, tmp_path):
        assert load_config(tmp_path / "missing.toml") == ClientConfig()

    def test_broken_toml_falls_back(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[service\nbase_url =")
        assert load_config(path) == ClientConfig()


class TestEnvOverlay:
    def test_env_beats_toml(self, tmp_path, monkeypatch):
        path = tmp_path / "c.toml"
        path.write_text('[service]\nbase_url = "https://from-file"\n')
        monkeypatch.setenv("UNMATCHED_LINE_URL", "https://from-env")
        assert load_config(path).service.base_url == "https://from-env"

    def test_numeric_env_vars(self, monkeypatch):
        monkeypatch.setenv("UNMATCHED_LINE_TIMEOUT", "2.5")
        monkeypatch.setenv("UNMATCHED_LINE_CACHE_TTL", "30")
        cfg = load_config()
        assert cfg.service.timeout == 2.5
        assert cfg.cache.ttl_seconds == 30

    def test_non_numeric_env_vars_keep_defaults(self, monkeypatch, caplog):
        monkeypatch.setenv("UNMATCHED_LINE_TIMEOUT", "soon")
        monkeypatch.setenv("UNMATCHED_LINE_CACHE_TTL", "ten minutes")
        cfg = load_config()
        assert cfg.service.timeout is None
        assert cfg.cache.ttl_seconds == 600
        assert "UNMATCHED_LINE_TIMEOUT" in caplog.text

    def test_session_env(self, monkeypatch):
        monkeypatch.setenv("UNMATCHED_LINE_SESSION", "token=abc")
        assert load_config().service.session_cookie == "token=abc"


class TestMergeCliOverrides:
    def test_none_values_ignored(self):
        cfg = merge_cli_overrides(ClientConfig(), base_url=None, limit=None)
        assert cfg == ClientConfig()

    def test_overrides_applied(self):
        cfg = merge_cli_overrides(ClientConfig(), base_url="https://cli", cache_ttl=5, limit=7)
        assert cfg.service.base_url == "https://cli"
        assert cfg.cache.ttl_seconds == 5
        assert cfg.pagination.feed_limit == 7

    def test_unknown_keys_ignored(self):
        assert merge_cli_overrides(ClientConfig(), colour="blue") == ClientConfig()
