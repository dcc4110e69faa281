"""Tests for configuration loading."""

import pytest
import yaml

from logstream.config import DEFAULT_SOURCES, Config, ConfigError, load_config, load_yaml_config
from main import build_cli_parser

_ENV_VARS = [
    "LOGSTREAM_HOST", "HTTP_PORT", "WS_PORT", "POLL_INTERVAL", "SNAPSHOT_LIMIT",
    "OVERVIEW_LIMIT", "SEND_TIMEOUT", "SUBSCRIBER_QUEUE_SIZE", "USE_FS_EVENTS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_yaml(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    return str(path)


class TestDefaults:
    def test_defaults(self):
        config = load_config()
        assert config.http_port == 5500
        assert config.ws_port == 5501
        assert config.poll_interval == 1.0
        assert config.snapshot_limit == 1000
        assert config.overview_limit == 100
        assert config.use_fs_events is False
        assert config.sources == DEFAULT_SOURCES

    def test_default_sources_not_shared(self):
        assert Config().sources is not DEFAULT_SOURCES


class TestYaml:
    def test_missing_file_returns_empty(self, tmp_path):
        assert load_yaml_config(str(tmp_path / "nope.yaml")) == {}

    def test_no_path(self):
        assert load_yaml_config(None) == {}

    def test_sources_and_settings(self, tmp_path):
        path = _write_yaml(tmp_path, {
            "poll_interval": 0.5,
            "use_fs_events": True,
            "sources": {"app": "/tmp/app.log", "db": "/tmp/db.log"},
        })
        config = load_config(None, load_yaml_config(path))
        assert config.poll_interval == 0.5
        assert config.use_fs_events is True
        assert list(config.sources) == ["app", "db"]

    def test_empty_sources_rejected(self):
        with pytest.raises(ConfigError):
            load_config(None, {"sources": {}})

    def test_source_without_path_rejected(self):
        with pytest.raises(ConfigError):
            load_config(None, {"sources": {"app": None}})

    def test_non_mapping_document_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_yaml_config(str(path))


class TestPrecedence:
    def test_env_overrides_yaml(self, monkeypatch):
        monkeypatch.setenv("HTTP_PORT", "8080")
        config = load_config(None, {"http_port": 9090})
        assert config.http_port == 8080

    def test_cli_overrides_env(self, monkeypatch):
        monkeypatch.setenv("WS_PORT", "7000")
        args = build_cli_parser().parse_args(["--ws-port", "7001"])
        assert load_config(args, {}).ws_port == 7001

    def test_unset_cli_options_fall_through(self, monkeypatch):
        monkeypatch.setenv("POLL_INTERVAL", "2.5")
        args = build_cli_parser().parse_args([])
        config = load_config(args, {})
        assert config.poll_interval == 2.5
        assert config.use_fs_events is False

    def test_bool_env(self, monkeypatch):
        monkeypatch.setenv("USE_FS_EVENTS", "yes")
        assert load_config().use_fs_events is True

    def test_invalid_number_raises_config_error(self, monkeypatch):
        monkeypatch.setenv("HTTP_PORT", "not-a-port")
        with pytest.raises(ConfigError):
            load_config()
