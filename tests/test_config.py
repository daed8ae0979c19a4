"""Tests for biddingcrease.config — local config file management."""

import textwrap
from pathlib import Path

import pytest

from biddingcrease.config import (
    DEFAULT_API_URL,
    DEFAULT_SOCKET_URL,
    BiddingCreaseConfig,
    clear_token,
    load_config,
    save_token,
)


@pytest.fixture
def config_dir(tmp_path):
    """Temporary directory for config files."""
    return tmp_path


def _write_config(config_dir: Path, content: str) -> Path:
    """Write a config.toml and return the path."""
    config_path = config_dir / "config.toml"
    config_path.write_text(textwrap.dedent(content))
    return config_path


def _load(config_dir: Path, path: Path | None = None, env: dict | None = None):
    """load_config isolated from the real home dir and environment."""
    return load_config(
        path or config_dir / "config.toml",
        token_path=config_dir / "token",
        env=env or {},
    )


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, config_dir):
        cfg = _load(config_dir, config_dir / "nonexistent.toml")
        assert isinstance(cfg, BiddingCreaseConfig)
        assert cfg.api.url == DEFAULT_API_URL
        assert cfg.socket.url == DEFAULT_SOCKET_URL
        assert cfg.socket.reconnection_attempts == 5
        assert cfg.socket.reconnection_delay == 1.0
        assert cfg.token is None

    def test_full_config(self, config_dir):
        path = _write_config(config_dir, """\
            [api]
            url = "https://auction.example.com/api"
            timeout = 3

            [socket]
            url = "https://auction.example.com"
            reconnection_attempts = 8
            reconnection_delay = 2
            reconnection_delay_max = 30

            [auth]
            token = "abc123"
        """)
        cfg = _load(config_dir, path)

        assert cfg.api.url == "https://auction.example.com/api"
        assert cfg.api.timeout == 3.0
        assert cfg.socket.url == "https://auction.example.com"
        assert cfg.socket.reconnection_attempts == 8
        assert cfg.socket.reconnection_delay == 2.0
        assert cfg.socket.reconnection_delay_max == 30.0
        assert cfg.token == "abc123"

    def test_partial_config_keeps_defaults(self, config_dir):
        path = _write_config(config_dir, """\
            [socket]
            url = "http://10.0.0.5:5000"
        """)
        cfg = _load(config_dir, path)
        assert cfg.socket.url == "http://10.0.0.5:5000"
        assert cfg.socket.reconnection_attempts == 5
        assert cfg.api.url == DEFAULT_API_URL

    def test_corrupt_toml_returns_defaults(self, config_dir):
        path = config_dir / "config.toml"
        path.write_text("this is not [valid toml }{")
        cfg = _load(config_dir, path)
        assert cfg.api.url == DEFAULT_API_URL
        assert cfg.token is None

    def test_empty_file(self, config_dir):
        path = config_dir / "config.toml"
        path.write_text("")
        cfg = _load(config_dir, path)
        assert cfg.api.url == DEFAULT_API_URL

    def test_non_table_section_ignored(self, config_dir):
        path = _write_config(config_dir, """\
            api = "http://wrong-shape"
        """)
        cfg = _load(config_dir, path)
        assert cfg.api.url == DEFAULT_API_URL


# ============================================================================
# Precedence
# ============================================================================


class TestPrecedence:
    def test_env_overrides_file(self, config_dir):
        path = _write_config(config_dir, """\
            [api]
            url = "http://from-file/api"

            [socket]
            url = "http://from-file"
        """)
        cfg = _load(config_dir, path, env={
            "BIDDINGCREASE_API_URL": "http://from-env/api",
            "BIDDINGCREASE_SOCKET_URL": "http://from-env",
        })
        assert cfg.api.url == "http://from-env/api"
        assert cfg.socket.url == "http://from-env"

    def test_token_file_beats_auth_section(self, config_dir):
        path = _write_config(config_dir, """\
            [auth]
            token = "from-config"
        """)
        (config_dir / "token").write_text("from-file\n")
        cfg = _load(config_dir, path)
        assert cfg.token == "from-file"

    def test_env_token_beats_everything(self, config_dir):
        (config_dir / "token").write_text("from-file\n")
        cfg = _load(config_dir, env={"BIDDINGCREASE_TOKEN": "from-env"})
        assert cfg.token == "from-env"

    def test_blank_env_is_ignored(self, config_dir):
        cfg = _load(config_dir, env={"BIDDINGCREASE_API_URL": ""})
        assert cfg.api.url == DEFAULT_API_URL


# ============================================================================
# Token persistence
# ============================================================================


class TestTokenFile:
    def test_save_then_load(self, config_dir):
        token_path = config_dir / "sub" / "token"
        save_token("tok-1", token_path)
        assert token_path.read_text().strip() == "tok-1"
        cfg = load_config(config_dir / "none.toml", token_path=token_path, env={})
        assert cfg.token == "tok-1"

    def test_clear_removes_file(self, config_dir):
        token_path = config_dir / "token"
        save_token("tok-1", token_path)
        assert clear_token(token_path) is True
        assert not token_path.exists()

    def test_clear_missing_is_false(self, config_dir):
        assert clear_token(config_dir / "token") is False

    def test_empty_token_file_is_none(self, config_dir):
        (config_dir / "token").write_text("\n")
        cfg = _load(config_dir)
        assert cfg.token is None
