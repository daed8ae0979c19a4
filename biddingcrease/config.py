"""
biddingcrease/config.py - Local configuration management

Reads user config from a platform-appropriate config directory:
  - macOS/Linux: ~/.biddingcrease/config.toml
  - Windows: %APPDATA%\\biddingcrease\\config.toml

The admin token lives next to it in a separate ``token`` file so that
``biddingcrease login`` never has to rewrite a hand-edited config.toml.

Example:
    [api]
    url = "https://auction.example.com/api"
    timeout = 10

    [socket]
    url = "https://auction.example.com"
    reconnection_attempts = 5
    reconnection_delay = 1
    reconnection_delay_max = 5

    [auth]
    token = "eyJhbGciOi..."  # Usually left out; `biddingcrease login` writes the token file

Environment overrides (highest priority):
    BIDDINGCREASE_API_URL, BIDDINGCREASE_SOCKET_URL, BIDDINGCREASE_TOKEN
"""

import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================


def _get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "biddingcrease"
    return Path.home() / ".biddingcrease"


CONFIG_DIR = _get_config_dir()
CONFIG_PATH = CONFIG_DIR / "config.toml"
TOKEN_PATH = CONFIG_DIR / "token"

# Same defaults the web front-end falls back to without NEXT_PUBLIC_* vars.
DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_SOCKET_URL = "http://localhost:5000"

ENV_API_URL = "BIDDINGCREASE_API_URL"
ENV_SOCKET_URL = "BIDDINGCREASE_SOCKET_URL"
ENV_TOKEN = "BIDDINGCREASE_TOKEN"


# ============================================================================
# Data Types
# ============================================================================


@dataclass
class APIConfig:
    """REST endpoint settings."""

    url: str = DEFAULT_API_URL
    timeout: float = 10.0


@dataclass
class SocketConfig:
    """Socket.IO connection settings. Delays are in seconds."""

    url: str = DEFAULT_SOCKET_URL
    reconnection_attempts: int = 5
    reconnection_delay: float = 1.0
    reconnection_delay_max: float = 5.0


@dataclass
class BiddingCreaseConfig:
    """Top-level configuration."""

    api: APIConfig = field(default_factory=APIConfig)
    socket: SocketConfig = field(default_factory=SocketConfig)
    token: str | None = None


# ============================================================================
# Parsing
# ============================================================================


def _parse_api(data: dict) -> APIConfig:
    _defaults = APIConfig()
    return APIConfig(
        url=data.get("url", _defaults.url),
        timeout=float(data.get("timeout", _defaults.timeout)),
    )


def _parse_socket(data: dict) -> SocketConfig:
    _defaults = SocketConfig()
    return SocketConfig(
        url=data.get("url", _defaults.url),
        reconnection_attempts=int(
            data.get("reconnection_attempts", _defaults.reconnection_attempts)
        ),
        reconnection_delay=float(
            data.get("reconnection_delay", _defaults.reconnection_delay)
        ),
        reconnection_delay_max=float(
            data.get("reconnection_delay_max", _defaults.reconnection_delay_max)
        ),
    )


def _read_token_file(path: Path) -> str | None:
    if not path.exists():
        return None
    token = path.read_text().strip()
    return token or None


def load_config(
    path: Path | None = None,
    token_path: Path | None = None,
    env: dict[str, str] | None = None,
) -> BiddingCreaseConfig:
    """
    Read config from TOML file, then the token file, then the environment.

    Args:
        path: Override config file path (default: ~/.biddingcrease/config.toml)
        token_path: Override token file path (default: ~/.biddingcrease/token)
        env: Environment mapping (default: os.environ)

    Returns:
        BiddingCreaseConfig. Missing file or bad TOML falls back to defaults.
    """
    config_path = path or CONFIG_PATH
    env = os.environ if env is None else env

    raw: dict = {}
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                raw = tomllib.load(f)
        except Exception as e:
            logger.warning(f"Failed to parse {config_path}: {e}")
            raw = {}

    api_data = raw.get("api", {})
    api = _parse_api(api_data) if isinstance(api_data, dict) else APIConfig()

    socket_data = raw.get("socket", {})
    socket = _parse_socket(socket_data) if isinstance(socket_data, dict) else SocketConfig()

    # Token precedence: env > token file > [auth] token
    token = None
    auth_data = raw.get("auth", {})
    if isinstance(auth_data, dict):
        token = auth_data.get("token") or None
    token = _read_token_file(token_path or TOKEN_PATH) or token

    if env.get(ENV_API_URL):
        api.url = env[ENV_API_URL]
    if env.get(ENV_SOCKET_URL):
        socket.url = env[ENV_SOCKET_URL]
    if env.get(ENV_TOKEN):
        token = env[ENV_TOKEN]

    return BiddingCreaseConfig(api=api, socket=socket, token=token)


# ============================================================================
# Token persistence
# ============================================================================


def save_token(token: str, path: Path | None = None) -> Path:
    """Write the admin token, readable by the current user only."""
    token_path = path or TOKEN_PATH
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(token + "\n")
    try:
        token_path.chmod(0o600)
    except OSError as e:
        logger.debug(f"Could not restrict permissions on {token_path}: {e}")
    return token_path


def clear_token(path: Path | None = None) -> bool:
    """Remove a saved token. Returns True if one was removed."""
    token_path = path or TOKEN_PATH
    if not token_path.exists():
        return False
    token_path.unlink()
    logger.info("Saved token cleared")
    return True
