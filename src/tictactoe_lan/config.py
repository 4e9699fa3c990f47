# Area: Shared
"""
tictactoe_lan.config - Constants and runtime configuration
==========================================================

Fixed protocol constants plus the small set of values a deployment may
override (addresses, ports, tick rate, logging). Values are read once at
startup from an optional JSON file, a `.env` file and the environment;
nothing here is negotiated with the peer.
"""

from __future__ import annotations
import ipaddress
import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

logger = logging.getLogger("tictactoe_lan.config")

# Board dimension; the board has GRID_SIZE * GRID_SIZE cells.
GRID_SIZE = 3

# Application (TCP) port and discovery (UDP) port.
GAME_PORT = 5000
DISCOVERY_PORT = 53005

# Exchanged in the handshake; peers presenting another value are refused.
PROTOCOL_ID = 0
PROTOCOL_NAME = "tictactoe.v1"

DISCOVERY_REQUEST = b"TIC_TAC_TOE_DISCOVER"
DISCOVERY_RESPONSE = b"TIC_TAC_TOE_FOUND"

# Environment variable -> GameConfig field
ENV_MAPPINGS = {
    "TICTACTOE_HOST": "host_address",
    "TICTACTOE_LISTEN": "listen_address",
    "TICTACTOE_GAME_PORT": "game_port",
    "TICTACTOE_DISCOVERY_PORT": "discovery_port",
    "TICTACTOE_BROADCAST": "broadcast_address",
    "TICTACTOE_TICK": "tick_interval_seconds",
    "TICTACTOE_LOG_FILE": "log_file",
    "TICTACTOE_LOG_LEVEL": "log_level",
}


@dataclass
class GameConfig:
    """Deployment configuration. Defaults match the fixed constants."""
    host_address: str = "127.0.0.1"
    listen_address: str = "0.0.0.0"
    game_port: int = GAME_PORT
    discovery_port: int = DISCOVERY_PORT
    broadcast_address: str = "255.255.255.255"
    tick_interval_seconds: float = 0.05
    log_file: str = "tictactoe_lan.log"
    log_level: str = "INFO"
    protocol_log: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {unknown}")
        return cls(**{k: v for k, v in data.items() if k in known})


def _coerce(field_name: str, value: str) -> Any:
    if field_name in ("game_port", "discovery_port"):
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"{field_name} must be an integer, got {value!r}") from None
    if field_name == "tick_interval_seconds":
        try:
            return float(value)
        except ValueError:
            raise ConfigError(f"{field_name} must be a number, got {value!r}") from None
    return value


def load_config(config_path: Optional[str] = None, env_file: Optional[str] = None) -> GameConfig:
    """
    Load configuration from file and environment.

    Args:
        config_path: Optional path to a JSON config file
        env_file: Optional .env path (defaults to searching from the cwd)

    Returns:
        A validated GameConfig

    Raises:
        ConfigError: If the file is unreadable or a value is invalid
    """
    data: Dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigError(f"Cannot read config file {path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {path} must hold a JSON object")
        else:
            logger.warning(f"Config file not found: {path}")

    load_dotenv(env_file or find_dotenv(usecwd=True))

    for env_key, field_name in ENV_MAPPINGS.items():
        if env_key in os.environ:
            data[field_name] = _coerce(field_name, os.environ[env_key])

    config = GameConfig.from_dict(data)
    validate_config(config)
    return config


def validate_config(config: GameConfig) -> None:
    """
    Validate configuration values.

    Port 0 is accepted and means "let the OS pick" (used by tests).

    Raises:
        ConfigError: On the first invalid value
    """
    for name in ("game_port", "discovery_port"):
        port = getattr(config, name)
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
            raise ConfigError(f"{name} must be in 0..65535, got {port!r}")

    for name in ("host_address", "listen_address", "broadcast_address"):
        value = getattr(config, name)
        try:
            ipaddress.IPv4Address(value)
        except (ipaddress.AddressValueError, ValueError):
            raise ConfigError(f"{name} must be an IPv4 address, got {value!r}") from None

    if not isinstance(config.tick_interval_seconds, (int, float)) or config.tick_interval_seconds <= 0:
        raise ConfigError(
            f"tick_interval_seconds must be positive, got {config.tick_interval_seconds!r}"
        )

    if logging.getLevelName(str(config.log_level).upper()) not in (
        logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL,
    ):
        raise ConfigError(f"Unknown log_level: {config.log_level!r}")
