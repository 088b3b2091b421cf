"""
Configuration Management - YAML-based configuration with environment overrides
=============================================================================

This module handles all configuration aspects including:
- Loading from YAML files (plain JSON config files parse too)
- Environment variable overrides
- Default values
- Configuration validation

The resulting Config is frozen. It is built once at startup and passed to
every component that needs it.
"""

import os
import yaml
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional
from dataclasses import dataclass, field

from .exceptions import ConfigError
from .logging import get_logger

logger = get_logger("core.config")


DEFAULT_PORT = 8080
DEFAULT_HOST = "0.0.0.0"


@dataclass(frozen=True)
class GroupEntry:
    """
    A chat group the bot is installed in.

    Attributes:
        group_id (str): Platform group id
        bot_id (str): Id of the bot that posts into this group
    """
    group_id: str
    bot_id: str


def _empty_groups() -> Mapping[str, GroupEntry]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Config:
    """
    Process-wide configuration.

    Group registries are read-only mappings keyed by group id.
    """
    access_token: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = ""
    keyword_config_file: Optional[str] = None

    conversation_groups: Mapping[str, GroupEntry] = field(default_factory=_empty_groups)
    management_groups: Mapping[str, GroupEntry] = field(default_factory=_empty_groups)

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: If a value is out of range
        """
        if self.port < 1 or self.port > 65535:
            raise ConfigError(f"Invalid port: {self.port}")

    def is_conversation_group(self, group_id: str) -> bool:
        return group_id in self.conversation_groups

    def is_management_group(self, group_id: str) -> bool:
        return group_id in self.management_groups

    def get_bot_id(self, group_id: str) -> Optional[str]:
        """
        Resolve the bot id for a group.

        Management groups take precedence when a group id is registered
        in both registries.
        """
        entry = self.management_groups.get(group_id)
        if entry is None:
            entry = self.conversation_groups.get(group_id)
        return entry.bot_id if entry is not None else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary, token masked."""
        return {
            "access_token": "***" if self.access_token else "",
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "log_dir": self.log_dir,
            "keyword_config_file": self.keyword_config_file,
            "conversation_groups": [
                {"group_id": g.group_id, "bot_id": g.bot_id}
                for g in self.conversation_groups.values()
            ],
            "management_groups": [
                {"group_id": g.group_id, "bot_id": g.bot_id}
                for g in self.management_groups.values()
            ],
        }


def get_default_config_dir() -> Path:
    """
    Get the default configuration directory path.

    Returns:
        $KEYWORD_BOT_CONFIG_DIR if set, else ./config
    """
    if "KEYWORD_BOT_CONFIG_DIR" in os.environ:
        return Path(os.environ["KEYWORD_BOT_CONFIG_DIR"])
    return Path.cwd() / "config"


def build_group_registry(groups: Optional[Iterable[Any]], section: str) -> Mapping[str, GroupEntry]:
    """
    Build a read-only group registry from a list of
    ``{group_id, bot_id}`` entries.

    Raises:
        ConfigError: If the section is not a list or an entry is incomplete
    """
    registry: Dict[str, GroupEntry] = {}
    if groups is None:
        return MappingProxyType(registry)

    if not isinstance(groups, list):
        raise ConfigError(f"'{section}' must be a list of groups")

    for index, group in enumerate(groups):
        if not isinstance(group, dict) or "group_id" not in group or "bot_id" not in group:
            raise ConfigError(
                f"Entry {index} in '{section}' needs group_id and bot_id",
                {"entry": group},
            )
        entry = GroupEntry(group_id=str(group["group_id"]), bot_id=str(group["bot_id"]))
        registry[entry.group_id] = entry

    return MappingProxyType(registry)


def load_config(config_path: Optional[str] = None, load_env: bool = True) -> Config:
    """
    Load configuration from a YAML file with environment variable overrides.

    Values are applied in this order:
    1. Dataclass defaults
    2. Values from the YAML file, if it exists
    3. Environment variable overrides

    Args:
        config_path: Path to configuration file (optional)
        load_env: Whether to apply environment variable overrides

    Returns:
        Frozen Config

    Raises:
        ConfigError: If the file cannot be parsed or a value is invalid
    """
    if config_path:
        yaml_path = Path(config_path)
    else:
        yaml_path = get_default_config_dir() / "config.yaml"

    values: Dict[str, Any] = {}
    if yaml_path.exists():
        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                values = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file: {e}", {"path": str(yaml_path)})
        except IOError as e:
            raise ConfigError(f"Failed to read config file: {e}", {"path": str(yaml_path)})

        if not isinstance(values, dict):
            raise ConfigError("Config file must contain a mapping", {"path": str(yaml_path)})
    else:
        logger.warning(f"Config file {yaml_path} not found, using defaults")

    if load_env:
        _apply_env_overrides(values)

    config = _build_config(values, base_dir=yaml_path.parent)
    config.validate()

    if not config.access_token:
        logger.warning("Access token not specified")

    return config


def _build_config(values: Dict[str, Any], base_dir: Path) -> Config:
    """
    Turn raw configuration values into a Config.

    A relative keyword_config_file is resolved against the directory of
    the config file.
    """
    keyword_file = values.get("keyword_config_file")
    if keyword_file:
        keyword_path = Path(keyword_file)
        if not keyword_path.is_absolute():
            keyword_path = base_dir / keyword_path
        keyword_file = str(keyword_path)

    try:
        port = int(values.get("port", DEFAULT_PORT))
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port: {values.get('port')!r}")

    return Config(
        access_token=str(values.get("access_token") or ""),
        host=str(values.get("host", DEFAULT_HOST)),
        port=port,
        debug=bool(values.get("debug", False)),
        log_level=str(values.get("log_level", "INFO")),
        log_dir=str(values.get("log_dir") or ""),
        keyword_config_file=keyword_file or None,
        conversation_groups=build_group_registry(
            values.get("conversation_groups"), "conversation_groups"
        ),
        management_groups=build_group_registry(
            values.get("management_groups"), "management_groups"
        ),
    )


def _apply_env_overrides(values: Dict[str, Any]) -> None:
    """
    Apply environment variable overrides to raw configuration values.

    PORT is honoured as-is (hosting platforms set it); the rest follow the
    pattern KEYWORD_BOT_<KEY>.
    """
    port = os.environ.get("PORT")
    if port is not None:
        try:
            values["port"] = int(port)
        except ValueError:
            logger.warning(f"Ignoring non-numeric PORT value {port!r}")

    env_mappings = {
        "KEYWORD_BOT_ACCESS_TOKEN": ("access_token", str),
        "KEYWORD_BOT_HOST": ("host", str),
        "KEYWORD_BOT_KEYWORD_CONFIG_FILE": ("keyword_config_file", str),
        "KEYWORD_BOT_DEBUG": ("debug", bool),
        "KEYWORD_BOT_LOG_LEVEL": ("log_level", str),
    }

    for env_var, (key, converter) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if converter == bool:
            values[key] = value.lower() in ("true", "1", "yes", "on")
        else:
            values[key] = converter(value)
