"""
Core Module - Foundation components for Keyword Bot
===================================================

This module provides the foundational components including:
- Configuration management
- Logging setup
- Exception handling
"""

from .config import Config, GroupEntry, load_config
from .exceptions import (
    KeywordBotError,
    ConfigError,
    RuleStoreError,
    InvalidPatternError,
    CommandSyntaxError,
    SendError,
)
from .logging import setup_logging, get_logger

__all__ = [
    "Config",
    "GroupEntry",
    "load_config",
    "KeywordBotError",
    "ConfigError",
    "RuleStoreError",
    "InvalidPatternError",
    "CommandSyntaxError",
    "SendError",
    "setup_logging",
    "get_logger",
]
