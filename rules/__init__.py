"""
Rules Module - Keyword rules and command parsing
================================================

This module provides:
- The keyword rule store (regex patterns, responses, JSON persistence)
- Quoted-argument parsing for management commands
"""

from .store import RuleStore, Rule, UpsertOutcome
from .parser import parse_quoted_args

__all__ = [
    "RuleStore",
    "Rule",
    "UpsertOutcome",
    "parse_quoted_args",
]
