"""
Modules - Pluggable message and command handlers
================================================
"""

from .base import BaseModule, InboundEvent
from .keyword import KeywordModule

__all__ = [
    "BaseModule",
    "InboundEvent",
    "KeywordModule",
]
