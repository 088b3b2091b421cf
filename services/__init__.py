"""
Services Module - Routing and outbound messaging
================================================

This module provides the main services:
- Router: event classification and module dispatch
- GroupMe Client: bot API message sending
"""

from .groupme import GroupMeClient
from .router import Router

__all__ = [
    "GroupMeClient",
    "Router",
]
