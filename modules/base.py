"""
Base Module - Handler interface for bot modules
===============================================

Every feature of the bot is a module. A module registers itself with the
router when it is constructed and subscribes to plain messages, management
commands, or both. Subscription order is handling priority: the router
stops at the first module that reports an event as handled.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from services.router import Router


@dataclass(frozen=True)
class InboundEvent:
    """
    A message delivered by the platform's callback.

    Attributes:
        group_id (str): Group the message was posted in
        text (str): Message text
        sender_type (str): "user", "bot" or "system"
    """
    group_id: str
    text: str
    sender_type: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InboundEvent':
        """Create from a callback body, ignoring unknown fields."""
        return cls(
            group_id=str(data.get("group_id", "")),
            text=data.get("text") or "",
            sender_type=str(data.get("sender_type", "")),
        )


class BaseModule(ABC):
    """
    Abstract base class for bot modules.

    Subclasses call ``router.subscribe_to_messages(self)`` and/or
    ``router.subscribe_to_commands(self)`` from their constructor.
    """

    name: str = "module"

    def __init__(self, router: "Router"):
        self.router = router
        router.register_module(self)

    def process_message(self, event: InboundEvent) -> bool:
        """
        Handle a plain message from a conversation group.

        Returns:
            True if the message was handled
        """
        return False

    def process_command(self, event: InboundEvent) -> bool:
        """
        Handle a slash command from a management group.

        Returns:
            True if the command was recognized
        """
        return False

    @abstractmethod
    def get_help_text(self) -> str:
        """Usage lines included in the /help response."""
        pass

    def send_message(self, group_id: str, message: str) -> None:
        self.router.send_message(group_id, message)
