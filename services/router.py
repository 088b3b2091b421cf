"""
Router - Classifies inbound events and dispatches them to modules
=================================================================

For every callback the router decides:

1. Not from a user: dropped.
2. Exactly "/help": the help text of every module is posted. This runs
   before classification and does not stop it, so /help is answered in
   any group.
3. Slash command in a management group: command subscribers, in order,
   until one handles it.
4. Any other text in a conversation group: message subscribers, in
   order, until one handles it.
5. Otherwise the group is not registered and the event is dropped.
"""

from typing import List, Optional, Protocol

from core.config import Config
from core.logging import get_logger, set_log_context, clear_log_context
from modules.base import BaseModule, InboundEvent

logger = get_logger("services.router")


HELP_COMMAND = "/help"
HELP_HEADER = "Management Commands:\n"


class MessageSender(Protocol):
    def send_message(self, group_id: str, message: str) -> object:
        ...


class Router:
    """
    Routes inbound events to registered modules.

    Example:
        router = Router(config, sender=GroupMeClient(config))
        KeywordModule(router, store)

        router.process_callback(InboundEvent("123", "hello", "user"))
    """

    def __init__(self, config: Config, sender: Optional[MessageSender] = None):
        """
        Initialize the router.

        Args:
            config: Application configuration (group registries)
            sender: Outbound message sender
        """
        self.config = config
        self.sender = sender

        self.modules: List[BaseModule] = []
        self.message_handlers: List[BaseModule] = []
        self.command_handlers: List[BaseModule] = []

        logger.info(
            f"Listening to messages from groups {list(config.conversation_groups)}"
        )
        logger.info(
            f"Listening to management commands from groups {list(config.management_groups)}"
        )

    def register_module(self, module: BaseModule) -> None:
        if module in self.modules:
            return
        self.modules.append(module)
        logger.info(f"Registered module {module.name}")

    def subscribe_to_messages(self, module: BaseModule) -> None:
        if module not in self.message_handlers:
            self.message_handlers.append(module)

    def subscribe_to_commands(self, module: BaseModule) -> None:
        if module not in self.command_handlers:
            self.command_handlers.append(module)

    def send_message(self, group_id: str, message: str) -> None:
        if self.sender is None:
            logger.warning(f"No sender configured, dropping message for group {group_id}")
            return
        self.sender.send_message(group_id, message)

    def process_callback(self, event: InboundEvent) -> None:
        """
        Handle one inbound event.

        Args:
            event: The callback body
        """
        set_log_context(group_id=event.group_id)
        try:
            self._route(event)
        finally:
            clear_log_context()

    def _route(self, event: InboundEvent) -> None:
        if event.sender_type != "user":
            logger.info("Message not from user, skipping")
            return

        if event.text == HELP_COMMAND:
            self.process_help_command(event)

        if event.text.startswith("/") and self.config.is_management_group(event.group_id):
            self.process_management_command(event)
        elif self.config.is_conversation_group(event.group_id):
            self.process_message(event)
        else:
            logger.warning(f"Got callback for unregistered group {event.group_id}")

    def process_management_command(self, event: InboundEvent) -> bool:
        for handler in self.command_handlers:
            if handler.process_command(event):
                logger.debug(f"Command handled by {handler.name}")
                return True
        logger.info(f"No module handled command {event.text.split(' ', 1)[0]!r}")
        return False

    def process_message(self, event: InboundEvent) -> bool:
        for handler in self.message_handlers:
            if handler.process_message(event):
                logger.debug(f"Message handled by {handler.name}")
                return True
        return False

    def get_help_text(self) -> str:
        return HELP_HEADER + "\n".join(module.get_help_text() for module in self.modules)

    def process_help_command(self, event: InboundEvent) -> None:
        self.send_message(event.group_id, self.get_help_text())
