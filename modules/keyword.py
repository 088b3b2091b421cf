"""
Keyword Module - Auto-replies to keyword patterns
=================================================

Answers conversation group messages that match a stored keyword
pattern, and lets management groups edit the patterns:

    /addmessage "<keyword phrase>" "<response>"
    /listmessages
    /removemessage "<keyword phrase>"
"""

from typing import TYPE_CHECKING

from core.exceptions import CommandSyntaxError, InvalidPatternError
from core.logging import get_logger
from rules.parser import parse_quoted_args
from rules.store import RuleStore, UpsertOutcome
from .base import BaseModule, InboundEvent

if TYPE_CHECKING:
    from services.router import Router

logger = get_logger("modules.keyword")


ADD_COMMAND = "/addmessage"
LIST_COMMAND = "/listmessages"
REMOVE_COMMAND = "/removemessage"

ADD_SYNTAX_ERROR = 'Invalid Syntax. Usage: /addmessage "<keyword phrase>" "<Response message>"'
REMOVE_SYNTAX_ERROR = 'Invalid Syntax. Usage: /removemessage "<keyword phrase>"'
REMOVE_NOT_FOUND = "Keyword phrase not found."
NO_MESSAGES = "No messages added."


class KeywordModule(BaseModule):
    """
    Keyword-triggered auto replies.

    Subscribes to both messages and management commands.
    """

    name = "keyword"

    def __init__(self, router: "Router", store: RuleStore):
        super().__init__(router)
        self.store = store

        router.subscribe_to_messages(self)
        router.subscribe_to_commands(self)

    def process_message(self, event: InboundEvent) -> bool:
        logger.info("Processing message")
        rule = self.store.match(event.text)
        if rule is None:
            logger.info("No keyword matches")
            return False

        logger.info(f"Found match for keyword {rule.pattern!r}")
        self.send_message(event.group_id, rule.response)
        return True

    def process_command(self, event: InboundEvent) -> bool:
        text = event.text
        if text.startswith(ADD_COMMAND):
            self._add_message(event)
        elif text.startswith(LIST_COMMAND):
            self._list_messages(event)
        elif text.startswith(REMOVE_COMMAND):
            self._remove_message(event)
        else:
            return False
        return True

    def get_help_text(self) -> str:
        return "\n".join([
            f'{ADD_COMMAND} "<keyword phrase>" "<response>"',
            LIST_COMMAND,
            f'{REMOVE_COMMAND} "<keyword phrase>"',
        ])

    def _add_message(self, event: InboundEvent) -> None:
        try:
            pattern, response = parse_quoted_args(event.text, 2)
        except CommandSyntaxError as e:
            logger.info(f"Rejected {ADD_COMMAND}: {e.message}")
            self.send_message(event.group_id, ADD_SYNTAX_ERROR)
            return

        try:
            outcome = self.store.upsert(pattern, response)
        except InvalidPatternError as e:
            logger.info(f"Rejected {ADD_COMMAND}: {e}")
            self.send_message(event.group_id, f"Invalid keyword phrase: {e.reason}")
            return

        if outcome is UpsertOutcome.UPDATED:
            self.send_message(event.group_id, "Message updated.")
        else:
            self.send_message(event.group_id, "Message added.")

    def _list_messages(self, event: InboundEvent) -> None:
        rules = self.store.get_all_rules()
        self.send_message(event.group_id, format_rule_listing(rules))

    def _remove_message(self, event: InboundEvent) -> None:
        try:
            (pattern,) = parse_quoted_args(event.text, 1)
        except CommandSyntaxError as e:
            logger.info(f"Rejected {REMOVE_COMMAND}: {e.message}")
            self.send_message(event.group_id, REMOVE_SYNTAX_ERROR)
            return

        if self.store.remove(pattern):
            self.send_message(event.group_id, "Message deleted.")
        else:
            self.send_message(event.group_id, REMOVE_NOT_FOUND)


def format_rule_listing(rules) -> str:
    """Render rules as the numbered /listmessages reply."""
    if not rules:
        return NO_MESSAGES

    lines = ["Messages:"]
    for number, rule in enumerate(rules, start=1):
        lines.append(f'{number}. "{rule.pattern}" "{rule.response}"')
    return "\n".join(lines)
