"""
Test Router
===========

Tests for event classification, dispatch order and /help.
"""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import CONVERSATION_GROUP, MANAGEMENT_GROUP, UNREGISTERED_GROUP, user_event
from modules.base import BaseModule, InboundEvent
from modules.keyword import KeywordModule


class StubModule(BaseModule):
    """Module that records calls and returns a fixed result."""

    def __init__(self, router, name, handles=False, help_text="/stub"):
        super().__init__(router)
        self.name = name
        self.handles = handles
        self.help_text = help_text
        self.messages = []
        self.commands = []
        router.subscribe_to_messages(self)
        router.subscribe_to_commands(self)

    def process_message(self, event):
        self.messages.append(event.text)
        return self.handles

    def process_command(self, event):
        self.commands.append(event.text)
        return self.handles

    def get_help_text(self):
        return self.help_text


class TestInboundEvent:
    """Tests for building events from callback payloads."""

    def test_from_dict_ignores_extra_fields(self):
        """Test unknown payload fields are dropped."""
        event = InboundEvent.from_dict({
            "group_id": CONVERSATION_GROUP,
            "text": "hello",
            "sender_type": "user",
            "name": "Alice",
            "attachments": [],
        })
        assert event == InboundEvent(CONVERSATION_GROUP, "hello", "user")

    def test_from_dict_null_text(self):
        """Test a null text field becomes an empty string."""
        event = InboundEvent.from_dict({"group_id": CONVERSATION_GROUP, "text": None, "sender_type": "user"})
        assert event.text == ""

    def test_from_dict_numeric_group_id(self):
        """Test a numeric group id is normalized to text."""
        event = InboundEvent.from_dict({"group_id": 1001, "text": "hi", "sender_type": "user"})
        assert event.group_id == "1001"


class TestClassification:
    """Tests for how events are classified."""

    def test_bot_messages_ignored(self, router, sender):
        """Test non-user senders never reach a module."""
        stub = StubModule(router, "stub", handles=True)
        router.process_callback(InboundEvent(CONVERSATION_GROUP, "hello", "bot"))
        router.process_callback(InboundEvent(MANAGEMENT_GROUP, "/help", "system"))
        assert stub.messages == []
        assert stub.commands == []
        assert sender.sent == []

    def test_command_in_management_group(self, router):
        """Test slash text in a management group is a command."""
        stub = StubModule(router, "stub")
        router.process_callback(user_event(MANAGEMENT_GROUP, "/listmessages"))
        assert stub.commands == ["/listmessages"]
        assert stub.messages == []

    def test_slash_text_in_conversation_group(self, router):
        """Test slash text in a conversation group is a plain message."""
        stub = StubModule(router, "stub")
        router.process_callback(user_event(CONVERSATION_GROUP, "/listmessages"))
        assert stub.messages == ["/listmessages"]
        assert stub.commands == []

    def test_plain_text_in_management_group_dropped(self, router):
        """Test plain text in a management-only group is not matched."""
        stub = StubModule(router, "stub")
        router.process_callback(user_event(MANAGEMENT_GROUP, "hello"))
        assert stub.messages == []
        assert stub.commands == []

    def test_unregistered_group(self, router, sender):
        """Test events from unknown groups are dropped."""
        stub = StubModule(router, "stub", handles=True)
        router.process_callback(user_event(UNREGISTERED_GROUP, "hello"))
        router.process_callback(user_event(UNREGISTERED_GROUP, "/addmessage \"a\" \"b\""))
        assert stub.messages == []
        assert stub.commands == []
        assert sender.sent == []


class TestDispatchOrder:
    """Tests for first-handler-wins dispatch."""

    def test_stops_at_first_handler(self, router):
        """Test later modules are skipped once one handles the event."""
        first = StubModule(router, "first", handles=True)
        second = StubModule(router, "second", handles=True)
        router.process_callback(user_event(CONVERSATION_GROUP, "hi"))
        assert first.messages == ["hi"]
        assert second.messages == []

    def test_falls_through_unhandled(self, router):
        """Test unhandled events continue down the chain."""
        first = StubModule(router, "first", handles=False)
        second = StubModule(router, "second", handles=True)
        router.process_callback(user_event(MANAGEMENT_GROUP, "/cmd"))
        assert first.commands == ["/cmd"]
        assert second.commands == ["/cmd"]

    def test_subscriptions_are_unique(self, router):
        """Test subscribing twice does not duplicate a handler."""
        stub = StubModule(router, "stub")
        router.subscribe_to_messages(stub)
        router.register_module(stub)
        assert router.message_handlers == [stub]
        assert router.modules == [stub]

    def test_send_without_sender(self, config):
        """Test a router without a sender drops replies quietly."""
        from services.router import Router
        router = Router(config)
        router.send_message(CONVERSATION_GROUP, "hello")


class TestHelp:
    """Tests for the /help command."""

    def test_help_lists_modules(self, router, sender):
        """Test help concatenates every module's help text."""
        StubModule(router, "a", help_text="/a")
        StubModule(router, "b", help_text="/b")
        router.process_callback(user_event(MANAGEMENT_GROUP, "/help"))
        assert sender.sent[0] == (MANAGEMENT_GROUP, "Management Commands:\n/a\n/b")

    def test_help_continues_to_handlers(self, router, sender):
        """Test /help still goes through the command chain."""
        stub = StubModule(router, "stub")
        router.process_callback(user_event(MANAGEMENT_GROUP, "/help"))
        assert stub.commands == ["/help"]

    def test_help_from_unregistered_group(self, router, sender, keyword_module):
        """Test /help is answered even in an unknown group."""
        router.process_callback(user_event(UNREGISTERED_GROUP, "/help"))
        assert len(sender.sent) == 1
        group_id, text = sender.sent[0]
        assert group_id == UNREGISTERED_GROUP
        assert text.startswith("Management Commands:\n")
        assert "/listmessages" in text

    def test_help_must_be_exact(self, router, sender):
        """Test text that only starts with /help is not help."""
        StubModule(router, "stub")
        router.process_callback(user_event(MANAGEMENT_GROUP, "/help me"))
        assert sender.sent == []


class TestKeywordScenario:
    """End-to-end keyword flow through the router."""

    def test_add_then_match(self, router, sender, keyword_module):
        """Test a rule added by command answers conversation messages."""
        router.process_callback(user_event(MANAGEMENT_GROUP, '/addmessage "hello" "world"'))
        router.process_callback(user_event(MANAGEMENT_GROUP, '/addmessage "hello" "there"'))
        router.process_callback(user_event(CONVERSATION_GROUP, "say hello please"))

        assert sender.sent == [
            (MANAGEMENT_GROUP, "Message added."),
            (MANAGEMENT_GROUP, "Message updated."),
            (CONVERSATION_GROUP, "there"),
        ]

    def test_listmessages_empty(self, router, sender, keyword_module):
        """Test /listmessages on an empty store."""
        router.process_callback(user_event(MANAGEMENT_GROUP, "/listmessages"))
        assert sender.sent == [(MANAGEMENT_GROUP, "No messages added.")]
