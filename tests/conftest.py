"""
Shared fixtures for Keyword Bot tests.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import Config, build_group_registry
from modules.base import InboundEvent
from modules.keyword import KeywordModule
from rules.store import RuleStore
from services.router import Router


CONVERSATION_GROUP = "1001"
MANAGEMENT_GROUP = "2002"
UNREGISTERED_GROUP = "9999"


class RecordingSender:
    """Collects outbound messages instead of posting them."""

    def __init__(self):
        self.sent = []

    def send_message(self, group_id, message):
        self.sent.append((group_id, message))

    @property
    def messages(self):
        return [message for _, message in self.sent]


def user_event(group_id, text):
    return InboundEvent(group_id=group_id, text=text, sender_type="user")


@pytest.fixture
def config():
    return Config(
        access_token="token",
        conversation_groups=build_group_registry(
            [{"group_id": CONVERSATION_GROUP, "bot_id": "conv-bot"}], "conversation_groups"
        ),
        management_groups=build_group_registry(
            [{"group_id": MANAGEMENT_GROUP, "bot_id": "mgmt-bot"}], "management_groups"
        ),
    )


@pytest.fixture
def rules_file(tmp_path):
    return tmp_path / "keywords.json"


@pytest.fixture
def store(rules_file):
    store = RuleStore(str(rules_file), persist_in_background=False)
    store.load()
    return store


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def router(config, sender):
    return Router(config, sender=sender)


@pytest.fixture
def keyword_module(router, store):
    return KeywordModule(router, store)
