"""
Test Web Application
====================

Tests for the webhook endpoint.
"""

import json
import pytest
from pathlib import Path

from fastapi.testclient import TestClient

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import CONVERSATION_GROUP, MANAGEMENT_GROUP, UNREGISTERED_GROUP
from web.app import build_router, create_app


@pytest.fixture
def client(config, store, sender):
    router = build_router(config, store, sender=sender)
    app = create_app(config=config, store=store, router=router)
    with TestClient(app) as client:
        yield client


def callback(group_id, text, sender_type="user", **extra):
    body = {"group_id": group_id, "text": text, "sender_type": sender_type}
    body.update(extra)
    return body


class TestCallback:
    """Tests for POST /."""

    def test_ack_and_route(self, client, sender):
        """Test callbacks are acknowledged with an empty 200."""
        response = client.post("/", json=callback(MANAGEMENT_GROUP, "/listmessages"))
        assert response.status_code == 200
        assert response.content == b""
        assert sender.sent == [(MANAGEMENT_GROUP, "No messages added.")]

    def test_extra_fields_ignored(self, client, store, sender):
        """Test platform fields beyond the core ones are accepted."""
        store.upsert("hello", "world")
        body = callback(
            CONVERSATION_GROUP, "hello",
            name="Alice", user_id="42", attachments=[], created_at=1700000000,
        )
        assert client.post("/", json=body).status_code == 200
        assert sender.sent == [(CONVERSATION_GROUP, "world")]

    def test_null_text(self, client, sender):
        """Test image-only messages with null text are handled."""
        assert client.post("/", json=callback(CONVERSATION_GROUP, None)).status_code == 200
        assert sender.sent == []

    def test_bot_sender(self, client, store, sender):
        """Test bot messages produce no reply."""
        store.upsert("hello", "world")
        client.post("/", json=callback(CONVERSATION_GROUP, "hello", sender_type="bot"))
        assert sender.sent == []

    def test_help_from_unregistered_group(self, client, sender):
        """Test /help is answered in any group."""
        client.post("/", json=callback(UNREGISTERED_GROUP, "/help"))
        assert len(sender.sent) == 1
        assert sender.sent[0][1].startswith("Management Commands:")

    def test_missing_fields(self, client):
        """Test bodies without group_id are rejected."""
        response = client.post("/", json={"text": "hello", "sender_type": "user"})
        assert response.status_code == 422

    def test_add_persists(self, client, rules_file, sender):
        """Test an add command through HTTP writes the rule file."""
        client.post("/", json=callback(MANAGEMENT_GROUP, '/addmessage "hi" "hello!"'))
        assert sender.messages == ["Message added."]
        data = json.loads(rules_file.read_text(encoding="utf-8"))
        assert data == {"keywords": [{"regExp": "hi", "response": "hello!"}]}


class TestStatus:
    """Tests for GET /status."""

    def test_status(self, client, store):
        store.upsert("a", "b")
        data = client.get("/status").json()
        assert data["status"] == "ok"
        assert data["modules"] == ["keyword"]
        assert data["rules"] == 1
        assert data["conversation_groups"] == [CONVERSATION_GROUP]
        assert data["management_groups"] == [MANAGEMENT_GROUP]
