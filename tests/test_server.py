"""
Runtime Server Tests
====================

Tests for the FastAPI endpoints with an injected service.
"""

import pytest
from fastapi.testclient import TestClient

from assist_core.actions import AssistService
from assist_core.errors import MISSING_API_KEY
from assist_core.tools_api import KEY_API_KEY, KEY_TONE
from assist_runtime.config import AssistConfig
from assist_runtime.rate_limiter import SlidingWindowRateLimiter
from assist_runtime.server import app, set_service
from host_tools.config_store.store import InMemoryStore
from conftest import conversation_page, feed_page, message_group


@pytest.fixture
def service(completion, store):
    service = AssistService(
        completion=completion,
        store=store,
        rate_limiter=SlidingWindowRateLimiter(10, 60000),
        config=AssistConfig(research_enabled=False),
    )
    set_service(service)
    yield service
    set_service(None)


@pytest.fixture
def client(service):
    return TestClient(app)


REPLY_BODY = {
    "transcript": "[Conversation between Sam Rivera and Alex Kim]\n\n[Alex Kim]: Are you free Thursday?",
    "summary": "Alex Kim sent the last message. Awaiting your reply.",
    "counterpart": {"name": "Alex Kim", "company": "Globex"},
    "last_message_sender": "other",
    "action_type": "reply",
}


class TestStatus:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "assist_runtime", "version": "0.1.0"}

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["rate_limit_available"] is True
        assert data["rate_limit_wait_seconds"] == 0


class TestSettings:
    """Tests for reading and writing operator settings."""

    def test_credential_masked(self, client):
        data = client.get("/settings").json()
        assert data["claude_api_key"] == "[REDACTED]...1234"
        assert data["tone"] is None
        assert data["meeting_link"] is None

    def test_unset_credential_stays_unset(self, client, service):
        service.store = InMemoryStore()
        assert client.get("/settings").json()["claude_api_key"] is None

    def test_partial_update(self, client, store):
        response = client.put("/settings", json={"tone": "casual", "meeting_link": "https://cal.example.com/sam"})
        assert response.status_code == 200
        assert response.json()["tone"] == "casual"
        assert store.get(KEY_TONE) == "casual"
        assert store.get("meeting_link") == "https://cal.example.com/sam"
        assert store.get(KEY_API_KEY) == "sk-ant-test-key-1234"

    def test_invalid_tone_rejected(self, client):
        assert client.put("/settings", json={"tone": "shouty"}).status_code == 422


class TestGeneration:
    """Tests for the generation endpoints."""

    def test_reply(self, client, completion):
        response = client.post("/generate-reply", json=REPLY_BODY)
        assert response.status_code == 200
        data = response.json()
        assert len(data["suggestions"]) == 3
        assert data["error"] is None
        assert "Are you free Thursday?" in completion.generation_calls[0]["prompt"]

    def test_failure_is_still_200(self, client, service):
        service.store = InMemoryStore()
        response = client.post("/generate-reply", json=REPLY_BODY)
        assert response.status_code == 200
        assert response.json()["suggestions"] == []
        assert response.json()["error"] == MISSING_API_KEY
        assert response.json()["error_category"] == "configuration_missing"

    def test_outreach(self, client):
        response = client.post("/generate-outreach", json={"counterpart": {"name": "Alex Kim"}})
        data = response.json()
        assert len(data["suggestions"]) == 3
        assert data["research"] == {"company": None, "person": None, "recent_news": None}

    def test_comment(self, client):
        body = {"post": {"content": "Shipped it!", "post_kind": "text"}, "comment_type": "congratulate"}
        assert len(client.post("/generate-comment", json=body).json()["suggestions"]) == 3

    def test_bad_request_body(self, client):
        assert client.post("/generate-comment", json={"comment_type": "congratulate"}).status_code == 422


class TestExtraction:
    """Tests for the extraction and surface endpoints."""

    def test_conversation(self, client):
        html = conversation_page(thread=[
            message_group("Alex Kim", ["Are you free Thursday?"]),
            message_group("Sam Rivera", ["Yes, after 2pm."]),
        ])
        response = client.post("/extract/conversation", json={"html": html, "url": "https://www.linkedin.com/messaging/"})
        assert response.status_code == 200
        data = response.json()
        assert data["message_count"] == 2
        assert data["counterpart"]["name"] == "Alex Kim"
        assert data["self_profile"]["name"] == "Sam Rivera"
        assert data["last_message_sender"] == "self"

    def test_post(self, client):
        response = client.post("/extract/post", json={"html": feed_page()})
        assert response.status_code == 200
        assert response.json()["author_name"] == "Priya Shah"

    def test_post_not_found(self, client):
        response = client.post("/extract/post", json={"html": feed_page(comment_box=False)})
        assert response.status_code == 404
        assert "error" in response.json()

    def test_surface(self, client):
        data = client.post(
            "/surface", json={"html": feed_page(), "url": "https://www.linkedin.com/feed/"}
        ).json()
        assert data == {"reply_trigger": False, "comment_trigger": True}
