"""
API tests for main.py routes

Services are built from test doubles and assigned to app.state, so the
startup hook (which would start a real scheduler) is not run.

Run with:
    pytest tests/test_main_api.py -v
"""

import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient
import json
import random

from agents.chat_session import create_chat_session, CLEARED_GREETING, MENTOR_MODE_OFF
from main import app, Services
from models.provider import ProviderResult
from services.demo_auth import DemoAuthService
from services.feedback_store import FeedbackStore
from services.local_store import LocalStore
from services.relay_chat import RelayChatService
from tests.fixtures.mentor_fixtures import ManualScheduler

REPLY = "What do you already know about magnets?"


@pytest.fixture
def provider():
    mock = Mock()
    mock.generate.return_value = ProviderResult.ok(REPLY)
    mock.is_configured = True
    mock.model = "gemini-pro"
    return mock


@pytest.fixture
def services(tmp_path, provider):
    tasks = ManualScheduler()
    store = LocalStore(str(tmp_path / "store.json"))
    auth = DemoAuthService(store, rng=random.Random(1))
    session = create_chat_session(tasks, store, client=provider, auth=auth, stream_delay_ms=0)
    services = Services(
        tasks=tasks,
        store=store,
        auth=auth,
        session=session,
        relay=RelayChatService(api_key="", rng=random.Random(2)),
        feedback=FeedbackStore(str(tmp_path / "feedback.json")),
    )
    app.state.services = services
    yield services
    app.state.services = None


@pytest.fixture
def client(services):
    return TestClient(app)


class TestHealthAndRelay:
    """Test /health and /chat"""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert "timestamp" in body

    def test_chat_requires_message(self, client):
        response = client.post("/chat", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "Message is required"

    def test_chat_fallback(self, client):
        response = client.post("/chat", json={"message": "What is entropy?"})
        assert response.status_code == 200
        assert response.json()["source"] == "fallback"

    def test_chat_error_returns_500(self, client, services):
        services.relay = Mock()
        services.relay.reply.side_effect = RuntimeError("upstream down")

        response = client.post("/chat", json={"message": "What is entropy?"})

        assert response.status_code == 500


class TestFeedback:
    """Test /feedback"""

    def test_feedback_is_stored(self, client, services):
        response = client.post("/feedback", json={"feedback": "Nice", "rating": 5, "page": "/"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Feedback submitted successfully"}
        assert json.loads(services.feedback.path.read_text())[0]["feedback"] == "Nice"


class TestMentorRoutes:
    """Test /mentor/* routes"""

    def test_message_round_trip(self, client):
        response = client.post("/mentor/message", json={"message": "How do magnets work?"})

        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == REPLY
        assert [m["sender"] for m in body["messages"]] == ["assistant", "user", "assistant"]

    def test_blank_message(self, client):
        response = client.post("/mentor/message", json={"message": "   "})
        assert response.status_code == 200
        assert response.json()["reply"] is None
        assert len(response.json()["messages"]) == 1

    def test_provider_failure_still_replies(self, client, provider):
        provider.generate.side_effect = RuntimeError("offline")

        response = client.post("/mentor/message", json={"message": "why is the sky blue?"})

        assert response.status_code == 200
        assert "consider" in response.json()["reply"]

    def test_open_and_close(self, client, services):
        assert client.post("/mentor/open").json() == {"status": "open"}
        assert "mentor_tick" in services.tasks.pending_names()
        assert client.post("/mentor/close").json() == {"status": "closed"}

    def test_clear(self, client):
        client.post("/mentor/message", json={"message": "How do magnets work?"})

        response = client.post("/mentor/clear")

        messages = response.json()["messages"]
        assert len(messages) == 1
        assert messages[0]["text"] == CLEARED_GREETING

    def test_mode(self, client, services):
        response = client.post("/mentor/mode", json={"enabled": False})

        assert response.json() == {"mentorMode": False}
        assert services.session.messages[-1].text == MENTOR_MODE_OFF

    def test_topic(self, client, services):
        response = client.post("/mentor/topic", json={"topic": "Magnetism"})
        assert response.json() == {"topic": "Magnetism"}
        assert "topic_welcome" in services.tasks.pending_names()

    def test_transcript_text(self, client):
        client.post("/mentor/message", json={"message": "How do magnets work?"})

        response = client.get("/mentor/transcript", params={"format": "text"})

        assert f"You: How do magnets work?\n\nAI Mentor: {REPLY}" in response.json()["transcript"]

    def test_stats(self, client):
        client.post("/mentor/message", json={"message": "How do magnets work?"})
        assert client.get("/mentor/stats").json() == {
            "userMessages": 1,
            "aiMessages": 2,
            "totalMessages": 3,
            "mentorMode": True,
        }

    def test_insights(self, client, services, provider):
        provider.generate.side_effect = [
            ProviderResult.ok(REPLY),
            ProviderResult.ok('{"thinking_level": "curious"}'),
        ]
        client.post("/mentor/message", json={"message": "How do magnets work?"})
        services.tasks.advance(0)

        insights = client.get("/mentor/insights").json()["insights"]
        assert len(insights) == 1
        assert insights[0]["insight"] == {"thinking_level": "curious"}

    def test_status(self, client):
        body = client.get("/mentor/status").json()
        assert body["widget"] == "closed"
        assert body["conversation"] == "idle"
        assert body["provider_configured"] is True
        assert body["model"] == "gemini-pro"
        assert body["queued_questions"] == 0


class TestAuthRoutes:
    """Test /auth/* routes"""

    def test_login_and_me(self, client):
        response = client.post("/auth/login", json={"username": "student", "password": "demo"})
        assert response.status_code == 200
        assert response.json()["user"]["username"] == "student"

        me = client.get("/auth/me").json()
        assert me["authenticated"] is True
        assert me["profile"]["name"] == "student"

    def test_bad_login(self, client):
        response = client.post("/auth/login", json={"username": "student", "password": "nope"})
        assert response.status_code == 401

    def test_logout(self, client):
        client.post("/auth/login", json={"username": "student", "password": "demo"})
        client.post("/auth/logout")
        assert client.get("/auth/me").json()["authenticated"] is False


class TestUninitialized:
    def test_routes_503_without_services(self):
        app.state.services = None
        response = TestClient(app).get("/mentor/stats")
        assert response.status_code == 503
