"""Tests for the HTTP and WebSocket surface (app/api/v1/chat*.py, main.py)."""

from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from main import create_app

PREFIX = "/api/v1"


@pytest.fixture()
def client(store):
    with TestClient(create_app(chat_store=store)) as c:
        yield c


def _start_chat(client, name="Ada", email="ada@example.com") -> dict:
    response = client.post(
        f"{PREFIX}/chat/sessions",
        json={"visitor_name": name, "visitor_email": email},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["redis"] is False


class TestSessionEndpoints:
    def test_create_session(self, client):
        session = _start_chat(client)
        assert session["status"] == "active"
        assert session["visitor_name"] == "Ada"
        assert session["is_registered"] is False
        uuid.UUID(session["id"])

    def test_create_session_blank_name(self, client):
        response = client.post(
            f"{PREFIX}/chat/sessions",
            json={"visitor_name": "  ", "visitor_email": "ada@example.com"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter your name and email"
        assert client.get(f"{PREFIX}/chat/sessions").json()["total"] == 0

    def test_create_session_missing_field(self, client):
        response = client.post(f"{PREFIX}/chat/sessions", json={"visitor_name": "Ada"})
        assert response.status_code == 422

    def test_list_and_close(self, client):
        session = _start_chat(client)
        listed = client.get(f"{PREFIX}/chat/sessions").json()
        assert [s["id"] for s in listed["sessions"]] == [session["id"]]

        closed = client.post(f"{PREFIX}/chat/sessions/{session['id']}/close")
        assert closed.status_code == 200
        assert closed.json()["changed"] is True
        assert closed.json()["session"]["status"] == "closed"

        again = client.post(f"{PREFIX}/chat/sessions/{session['id']}/close")
        assert again.status_code == 200
        assert again.json()["changed"] is False

        assert client.get(f"{PREFIX}/chat/sessions").json() == {"sessions": [], "total": 0}

    def test_get_session(self, client):
        session = _start_chat(client)
        assert client.get(f"{PREFIX}/chat/sessions/{session['id']}").json()["id"] == session["id"]

    @pytest.mark.parametrize("session_id", ["not-a-uuid", str(uuid.UUID(int=7))])
    def test_unknown_session(self, client, session_id):
        assert client.get(f"{PREFIX}/chat/sessions/{session_id}").status_code == 404
        assert client.post(f"{PREFIX}/chat/sessions/{session_id}/close").status_code == 404


class TestMessageEndpoints:
    def test_append_and_list(self, client):
        session = _start_chat(client)
        url = f"{PREFIX}/chat/sessions/{session['id']}/messages"

        hello = client.post(url, json={"body": "Hello", "sender_role": "visitor", "sender_name": "Ada"})
        assert hello.status_code == 201
        reply = client.post(url, json={"body": "Hi Ada", "sender_role": "admin", "sender_name": "Support Agent"})
        assert reply.status_code == 201

        messages = client.get(url).json()["messages"]
        assert [(m["sender_role"], m["body"]) for m in messages] == [
            ("visitor", "Hello"),
            ("admin", "Hi Ada"),
        ]
        assert [m["sequence_number"] for m in messages] == [1, 2]

    def test_blank_body(self, client):
        session = _start_chat(client)
        response = client.post(
            f"{PREFIX}/chat/sessions/{session['id']}/messages",
            json={"body": "   ", "sender_role": "visitor"},
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"

    def test_unknown_role(self, client):
        session = _start_chat(client)
        response = client.post(
            f"{PREFIX}/chat/sessions/{session['id']}/messages",
            json={"body": "Hello", "sender_role": "robot"},
        )
        assert response.status_code == 400

    def test_append_to_unknown_session(self, client):
        response = client.post(
            f"{PREFIX}/chat/sessions/{uuid.uuid4()}/messages",
            json={"body": "Hello", "sender_role": "visitor"},
        )
        assert response.status_code == 404

    def test_append_to_closed_session(self, client):
        session = _start_chat(client)
        client.post(f"{PREFIX}/chat/sessions/{session['id']}/close")
        response = client.post(
            f"{PREFIX}/chat/sessions/{session['id']}/messages",
            json={"body": "Hello?", "sender_role": "visitor"},
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "SessionClosedError"


class TestWidgetEndpoint:
    def test_anonymous(self, client):
        assert client.get(f"{PREFIX}/chat/widget").json() == {"enabled": True}

    def test_regular_user(self, client):
        assert client.get(f"{PREFIX}/chat/widget", params={"email": "ada@example.com"}).json() == {"enabled": False}


class TestChatWebSocket:
    def test_receives_inserts_from_rest(self, client):
        session = _start_chat(client)
        with client.websocket_connect(f"{PREFIX}/ws/chat/{session['id']}") as ws:
            status_frame = ws.receive_json()
            assert status_frame["type"] == "status"
            assert status_frame["topic"] == f"chat_{session['id']}"

            client.post(
                f"{PREFIX}/chat/sessions/{session['id']}/messages",
                json={"body": "Hi Ada", "sender_role": "admin", "sender_name": "Support Agent"},
            )
            frame = ws.receive_json()
            assert frame["type"] == "message"
            assert frame["message"]["body"] == "Hi Ada"
            assert frame["message"]["sender_role"] == "admin"

    def test_writer_observes_its_own_message(self, client):
        session = _start_chat(client)
        with client.websocket_connect(f"{PREFIX}/ws/chat/{session['id']}?role=visitor&name=Ada") as ws:
            ws.receive_json()
            ws.send_json({"type": "message", "body": "Hello"})
            frame = ws.receive_json()
            assert frame["type"] == "message"
            assert frame["message"]["body"] == "Hello"
            assert frame["message"]["sender_name"] == "Ada"

        messages = client.get(f"{PREFIX}/chat/sessions/{session['id']}/messages").json()["messages"]
        assert [m["body"] for m in messages] == ["Hello"]

    def test_invalid_frames_get_errors(self, client):
        session = _start_chat(client)
        with client.websocket_connect(f"{PREFIX}/ws/chat/{session['id']}") as ws:
            ws.receive_json()

            ws.send_text("not json")
            assert ws.receive_json() == {"type": "error", "message": "Invalid JSON format"}

            ws.send_json({"type": "typing"})
            assert ws.receive_json()["message"] == "Only 'message' type is supported"

            ws.send_json({"type": "message", "body": "  "})
            error = ws.receive_json()
            assert error["type"] == "error"
            assert error["error_type"] == "ValidationError"

    @pytest.mark.parametrize("frame", [
        {"type": "message", "body": 5},
        {"type": "message", "body": None},
        {"type": "message", "body": "Hello", "sender_name": ["Ada"]},
    ])
    def test_mistyped_fields_keep_connection_open(self, client, frame):
        session = _start_chat(client)
        with client.websocket_connect(f"{PREFIX}/ws/chat/{session['id']}") as ws:
            ws.receive_json()

            ws.send_json(frame)
            assert ws.receive_json() == {
                "type": "error",
                "message": "Message fields are invalid",
                "error_type": "ValidationError",
            }

            ws.send_json({"type": "message", "body": "Still here"})
            assert ws.receive_json()["message"]["body"] == "Still here"

        messages = client.get(f"{PREFIX}/chat/sessions/{session['id']}/messages").json()["messages"]
        assert [m["body"] for m in messages] == ["Still here"]

    def test_closed_session_send_reports_error(self, client):
        session = _start_chat(client)
        with client.websocket_connect(f"{PREFIX}/ws/chat/{session['id']}") as ws:
            ws.receive_json()
            client.post(f"{PREFIX}/chat/sessions/{session['id']}/close")
            ws.send_json({"type": "message", "body": "Hello?"})
            error = ws.receive_json()
            assert error["error_type"] == "SessionClosedError"

    def test_disconnect_releases_subscription(self, client, channel):
        session = _start_chat(client)
        with client.websocket_connect(f"{PREFIX}/ws/chat/{session['id']}") as ws:
            ws.receive_json()
            assert channel.subscriber_count(uuid.UUID(session["id"])) == 1
        # The server handler finishes asynchronously after the client closes
        client.get("/health")
        assert channel.subscriber_count(uuid.UUID(session["id"])) == 0

    @pytest.mark.parametrize("session_id", ["not-a-uuid", str(uuid.UUID(int=9))])
    def test_unknown_session_is_refused(self, client, session_id):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"{PREFIX}/ws/chat/{session_id}"):
                pass
