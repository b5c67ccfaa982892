"""
Tests for the FastAPI application.

Tests:
- Robot games run on the event loop and reach WebSocket clients
- HTTP status codes for service errors and malformed requests
- WebSocket pushes stay ordered and survive dead sockets
"""

import asyncio
import logging
import time

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.service import APIService
from ..engine_core.events import EventKind, GameEvent


@pytest.fixture
def client(monkeypatch):
    """Client on one event loop, so robot timers keep firing between requests."""
    monkeypatch.setenv("TRIPLET_ROBOT_DELAY_MS", "40")
    with TestClient(create_app(APIService())) as client:
        yield client


def wait_for_game_over(client, session_id, timeout=10.0) -> dict:
    deadline = time.monotonic() + timeout
    state = client.get(f"/api/v1/sessions/{session_id}/state").json()
    while not state["is_game_over"] and time.monotonic() < deadline:
        time.sleep(0.05)
        state = client.get(f"/api/v1/sessions/{session_id}/state").json()
    return state


class TestRobotPlay:
    """Tests for robot play through the real asyncio scheduler."""

    def test_robot_game_pushes_events(self, client):
        response = client.post("/api/v1/sessions", json={
            "board_size": 5,
            "player_a": "robot",
            "player_b": "robot",
            "seed": 4,
        })
        assert response.status_code == 200
        session_id = response.json()["session_id"]

        with client.websocket_connect(f"/api/v1/sessions/{session_id}/ws") as ws:
            first = ws.receive_json()
            assert first["type"] == "state_update"
            assert first["payload"]["board_size"] == 5

            kinds = []
            if not first["payload"]["is_game_over"]:
                while "game_over" not in kinds:
                    message = ws.receive_json()
                    assert message["type"] == "event"
                    kinds.append(message["payload"]["kind"])
                assert "board_changed" in kinds
                assert "score_changed" in kinds

        state = wait_for_game_over(client, session_id)
        assert state["is_game_over"]
        assert state["status"] == "game_over"
        assert not state["robot_pending"]

    def test_events_poll_after_robot_game(self, client):
        session_id = client.post("/api/v1/sessions", json={
            "board_size": 4,
            "player_a": "robot",
            "player_b": "robot",
            "seed": 9,
        }).json()["session_id"]
        wait_for_game_over(client, session_id)

        events = client.get(f"/api/v1/sessions/{session_id}/events").json()
        sequences = [e["sequence"] for e in events["events"]]
        assert sequences == sorted(sequences)
        assert "game_over" in [e["kind"] for e in events["events"]]


class TestErrorStatus:
    """Tests for HTTP error mapping."""

    def test_out_of_range_coordinate(self, client):
        session_id = client.post("/api/v1/sessions", json={"board_size": 4}).json()["session_id"]

        response = client.post(
            f"/api/v1/sessions/{session_id}/select",
            json={"row": 99, "col": 99},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_COORDINATE"

    def test_unknown_session(self, client):
        for response in (
            client.get("/api/v1/sessions/missing"),
            client.get("/api/v1/sessions/missing/state"),
            client.post("/api/v1/sessions/missing/skip"),
        ):
            assert response.status_code == 404
            assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_unknown_session_websocket(self, client):
        with client.websocket_connect("/api/v1/sessions/missing/ws") as ws:
            message = ws.receive_json()
        assert message["type"] == "error"
        assert message["payload"]["error_code"] == "SESSION_NOT_FOUND"

    def test_malformed_body(self, client):
        response = client.post("/api/v1/sessions", json={"board_size": 2})
        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["details"]["errors"]

    def test_malformed_query(self, client):
        session_id = client.post("/api/v1/sessions", json={"board_size": 4}).json()["session_id"]
        response = client.get(f"/api/v1/sessions/{session_id}/events", params={"since": -1})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_ping(self, client):
        session_id = client.post("/api/v1/sessions", json={"board_size": 4}).json()["session_id"]
        with client.websocket_connect(f"/api/v1/sessions/{session_id}/ws") as ws:
            assert ws.receive_json()["type"] == "state_update"
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}


class RecordingSocket:
    """Stands in for a connected WebSocket."""

    def __init__(self):
        self.messages = []

    async def send_json(self, message):
        await asyncio.sleep(0)
        self.messages.append(message)


class DeadSocket:
    """A WebSocket whose peer has gone away."""

    def __init__(self):
        self.attempts = 0

    async def send_json(self, message):
        self.attempts += 1
        await asyncio.sleep(0)
        raise RuntimeError('Cannot call "send" once a close message has been sent.')


class VanishingSocket:
    """Fails after its session's socket list was dropped mid-send."""

    def __init__(self, connections, session_id):
        self.connections = connections
        self.session_id = session_id

    async def send_json(self, message):
        self.connections.pop(self.session_id, None)
        raise RuntimeError("closed")


def make_events(count):
    return [
        GameEvent(sequence=i, kind=EventKind.MESSAGE, payload={"text": f"message {i}"})
        for i in range(1, count + 1)
    ]


def push(app, listener, session_id, events):
    """Feed events to the engine listener and wait for every push."""
    tasks = app.state.background_tasks

    async def run():
        for event in events:
            listener(session_id, event)
        while tasks:
            await asyncio.gather(*list(tasks))

    asyncio.run(run())


class TestWebSocketPush:
    """Tests for pushing engine events to WebSocket clients."""

    @pytest.fixture
    def service(self):
        return APIService()

    @pytest.fixture
    def app(self, service):
        return create_app(service)

    def test_dead_socket_dropped_once(self, app, service, caplog):
        dead = DeadSocket()
        app.state.ws_connections["s1"] = [dead]

        with caplog.at_level(logging.ERROR, logger="triplet.api.app"):
            push(app, service.listener, "s1", make_events(3))

        assert dead.attempts == 1
        assert app.state.ws_connections["s1"] == []
        assert not caplog.records

    def test_events_arrive_in_order(self, app, service):
        live = RecordingSocket()
        app.state.ws_connections["s1"] = [DeadSocket(), live]

        push(app, service.listener, "s1", make_events(5))

        assert [m["type"] for m in live.messages] == ["event"] * 5
        assert [m["payload"]["sequence"] for m in live.messages] == [1, 2, 3, 4, 5]
        assert app.state.ws_connections["s1"] == [live]

    def test_session_dropped_mid_push(self, app, service, caplog):
        connections = app.state.ws_connections
        connections["s1"] = [VanishingSocket(connections, "s1")]

        with caplog.at_level(logging.ERROR, logger="triplet.api.app"):
            push(app, service.listener, "s1", make_events(3))

        assert "s1" not in connections
        assert not caplog.records

    def test_no_sockets_no_tasks(self, app, service):
        push(app, service.listener, "s1", make_events(2))
        assert not app.state.background_tasks
