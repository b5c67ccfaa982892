"""
Tests for API layer.

Tests:
- API service methods
- Request/response serialization
- Session lifecycle via API
- Error handling
"""

import pytest
from pydantic import ValidationError

from ..api.schemas import (
    ActionResponse,
    ConfigureRequest,
    ControlType,
    CreateSessionRequest,
    ErrorCode,
    ErrorResponse,
    SelectTileRequest,
    SessionResponse,
    SessionStatus,
)
from ..api.service import APIService
from ..bots import FirstLegalPolicy
from ..engine_core.scheduler import ManualScheduler
from ..session import SessionManager


@pytest.fixture
def service():
    """API service whose robots run on a virtual clock."""
    return APIService(
        session_manager=SessionManager(
            scheduler_factory=ManualScheduler,
            policy_factory=FirstLegalPolicy,
        )
    )


@pytest.fixture
def session_id(service):
    response = service.create_session(CreateSessionRequest(board_size=5, seed=3))
    return response.session_id


class TestSessions:
    """Tests for session endpoints."""

    def test_create_session(self, service):
        response = service.create_session(CreateSessionRequest(board_size=5, seed=3))

        assert isinstance(response, SessionResponse)
        assert response.status is SessionStatus.ACTIVE
        state = response.game_state
        assert state.board_size == 5
        assert len(state.board) == 5
        assert all(len(row) == 5 and "." not in row for row in state.board)
        assert state.current_player == "O"
        assert state.scores.player_a == 0
        assert state.controls.robot == "neither"

    def test_seed_reproduces_board(self, service):
        first = service.create_session(CreateSessionRequest(board_size=6, seed=8))
        second = service.create_session(CreateSessionRequest(board_size=6, seed=8))
        assert first.session_id != second.session_id
        assert first.game_state.board == second.game_state.board

    def test_robot_first_player(self, service):
        response = service.create_session(
            CreateSessionRequest(board_size=4, player_a=ControlType.ROBOT)
        )
        assert response.status is SessionStatus.ROBOT_THINKING
        assert response.game_state.robot_pending
        assert len(response.game_state.selection) == 3

    @pytest.mark.parametrize("size", [2, 11])
    def test_create_rejects_bad_size(self, size):
        with pytest.raises(ValidationError):
            CreateSessionRequest(board_size=size)

    def test_get_session(self, service, session_id):
        response = service.get_session(session_id)
        assert isinstance(response, SessionResponse)
        assert response.session_id == session_id

    def test_unknown_session(self, service):
        for response in (
            service.get_session("missing"),
            service.get_game_state("missing"),
            service.skip_turn("missing"),
            service.request_robot_move("missing"),
            service.get_events("missing"),
            service.select_tile("missing", SelectTileRequest(row=0, col=0)),
        ):
            assert isinstance(response, ErrorResponse)
            assert response.error_code is ErrorCode.SESSION_NOT_FOUND

    def test_end_session(self, service, session_id):
        response = service.end_session(session_id)
        assert response.success
        assert isinstance(service.get_session(session_id), ErrorResponse)
        assert not service.end_session(session_id).success

    def test_list_sessions(self, service, session_id):
        assert service.list_sessions() == [session_id]


class TestGameplay:
    """Tests for gameplay endpoints."""

    def test_select_legal_move(self, service, session_id):
        engine = service.session_manager.get_session(session_id).engine
        triple = engine.legal_moves()[0]

        response = None
        for row, col in triple:
            response = service.select_tile(session_id, SelectTileRequest(row=row, col=col))

        assert isinstance(response, ActionResponse)
        assert response.success
        assert response.state_changes[0].startswith("O captured")
        state = response.game_state
        assert state.scores.player_a >= 2
        assert sum(row.count(".") for row in state.board) == 3
        assert state.last_action.startswith("O captured")

    def test_select_out_of_bounds(self, service, session_id):
        response = service.select_tile(session_id, SelectTileRequest(row=5, col=0))
        assert isinstance(response, ErrorResponse)
        assert response.error_code is ErrorCode.INVALID_COORDINATE
        assert response.details["board_size"] == 5

    def test_select_disconnected(self, service, session_id):
        for row, col in ((0, 0), (0, 2), (2, 0)):
            response = service.select_tile(session_id, SelectTileRequest(row=row, col=col))

        assert not response.success
        assert response.error_code is ErrorCode.ILLEGAL_DISCONNECTED
        assert response.messages == ["Invalid move! All three tiles must be connected."]
        assert response.game_state.selection == []
        assert response.game_state.current_player == "O"

    def test_partial_selection_in_state(self, service, session_id):
        response = service.select_tile(session_id, SelectTileRequest(row=1, col=2))
        assert response.success
        assert response.game_state.selection == [[1, 2]]

    def test_skip(self, service, session_id):
        response = service.skip_turn(session_id)
        assert response.success
        assert response.messages == ["O has skipped their turn."]
        assert response.game_state.current_player == "X"

    def test_robot_move(self, service, session_id):
        response = service.request_robot_move(session_id)
        assert response.success
        assert response.game_state.status is SessionStatus.ROBOT_THINKING

        blocked = service.skip_turn(session_id)
        assert not blocked.success
        assert blocked.error_code is ErrorCode.ROBOT_PENDING

        engine = service.session_manager.get_session(session_id).engine
        engine.scheduler.run_until_idle()

        state = service.get_game_state(session_id)
        assert not state.robot_pending
        assert state.scores.player_a >= 2

    def test_configure(self, service, session_id):
        response = service.configure(
            session_id,
            ConfigureRequest(board_size=4, player_b=ControlType.ROBOT),
        )
        assert response.success
        state = response.game_state
        assert state.board_size == 4
        assert state.controls.player_a is ControlType.HUMAN
        assert state.controls.robot == "X"
        assert state.status is SessionStatus.ACTIVE

    def test_configure_invalid_keeps_game(self, service, session_id):
        before = service.get_game_state(session_id).board
        response = service.configure(session_id, ConfigureRequest(board_size=12))

        assert isinstance(response, ErrorResponse)
        assert response.error_code is ErrorCode.INVALID_CONFIGURATION
        assert service.get_game_state(session_id).board == before

    def test_events_since(self, service, session_id):
        events = service.get_events(session_id)
        assert events.events
        assert events.last_event == events.events[-1].sequence

        service.skip_turn(session_id)
        newer = service.get_events(session_id, since=events.last_event)
        kinds = [e.kind for e in newer.events]
        assert "message" in kinds
        assert "turn_changed" in kinds
        assert all(e.sequence > events.last_event for e in newer.events)

    def test_listener(self, service):
        received = []
        service.listener = lambda sid, event: received.append(sid)
        response = service.create_session(CreateSessionRequest(board_size=3))
        assert received
        assert set(received) == {response.session_id}

    def test_response_serializes(self, service, session_id):
        response = service.skip_turn(session_id)
        data = response.model_dump(mode="json")
        assert data["game_state"]["status"] == "active"
        assert data["api_version"] == "v1"


class TestApp:
    """Tests for the FastAPI application factory."""

    def test_routes_registered(self, service):
        from ..api.app import create_app

        app = create_app(service)
        paths = {route.path for route in app.routes}
        assert "/api/v1/sessions" in paths
        assert "/api/v1/sessions/{session_id}/select" in paths
        assert "/api/v1/sessions/{session_id}/ws" in paths
        assert "/health" in paths
        assert service.listener is not None
