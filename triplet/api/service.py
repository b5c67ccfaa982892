"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions
3. Maps engine results and errors to response models

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Callable

from .schemas import (
    # Requests
    CreateSessionRequest,
    SelectTileRequest,
    ConfigureRequest,
    # Responses
    ActionResponse,
    EndSessionResponse,
    ErrorResponse,
    EventsResponse,
    GameStateResponse,
    SessionResponse,
    # Shared
    ControlsInfo,
    EventInfo,
    ScoreInfo,
    # Enums
    ControlType,
    ErrorCode,
    SessionStatus,
)
from ..engine_core.action import ActionResult
from ..engine_core.config import GameConfig, parse_controls
from ..engine_core.events import EventKind, GameEvent
from ..engine_core.state import PlayerControl, PlayerControls
from ..errors import InvalidConfiguration, InvalidCoordinate
from ..session import Session, SessionManager, SessionState

logger = logging.getLogger(__name__)

_STATUS_BY_STATE = {
    SessionState.SETUP: SessionStatus.SETUP,
    SessionState.ACTIVE: SessionStatus.ACTIVE,
    SessionState.GAME_OVER: SessionStatus.GAME_OVER,
    SessionState.ABANDONED: SessionStatus.ABANDONED,
}


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Create session
        session_response = service.create_session(CreateSessionRequest(board_size=5))

        # Play
        action_response = service.select_tile(session_id, SelectTileRequest(row=0, col=1))

    Set `listener` to receive (session_id, event) for every engine
    notification of sessions created afterwards.
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    listener: Callable[[str, GameEvent], None] | None = None

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        """
        Create and start a new game session.

        Stale sessions are dropped first.
        """
        dropped = self.session_manager.cleanup_stale_sessions()
        if dropped:
            logger.info("Dropped %d stale session(s)", dropped)

        try:
            config = GameConfig.from_env(seed=request.seed).with_changes(
                board_size=request.board_size,
                controls=parse_controls(request.player_a.value, request.player_b.value),
            )
        except InvalidConfiguration as e:
            return self._error(ErrorCode.INVALID_CONFIGURATION, e.message, e.context)

        session = self.session_manager.create_session(config, listener=self.listener)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """Get session status."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found()
        return self._session_to_response(session)

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        """Get the full game state."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found()
        return self._game_state(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> EndSessionResponse:
        """End a session and release resources."""
        success = self.session_manager.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    def list_sessions(self) -> list[str]:
        """List active session IDs."""
        return self.session_manager.list_active_sessions()

    def get_events(self, session_id: str, since: int = 0) -> EventsResponse | ErrorResponse:
        """Events recorded after the given sequence number."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found()

        events = session.events.since(since)
        return EventsResponse(
            session_id=session_id,
            events=[EventInfo(**e.to_dict()) for e in events],
            last_event=self._last_sequence(session),
        )

    # =========================================================================
    # Gameplay
    # =========================================================================

    def select_tile(
        self,
        session_id: str,
        request: SelectTileRequest,
    ) -> ActionResponse | ErrorResponse:
        """Select or deselect a tile; the third tile resolves a move."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found()

        mark = self._last_sequence(session)
        try:
            result = session.engine.select_tile(request.row, request.col)
        except InvalidCoordinate as e:
            return self._error(ErrorCode.INVALID_COORDINATE, e.message, e.context)
        return self._action_response(session, result, mark)

    def skip_turn(self, session_id: str) -> ActionResponse | ErrorResponse:
        """Voluntarily pass the current turn."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found()

        mark = self._last_sequence(session)
        result = session.engine.skip_turn()
        return self._action_response(session, result, mark)

    def request_robot_move(self, session_id: str) -> ActionResponse | ErrorResponse:
        """Let the robot play the current side."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found()

        mark = self._last_sequence(session)
        result = session.engine.request_robot_move()
        return self._action_response(session, result, mark)

    def configure(
        self,
        session_id: str,
        request: ConfigureRequest,
    ) -> ActionResponse | ErrorResponse:
        """
        Re-initialise a session with a new board size and/or controls.

        The new game starts right away. On a rejected configuration the
        current game is kept.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found()

        engine = session.engine
        current = engine.controls
        controls = PlayerControls(
            player_a=self._control(request.player_a, current.player_a),
            player_b=self._control(request.player_b, current.player_b),
        )

        mark = self._last_sequence(session)
        try:
            engine.configure(request.board_size, controls)
        except InvalidConfiguration as e:
            return self._error(ErrorCode.INVALID_CONFIGURATION, e.message, e.context)

        result = engine.start()
        return self._action_response(session, result, mark)

    # =========================================================================
    # Conversion helpers
    # =========================================================================

    @staticmethod
    def _control(requested: ControlType | None, current: PlayerControl) -> PlayerControl:
        if requested is None:
            return current
        return PlayerControl(requested.value)

    @staticmethod
    def _last_sequence(session: Session) -> int:
        events = session.events.events
        return events[-1].sequence if events else 0

    @staticmethod
    def _error(code: ErrorCode, message: str, details: dict | None = None) -> ErrorResponse:
        return ErrorResponse(error=message, error_code=code, details=details or None)

    def _session_not_found(self) -> ErrorResponse:
        return self._error(ErrorCode.SESSION_NOT_FOUND, "Session not found")

    def _status(self, session: Session) -> SessionStatus:
        state = session.state
        if state is SessionState.ACTIVE and session.engine.robot_pending:
            return SessionStatus.ROBOT_THINKING
        return _STATUS_BY_STATE[state]

    def _action_response(
        self,
        session: Session,
        result: ActionResult,
        mark: int,
    ) -> ActionResponse:
        session.touch()
        messages = [
            e.payload["text"]
            for e in session.events.since(mark)
            if e.kind is EventKind.MESSAGE
        ]
        return ActionResponse(
            session_id=session.session_id,
            success=result.success,
            error=result.error,
            error_code=ErrorCode(result.error_code) if result.error_code else None,
            state_changes=result.state_changes,
            messages=messages,
            game_state=self._game_state(session),
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        return SessionResponse(
            session_id=session.session_id,
            status=self._status(session),
            created_at=session.created_at,
            game_state=self._game_state(session),
        )

    def _game_state(self, session: Session) -> GameStateResponse:
        engine = session.engine
        controls = engine.controls
        score = engine.score

        return GameStateResponse(
            session_id=session.session_id,
            status=self._status(session),
            board_size=engine.board.size,
            board=engine.board.to_rows(),
            scores=ScoreInfo(player_a=score.player_a, player_b=score.player_b),
            current_player=engine.current_player.value,
            selection=[list(c) for c in engine.selection],
            controls=ControlsInfo(
                player_a=ControlType(controls.player_a.value),
                player_b=ControlType(controls.player_b.value),
                robot=controls.robot_setting,
            ),
            robot_pending=engine.robot_pending,
            winner=engine.winner.value if engine.winner else None,
            is_game_over=engine.is_game_over,
            last_action=engine.history[-1].describe() if engine.history else None,
            last_event=self._last_sequence(session),
        )
