"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Client creates a session -> engine configured and started
2. During the game the client forwards tile picks, skips and robot requests
3. Every engine notification is recorded in the session's EventLog
4. Game ends or client leaves -> session dropped, all state deleted

PERSISTENCE RULES:
- No database, no files
- Sessions are in-memory and process-local
- Finished or idle sessions are cleaned up after a maximum age
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import logging
import time
import uuid
from typing import Callable

from ..bots import BotPolicy
from ..engine_core.config import GameConfig, env_int
from ..engine_core.engine import GameEngine
from ..engine_core.events import EventLog, GameEvent
from ..engine_core.scheduler import AsyncioScheduler, Scheduler
from ..engine_core.state import GamePhase

logger = logging.getLogger(__name__)

SESSION_MAX_AGE = env_int("TRIPLET_SESSION_MAX_AGE", 3600)


class SessionState(Enum):
    """State of a game session."""
    SETUP = "setup"  # Configured, not started
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # Client left


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The engine for one game
    - The event log fed by the engine
    - Session metadata

    The session is destroyed when the client ends it.
    State is NOT persisted.
    """
    session_id: str
    engine: GameEngine
    events: EventLog
    created_at: float
    last_active: float = 0.0
    abandoned: bool = False

    @property
    def state(self) -> SessionState:
        if self.abandoned:
            return SessionState.ABANDONED
        if self.engine.is_game_over:
            return SessionState.GAME_OVER
        if self.engine.phase is GamePhase.SETUP:
            return SessionState.SETUP
        return SessionState.ACTIVE

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state in {SessionState.SETUP, SessionState.ACTIVE}

    def touch(self):
        self.last_active = time.time()


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with their own engine, scheduler and event log
    - Track active sessions
    - Clean up finished sessions

    No persistence - sessions are in-memory only.

    Args:
        scheduler_factory: Builds the timer source for each engine
            (AsyncioScheduler for the web service, ManualScheduler in tests)
        policy_factory: Builds the robot policy for each engine
            (RandomPolicy seeded from the game config if omitted)
    """

    def __init__(
        self,
        scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler,
        policy_factory: Callable[[], BotPolicy] | None = None,
    ):
        self._sessions: dict[str, Session] = {}
        self.scheduler_factory = scheduler_factory
        self.policy_factory = policy_factory

    def create_session(
        self,
        config: GameConfig,
        listener: Callable[[str, GameEvent], None] | None = None,
        start: bool = True,
    ) -> Session:
        """
        Create a new game session.

        Args:
            config: Validated game configuration
            listener: Optional callback receiving (session_id, event)
                for every engine notification
            start: Start play immediately (robots may begin moving)

        Returns:
            New Session
        """
        session_id = str(uuid.uuid4())

        events = EventLog()
        if listener:
            events.listener = lambda event: listener(session_id, event)

        engine = GameEngine(
            config=config,
            policy=self.policy_factory() if self.policy_factory else None,
            scheduler=self.scheduler_factory(),
        )
        engine.subscribe(events)

        now = time.time()
        session = Session(
            session_id=session_id,
            engine=engine,
            events=events,
            created_at=now,
            last_active=now,
        )
        self._sessions[session_id] = session
        logger.info(
            "Created session %s (%dx%d, robot: %s)",
            session_id, config.board_size, config.board_size,
            config.controls.robot_setting,
        )

        if start:
            engine.start()
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and clean up.

        Cancels any pending robot move and removes the session
        from memory.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False

        session.engine.close()
        if reason != "completed" and not session.engine.is_game_over:
            session.abandoned = True
        session.events.listener = None
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def list_sessions(self) -> list[str]:
        return list(self._sessions.keys())

    def cleanup_stale_sessions(self, max_age_seconds: int = SESSION_MAX_AGE) -> int:
        """
        Drop sessions idle longer than max_age.

        Called periodically to free memory.
        """
        current_time = time.time()
        to_remove = []

        for session_id, session in self._sessions.items():
            idle = current_time - session.last_active
            if idle > max_age_seconds:
                to_remove.append(session_id)

        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
