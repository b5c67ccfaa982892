"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a browser or terminal client
and the engine. All responses include explicit types for OpenAPI
schema generation.

Error Codes:
- INVALID_COORDINATE: Row/column outside the board or not integers
- ILLEGAL_DISCONNECTED: The three selected tiles are not connected
- ILLEGAL_MAJORITY: Fewer than two of the selected tiles belong to the mover
- INVALID_CONFIGURATION: Board size or player controls rejected
- SESSION_NOT_FOUND: Session does not exist or has expired
- GAME_NOT_STARTED / GAME_OVER / ROBOT_PENDING: Input not accepted right now
- TILE_TAKEN: The tile was already captured
- NO_LEGAL_MOVES: A robot move was requested for a side without moves
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.config import MIN_BOARD_SIZE, MAX_BOARD_SIZE


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    SETUP = "setup"
    ACTIVE = "active"
    ROBOT_THINKING = "robot_thinking"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class ControlType(str, Enum):
    """Who drives a side."""
    HUMAN = "human"
    ROBOT = "robot"


class ErrorCode(str, Enum):
    """Structured error codes."""
    INVALID_COORDINATE = "INVALID_COORDINATE"
    ILLEGAL_DISCONNECTED = "ILLEGAL_DISCONNECTED"
    ILLEGAL_MAJORITY = "ILLEGAL_MAJORITY"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    GAME_NOT_STARTED = "GAME_NOT_STARTED"
    GAME_OVER = "GAME_OVER"
    ROBOT_PENDING = "ROBOT_PENDING"
    TILE_TAKEN = "TILE_TAKEN"
    NO_LEGAL_MOVES = "NO_LEGAL_MOVES"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class ScoreInfo(BaseModel):
    """Captured tiles per player."""
    player_a: int = Field(0, description="Score of O")
    player_b: int = Field(0, description="Score of X")


class ControlsInfo(BaseModel):
    """Control assignment for both sides."""
    player_a: ControlType = ControlType.HUMAN
    player_b: ControlType = ControlType.HUMAN
    robot: str = Field("neither", description="neither, O, X or both")


class EventInfo(BaseModel):
    """A recorded engine notification."""
    sequence: int
    kind: str = Field(
        ..., description="board_changed, score_changed, selection_changed, "
                         "turn_changed, message, game_over"
    )
    payload: dict[str, Any] = Field(default_factory=dict)

    model_config = {"from_attributes": True}


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create and start a new game session."""
    board_size: int = Field(
        7, ge=MIN_BOARD_SIZE, le=MAX_BOARD_SIZE, description="Side length of the board"
    )
    player_a: ControlType = Field(ControlType.HUMAN, description="Who plays O")
    player_b: ControlType = Field(ControlType.HUMAN, description="Who plays X")
    seed: Optional[int] = Field(None, description="Seed for reproducible boards and robots")


class SelectTileRequest(BaseModel):
    """Request to select or deselect one tile."""
    row: int = Field(..., description="0-indexed row")
    col: int = Field(..., description="0-indexed column")


class ConfigureRequest(BaseModel):
    """Request to re-initialise a session with a new size and/or controls."""
    board_size: int = Field(..., description="Side length of the new board")
    player_a: Optional[ControlType] = Field(None, description="Keep current if omitted")
    player_b: Optional[ControlType] = Field(None, description="Keep current if omitted")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    status: SessionStatus
    board_size: int
    board: list[str] = Field(
        default_factory=list, description="One string per row; O, X or '.' for captured"
    )
    scores: ScoreInfo = Field(default_factory=ScoreInfo)
    current_player: str = Field(..., description="O or X")
    selection: list[list[int]] = Field(default_factory=list)
    controls: ControlsInfo = Field(default_factory=ControlsInfo)
    robot_pending: bool = False
    winner: Optional[str] = Field(None, description="O, X, or null on a tie / unfinished game")
    is_game_over: bool = False
    last_action: Optional[str] = None
    last_event: int = Field(0, description="Sequence number of the latest event")
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Response after a select, skip, robot or configure request."""
    session_id: str
    success: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    state_changes: list[str] = Field(default_factory=list)
    messages: list[str] = Field(
        default_factory=list, description="Messages the engine announced during the request"
    )
    game_state: Optional[GameStateResponse] = None
    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    created_at: float = 0.0
    game_state: GameStateResponse
    api_version: str = "v1"


class EventsResponse(BaseModel):
    """Events recorded after a given sequence number."""
    session_id: str
    events: list[EventInfo] = Field(default_factory=list)
    last_event: int = 0


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    active_sessions: int = 0
