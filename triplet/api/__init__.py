"""
API Module - HTTP interface.

Exposes the engine via a REST + WebSocket API.
A client:
1. Creates a game session
2. Selects tiles, skips, or asks the robot to move
3. Receives state updates and engine messages

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    SelectTileRequest,
    ConfigureRequest,
    # Responses
    ActionResponse,
    SessionResponse,
    GameStateResponse,
    EventsResponse,
    ErrorResponse,
    # Enums
    ControlType,
    ErrorCode,
    SessionStatus,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "SelectTileRequest",
    "ConfigureRequest",
    # Responses
    "ActionResponse",
    "SessionResponse",
    "GameStateResponse",
    "EventsResponse",
    "ErrorResponse",
    # Enums
    "ControlType",
    "ErrorCode",
    "SessionStatus",
    # Service
    "APIService",
    "create_app",
]
