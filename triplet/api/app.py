"""
FastAPI Application - REST + WebSocket API for Triplet.

Endpoints:
    POST   /api/v1/sessions                 Create and start a game session
    GET    /api/v1/sessions                 List active sessions
    GET    /api/v1/sessions/{id}            Get session status and game state
    DELETE /api/v1/sessions/{id}            End session
    GET    /api/v1/sessions/{id}/state      Get game state
    POST   /api/v1/sessions/{id}/select     Select or deselect a tile
    POST   /api/v1/sessions/{id}/skip       Skip the current turn
    POST   /api/v1/sessions/{id}/robot      Let the robot move for the current side
    POST   /api/v1/sessions/{id}/configure  Start over with a new size/controls
    GET    /api/v1/sessions/{id}/events     Events after a sequence number
    WS     /api/v1/sessions/{id}/ws         WebSocket for real-time updates

Robot Flow:
    Robot moves run on the server's event loop. The robot's pick shows
    up as the selection right away (robot_pending=true); the capture is
    committed after the robot delay and pushed to WebSocket clients.
    Clients without a WebSocket can poll /events.

All bodies are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Union
import asyncio
import json
import logging
import os

logger = logging.getLogger(__name__)

# Environment configuration
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
        from fastapi.encoders import jsonable_encoder
        from fastapi.exceptions import RequestValidationError
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from ..engine_core.events import GameEvent
    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        SelectTileRequest,
        ConfigureRequest,
        # Response models
        ActionResponse,
        ErrorResponse,
        EventsResponse,
        GameStateResponse,
        SessionResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Triplet API",
        description="""
Two-player tile-capture board game.

## Rules

Players take turns selecting three connected tiles (a line or an L).
At least two of them must carry the mover's symbol; the mover scores
that many points and the tiles are removed. A player without a legal
move is passed automatically, and the game ends when both are stuck.

## Error Codes

| Code | Description |
|------|-------------|
| `INVALID_COORDINATE` | Row/column outside the board |
| `ILLEGAL_DISCONNECTED` | Selected tiles are not connected |
| `ILLEGAL_MAJORITY` | Fewer than two of the tiles are yours |
| `INVALID_CONFIGURATION` | Board size or controls rejected |
| `SESSION_NOT_FOUND` | Session does not exist |
| `ROBOT_PENDING` | A robot move is in progress |
| `VALIDATION_ERROR` | Request failed validation (HTTP 422) |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # WebSocket connections and one outbound queue per session
    ws_connections: dict[str, list[WebSocket]] = {}
    outboxes: dict[str, asyncio.Queue] = {}
    background_tasks: set[asyncio.Task] = set()
    app.state.ws_connections = ws_connections
    app.state.background_tasks = background_tasks

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        response: ErrorResponse,
        status_code: int = 400,
    ) -> JSONResponse:
        """Turn a service ErrorResponse into an HTTP error."""
        if response.error_code is ErrorCode.SESSION_NOT_FOUND:
            status_code = 404
        return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request, exc: RequestValidationError) -> JSONResponse:
        """Report malformed requests with the common error shape."""
        return make_error_response(
            ErrorResponse(
                error="Invalid request",
                error_code=ErrorCode.VALIDATION_ERROR,
                details={"errors": jsonable_encoder(exc.errors())},
            ),
            status_code=422,
        )

    # =========================================================================
    # WebSocket push
    # =========================================================================

    async def broadcast_to_session(session_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a session."""
        connections = ws_connections.get(session_id, [])
        for ws in list(connections):
            try:
                await ws.send_json(message)
            except Exception:
                logger.debug("Dropping dead WebSocket for session %s", session_id)
                if ws in connections:
                    connections.remove(ws)

    async def drain_outbox(session_id: str, outbox: asyncio.Queue):
        """Send queued messages one at a time until the queue is empty."""
        try:
            while not outbox.empty():
                await broadcast_to_session(session_id, outbox.get_nowait())
        finally:
            if outboxes.get(session_id) is outbox:
                del outboxes[session_id]

    def on_push_done(task: asyncio.Task):
        background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("WebSocket push failed", exc_info=error)

    def on_engine_event(session_id: str, event: GameEvent):
        """Forward engine notifications to WebSocket clients."""
        if not ws_connections.get(session_id):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop, event %d not pushed", event.sequence)
            return
        outbox = outboxes.get(session_id)
        if outbox is None:
            outbox = outboxes[session_id] = asyncio.Queue()
            task = loop.create_task(drain_outbox(session_id, outbox))
            background_tasks.add(task)
            task.add_done_callback(on_push_done)
        outbox.put_nowait({"type": "event", "payload": event.to_dict()})

    api_service.listener = on_engine_event

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid configuration"}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(request: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Create and start a new game session.

        If O is robot-controlled its first move is scheduled immediately.
        """
        response = api_service.create_session(request)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the current status of a game session."""
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a game session and release resources."""
        response = api_service.end_session(session_id, reason)
        for ws in ws_connections.pop(session_id, []):
            await ws.close()
        return response

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Board, scores, turn, selection and controls."""
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/select",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Coordinate outside the board"},
            404: {"model": ErrorResponse},
        },
        tags=["Game"],
        summary="Select or deselect a tile",
    )
    async def select_tile(
        session_id: str,
        request: SelectTileRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        """
        Toggle a tile in the selection.

        Selecting a third tile resolves the move. Illegal moves come back
        with `success=false` and `ILLEGAL_DISCONNECTED` or `ILLEGAL_MAJORITY`.
        """
        response = api_service.select_tile(session_id, request)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/skip",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Skip the current turn",
    )
    async def skip_turn(session_id: str) -> Union[ActionResponse, JSONResponse]:
        """Pass the turn to the other player."""
        response = api_service.skip_turn(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/robot",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Let the robot move",
    )
    async def request_robot_move(session_id: str) -> Union[ActionResponse, JSONResponse]:
        """Schedule a robot move for the current side, whoever controls it."""
        response = api_service.request_robot_move(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/configure",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid configuration"},
            404: {"model": ErrorResponse},
        },
        tags=["Game"],
        summary="Start over with a new board size and/or controls",
    )
    async def configure(
        session_id: str,
        request: ConfigureRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        """Regenerate the board and reset scores; the current game is kept on error."""
        response = api_service.configure(session_id, request)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/events",
        response_model=EventsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get events after a sequence number",
    )
    async def get_events(
        session_id: str,
        since: Annotated[int, Query(ge=0, description="Last sequence number seen")] = 0,
    ) -> Union[EventsResponse, JSONResponse]:
        """Poll for engine notifications."""
        response = api_service.get_events(session_id, since)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Full game state (sent on connect)
        - event: An engine notification (board, score, selection,
          turn, message, game_over)
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            await websocket.send_json({
                "type": "error",
                "payload": response.model_dump(mode="json"),
            })
            await websocket.close()
            return

        ws_connections.setdefault(session_id, []).append(websocket)
        try:
            await websocket.send_json({
                "type": "state_update",
                "payload": response.model_dump(mode="json"),
            })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})

        except WebSocketDisconnect:
            logger.debug("WebSocket closed for session %s", session_id)
        finally:
            if websocket in ws_connections.get(session_id, []):
                ws_connections[session_id].remove(websocket)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="triplet",
            version=__version__,
            active_sessions=len(api_service.list_sessions()),
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Triplet API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn triplet.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
