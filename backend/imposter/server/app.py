from __future__ import annotations

import contextlib
import json
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from imposter.logic.timer import TimerConfig
from imposter.logic.words import JsonWordSource
from imposter.messaging.router import MessageRouter
from imposter.server.settings import ImposterServerSettings
from imposter.server.types import CreateSessionRequest
from imposter.server.websocket import websocket_endpoint
from imposter.session.manager import SessionLimitError, SessionManager
from shared.build_info import APP_VERSION, GIT_COMMIT
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request
    from starlette.websockets import WebSocket

    from imposter.logic.words import WordSource


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION, "commit": GIT_COMMIT})


async def status(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: ImposterServerSettings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            "version": APP_VERSION,
            "commit": GIT_COMMIT,
            "sessions": session_manager.session_count,
            "connections": session_manager.connection_count,
            "max_sessions": settings.max_sessions,
        },
    )


_MAX_REQUEST_BODY_SIZE = 1024


async def create_session(request: Request) -> JSONResponse:
    """Create a session, or report the existing one. Idempotent per session_id."""
    session_manager: SessionManager = request.app.state.session_manager

    try:
        raw_body = await request.body()
        if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
            return JSONResponse({"error": "Request body too large"}, status_code=413)
        session_request = CreateSessionRequest(**json.loads(raw_body))
    except (ValueError, TypeError, json.JSONDecodeError, UnicodeDecodeError, ValidationError):
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    try:
        actor, created = session_manager.create_session(session_request.session_id, session_request.difficulty)
    except SessionLimitError:
        return JSONResponse({"error": "Server at capacity"}, status_code=503)

    return JSONResponse(
        {
            "session_id": actor.session_id,
            "difficulty": actor.session.difficulty.value,
            "phase": actor.session.phase.value,
            "created": created,
        },
        status_code=201 if created else 200,
    )


def create_app(
    settings: ImposterServerSettings | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
    word_source: WordSource | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ImposterServerSettings()

    if session_manager is None:
        if word_source is None:
            word_source = JsonWordSource(settings.word_dir)
        session_manager = SessionManager(
            word_source,
            timer_config=TimerConfig.from_settings(settings),
            default_difficulty=settings.default_difficulty,
            max_sessions=settings.max_sessions,
            min_players=settings.min_players,
            disconnect_grace_seconds=settings.disconnect_grace_seconds,
        )

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/sessions", create_session, methods=["POST"]),
        WebSocketRoute("/ws/{session_id}", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        await session_manager.close()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("imposter server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    _settings = ImposterServerSettings()
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)
