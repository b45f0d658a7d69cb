from __future__ import annotations

import contextlib
import re
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from imposter.messaging.encoder import DecodeError
from imposter.messaging.protocol import ConnectionProtocol
from imposter.messaging.types import ErrorMessage, SessionErrorCode
from imposter.server.rate_limit import TokenBucket
from imposter.server.types import MAX_SESSION_ID_LENGTH, SESSION_ID_PATTERN

logger = structlog.get_logger()

if TYPE_CHECKING:
    from imposter.messaging.router import MessageRouter

_SESSION_ID_RE = re.compile(SESSION_ID_PATTERN)

# Players click at human speed; timer ticks are server-driven and never count.
_RATE_LIMIT_RATE = 10.0
_RATE_LIMIT_BURST = 20

# Disconnect after this many consecutive undecodable frames
_MAX_DECODE_ERRORS = 5


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, session_id: str, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._session_id = session_id
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def session_id(self) -> str:
        return self._session_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        try:
            return await self._websocket.receive_bytes()
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    session_id = websocket.path_params["session_id"]
    if not _SESSION_ID_RE.match(session_id) or len(session_id) > MAX_SESSION_ID_LENGTH:
        await websocket.close(code=4000, reason="invalid_session_id")
        return

    await websocket.accept()

    connection = WebSocketConnection(websocket, session_id=session_id)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("websocket connected", session_id=session_id)
    await router.handle_connect(connection)

    bucket = TokenBucket(rate=_RATE_LIMIT_RATE, burst=_RATE_LIMIT_BURST)
    strikes = 0

    try:
        while True:
            try:
                data = await connection.receive_message()
            except DecodeError as e:
                strikes += 1
                logger.warning("undecodable frame", error=str(e), strikes=strikes)
                await _send_session_error(connection, SessionErrorCode.INVALID_MESSAGE, str(e))
                if strikes >= _MAX_DECODE_ERRORS:
                    logger.info("closing connection after repeated undecodable frames")
                    await connection.close(code=4004, reason="too_many_decode_errors")
                    return
                continue

            strikes = 0
            if bucket.consume():
                await router.handle_message(connection, data)
            else:
                await _send_session_error(connection, SessionErrorCode.RATE_LIMITED, "Too many messages")
    except (WebSocketDisconnect, RuntimeError, ConnectionError):
        pass
    finally:
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()


async def _send_session_error(connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
    await connection.send_message(ErrorMessage(code=code, message=message).model_dump())
