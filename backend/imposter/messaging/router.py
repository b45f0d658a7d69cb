from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from imposter.messaging.types import (
    AdvanceClueMessage,
    CreateSessionMessage,
    EndGameMessage,
    ErrorMessage,
    JoinMessage,
    LeaveMessage,
    PingMessage,
    ReadyNextRoundMessage,
    RequestRosterMessage,
    ResyncMessage,
    SessionErrorCode,
    SetReadyMessage,
    StartGameMessage,
    SubmitVoteMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from imposter.messaging.protocol import ConnectionProtocol
    from imposter.session.manager import SessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes incoming messages to the session manager.

    Contains no transport code, so it can be driven by a mock connection.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await connection.send_message(
                ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(),
            )
            return

        try:
            await self._dispatch(connection, message)
        except Exception:
            logger.exception("action failed for %s", connection.connection_id)
            await connection.send_message(
                ErrorMessage(code=SessionErrorCode.ACTION_FAILED, message="action failed").model_dump(),
            )

    async def _dispatch(self, connection: ConnectionProtocol, message: Any) -> None:  # noqa: ANN401
        manager = self._session_manager
        if isinstance(message, CreateSessionMessage):
            await manager.handle_create_session(connection, message.difficulty)
        elif isinstance(message, JoinMessage):
            await manager.join(connection, message.name, message.slot)
        elif isinstance(message, ResyncMessage):
            await manager.resync(connection, message.name, message.slot)
        elif isinstance(message, SetReadyMessage):
            await manager.set_ready(connection, ready=message.ready)
        elif isinstance(message, StartGameMessage):
            await manager.start_game(connection)
        elif isinstance(message, AdvanceClueMessage):
            await manager.advance_clue(connection)
        elif isinstance(message, SubmitVoteMessage):
            await manager.submit_vote(connection, message.voted)
        elif isinstance(message, ReadyNextRoundMessage):
            await manager.ready_next_round(connection)
        elif isinstance(message, EndGameMessage):
            await manager.end_game(connection)
        elif isinstance(message, LeaveMessage):
            await manager.leave(connection)
        elif isinstance(message, RequestRosterMessage):
            await manager.request_roster(connection)
        elif isinstance(message, PingMessage):
            await manager.handle_ping(connection)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.handle_disconnect(connection)
