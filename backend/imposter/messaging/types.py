from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from imposter.logic.enums import Difficulty, GameErrorCode
from imposter.logic.state import MAX_NAME_LENGTH, MAX_SLOT_LENGTH

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F


def _reject_control_chars(v: str) -> str:
    if any(ord(c) < _SPACE_ORD or ord(c) == _DEL_ORD for c in v):
        raise ValueError("must not contain control characters")
    return v


class ClientMessageType(StrEnum):
    CREATE_SESSION = "create_session"
    JOIN = "join"
    RESYNC = "resync"
    SET_READY = "set_ready"
    START_GAME = "start_game"
    ADVANCE_CLUE = "advance_clue"
    SUBMIT_VOTE = "submit_vote"
    READY_NEXT_ROUND = "ready_next_round"
    END_GAME = "end_game"
    LEAVE = "leave"
    REQUEST_ROSTER = "request_roster"
    PING = "ping"


class SessionMessageType(StrEnum):
    SESSION_CREATED = "session_created"
    ERROR = "session_error"
    PONG = "pong"


class SessionErrorCode(StrEnum):
    """Transport-level failures. Game rule rejections use GameErrorCode."""

    INVALID_MESSAGE = "invalid_message"
    ACTION_FAILED = "action_failed"
    RATE_LIMITED = "rate_limited"
    ALREADY_IN_SESSION = "already_in_session"


# name and slot are validated by the roster (trimming, slot pattern) so
# rejections carry the game error codes; here only the raw size is bounded
_NAME_FIELD = Field(max_length=MAX_NAME_LENGTH * 4)
_SLOT_FIELD = Field(max_length=MAX_SLOT_LENGTH * 4)


class CreateSessionMessage(BaseModel):
    type: Literal[ClientMessageType.CREATE_SESSION] = ClientMessageType.CREATE_SESSION
    difficulty: Difficulty | None = None


class JoinMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN] = ClientMessageType.JOIN
    name: str = _NAME_FIELD
    slot: str = _SLOT_FIELD

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return _reject_control_chars(v)


class ResyncMessage(BaseModel):
    type: Literal[ClientMessageType.RESYNC] = ClientMessageType.RESYNC
    name: str = _NAME_FIELD
    slot: str = _SLOT_FIELD


class SetReadyMessage(BaseModel):
    type: Literal[ClientMessageType.SET_READY] = ClientMessageType.SET_READY
    ready: bool


class StartGameMessage(BaseModel):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME


class AdvanceClueMessage(BaseModel):
    type: Literal[ClientMessageType.ADVANCE_CLUE] = ClientMessageType.ADVANCE_CLUE


class SubmitVoteMessage(BaseModel):
    type: Literal[ClientMessageType.SUBMIT_VOTE] = ClientMessageType.SUBMIT_VOTE
    voted: str = _SLOT_FIELD


class ReadyNextRoundMessage(BaseModel):
    type: Literal[ClientMessageType.READY_NEXT_ROUND] = ClientMessageType.READY_NEXT_ROUND


class EndGameMessage(BaseModel):
    type: Literal[ClientMessageType.END_GAME] = ClientMessageType.END_GAME


class LeaveMessage(BaseModel):
    type: Literal[ClientMessageType.LEAVE] = ClientMessageType.LEAVE


class RequestRosterMessage(BaseModel):
    type: Literal[ClientMessageType.REQUEST_ROSTER] = ClientMessageType.REQUEST_ROSTER


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = Annotated[
    CreateSessionMessage
    | JoinMessage
    | ResyncMessage
    | SetReadyMessage
    | StartGameMessage
    | AdvanceClueMessage
    | SubmitVoteMessage
    | ReadyNextRoundMessage
    | EndGameMessage
    | LeaveMessage
    | RequestRosterMessage
    | PingMessage,
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)


class SessionCreatedMessage(BaseModel):
    type: Literal[SessionMessageType.SESSION_CREATED] = SessionMessageType.SESSION_CREATED
    session_id: str
    difficulty: Difficulty
    created: bool


class ErrorMessage(BaseModel):
    type: Literal[SessionMessageType.ERROR] = SessionMessageType.ERROR
    code: SessionErrorCode | GameErrorCode
    message: str


class PongMessage(BaseModel):
    type: Literal[SessionMessageType.PONG] = SessionMessageType.PONG


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw dict into a typed client message, discriminated on `type`."""
    return _client_message_adapter.validate_python(data)
