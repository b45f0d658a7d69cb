"""Typed domain exceptions for rejected player actions.

Every rule violation raised by the logic layer derives from GameRuleError and
carries a GameErrorCode. The session manager catches GameRuleError at its
boundary and reports the code to the requesting connection only; the session
itself is never mutated by a rejected action.
"""

from imposter.logic.enums import GameErrorCode


class GameRuleError(Exception):
    """Base exception for rejected player actions."""

    code: GameErrorCode

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidNameError(GameRuleError):
    """Display name is empty after trimming or longer than allowed."""

    code = GameErrorCode.INVALID_NAME


class InvalidSlotError(GameRuleError):
    """Slot identifier does not match "Player N" with N in range."""

    code = GameErrorCode.INVALID_SLOT


class SlotTakenError(GameRuleError):
    """Slot is held by a player with a different name."""

    code = GameErrorCode.SLOT_TAKEN


class SessionNotFoundError(GameRuleError):
    code = GameErrorCode.SESSION_NOT_FOUND


class PlayerNotFoundError(GameRuleError):
    code = GameErrorCode.PLAYER_NOT_FOUND


class NotInSessionError(GameRuleError):
    """Connection has not joined a session yet."""

    code = GameErrorCode.NOT_IN_SESSION


class NotHostError(GameRuleError):
    """A host-only action was requested by another player."""

    code = GameErrorCode.NOT_HOST


class NotYourTurnError(GameRuleError):
    code = GameErrorCode.NOT_YOUR_TURN


class InvalidPhaseError(GameRuleError):
    code = GameErrorCode.INVALID_PHASE


class NotEnoughPlayersError(GameRuleError):
    code = GameErrorCode.NOT_ENOUGH_PLAYERS


class PlayersNotReadyError(GameRuleError):
    code = GameErrorCode.PLAYERS_NOT_READY


class WordSourceError(Exception):
    """Raised by a word source that cannot supply pairs for a tier.

    Internal only: round setup recovers from it by falling back to easier
    tiers and finally to the emergency pair. Never reported to players.
    """
