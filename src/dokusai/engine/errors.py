from __future__ import annotations

# Rejection codes. Rejections are returned to the caller, never raised.
NOT_YOUR_TURN = "NOT_YOUR_TURN"
WRONG_PHASE = "WRONG_PHASE"
UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
CARD_NOT_FOUND = "CARD_NOT_FOUND"
CARD_NOT_PLAYABLE = "CARD_NOT_PLAYABLE"
CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
TARGET_REQUIRED = "TARGET_REQUIRED"
INVALID_TARGET = "INVALID_TARGET"
ROLE_FORBIDDEN = "ROLE_FORBIDDEN"
PRESIDENT_ON_BOARD = "PRESIDENT_ON_BOARD"
NO_CARDS_AVAILABLE = "NO_CARDS_AVAILABLE"
NO_DICTATORSHIP_CARD = "NO_DICTATORSHIP_CARD"
ALREADY_DRAWN = "ALREADY_DRAWN"
ALREADY_NULLIFIED = "ALREADY_NULLIFIED"
NULLIFICATION_LIMIT = "NULLIFICATION_LIMIT"
PLAYER_DOWN = "PLAYER_DOWN"
GAME_ENDED = "GAME_ENDED"
UNKNOWN_ACTION = "UNKNOWN_ACTION"
STALE_SNAPSHOT = "STALE_SNAPSHOT"

# Corrupt-state codes.
BAD_PLAYER_ORDER = "BAD_PLAYER_ORDER"
BAD_PLAYER_INDEX = "BAD_PLAYER_INDEX"
BAD_ROLES = "BAD_ROLES"
PHASE_ROLE_MISMATCH = "PHASE_ROLE_MISMATCH"
DOWNED_CURRENT_PLAYER = "DOWNED_CURRENT_PLAYER"
BAD_SNAPSHOT = "BAD_SNAPSHOT"


class CorruptStateError(RuntimeError):
    """The snapshot handed to the engine violates a structural invariant.

    This points at a caller bug or a lost write race, not a player mistake.
    """

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")
