from __future__ import annotations

from dataclasses import dataclass

from .state import Game
from .types import Role

BOSS_DEFEATED = "boss_defeated"
SUBORDINATES_DEFEATED = "subordinates_defeated"
TURN_LIMIT = "turn_limit"

REASONS = {
    BOSS_DEFEATED: "boss defeated",
    SUBORDINATES_DEFEATED: "three or more subordinates down",
    TURN_LIMIT: "turn limit reached",
}


@dataclass(frozen=True)
class GameEnd:
    ended: bool
    winner: Role | None = None
    reason: str | None = None
    code: str | None = None


NOT_ENDED = GameEnd(ended=False)


_WINNERS: dict[str, Role] = {
    BOSS_DEFEATED: "subordinate",
    SUBORDINATES_DEFEATED: "boss",
    TURN_LIMIT: "subordinate",
}


def ended_by(code: str) -> GameEnd:
    return GameEnd(ended=True, winner=_WINNERS[code], reason=REASONS[code], code=code)


def check(game: Game) -> GameEnd:
    """Decide whether the game is over.

    Precedence: boss at 0 life, then three or more subordinates down, then
    the turn limit. The down threshold does not scale with the number of
    subordinates.
    """
    boss = game.boss
    if boss is not None and boss.life <= 0:
        return ended_by(BOSS_DEFEATED)

    down = sum(1 for p in game.subordinates() if p.life <= 0)
    if down >= game.config.boss_win_subordinates_down:
        return ended_by(SUBORDINATES_DEFEATED)

    if game.turn_count >= game.max_turns:
        return ended_by(TURN_LIMIT)

    return NOT_ENDED


def finish(game: Game, end: GameEnd) -> None:
    if not end.ended:
        return
    game.status = "ended"
    game.winner = end.winner
    game.end_reason = end.reason
    game.end_code = end.code
