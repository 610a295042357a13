"""Rule predicates the engine exposes without enforcing.

The no-overtime day and the resignation letter are house rules: callers
(a table UI, an AI) can ask about them, but no engine operation changes
its behaviour because of them.
"""

from __future__ import annotations

from .state import Game, GameConfig, Player
from .types import BOSS


def is_no_overtime_day(turn: int, config: GameConfig | None = None) -> bool:
    cfg = config or GameConfig()
    return turn == cfg.no_overtime_turn


def alive_subordinates(game: Game) -> int:
    return sum(1 for p in game.subordinates() if not p.is_down)


def can_submit_resignation(game: Game, player_id: str) -> bool:
    """A standing subordinate may resign once few enough subordinates remain."""
    player = game.players.get(player_id)
    if player is None or player.role == BOSS or player.is_down:
        return False
    return alive_subordinates(game) <= game.config.resignation_max_alive


def resignation_damage(player: Player) -> int:
    """Damage a resignation deals: the life the player has lost so far."""
    return player.max_life - player.life
