from __future__ import annotations

import logging
from dataclasses import dataclass

from . import errors
from .deck import DeckManager
from .errors import CorruptStateError
from .state import ActiveDictatorship, ActivePresident, Game, NoDictatorship, NoPresident
from .types import BOSS, SUBORDINATE, Phase
from .victory import TURN_LIMIT, ended_by, finish

logger = logging.getLogger(__name__)

PHASES: tuple[Phase, ...] = (
    "dictatorship",
    "subordinate_consultation",
    "subordinate_turn",
    "boss_turn",
    "turn_end",
)


@dataclass(frozen=True)
class PhaseChange:
    from_phase: Phase
    to_phase: Phase
    from_index: int
    to_index: int
    turn_count: int
    forced_end: bool = False


def check_consistency(game: Game) -> None:
    """Raise CorruptStateError if the snapshot cannot be acted on."""
    if game.phase not in PHASES:
        raise CorruptStateError(errors.BAD_SNAPSHOT, f"Unknown phase {game.phase!r}.")
    order = game.player_order
    if not order or len(set(order)) != len(order) or set(order) != set(game.players):
        raise CorruptStateError(
            errors.BAD_PLAYER_ORDER, "Player order does not match the players of this game."
        )
    bosses = [pid for pid in order if game.players[pid].role == BOSS]
    if len(bosses) != 1:
        raise CorruptStateError(errors.BAD_ROLES, f"Expected exactly one boss, found {len(bosses)}.")
    if not 0 <= game.current_player_index < len(order):
        raise CorruptStateError(
            errors.BAD_PLAYER_INDEX,
            f"Current player index {game.current_player_index} is outside the player order.",
        )
    current = game.players[order[game.current_player_index]]
    if game.phase == "boss_turn" and current.role != BOSS:
        raise CorruptStateError(errors.PHASE_ROLE_MISMATCH, "Boss turn but a subordinate is current.")
    if game.phase == "subordinate_turn" and current.role != SUBORDINATE:
        raise CorruptStateError(errors.PHASE_ROLE_MISMATCH, "Subordinate turn but the boss is current.")
    if game.phase in ("subordinate_turn", "boss_turn") and current.life <= 0 and not game.is_over:
        raise CorruptStateError(
            errors.DOWNED_CURRENT_PLAYER, f"Current player {current.id!r} is down during {game.phase}."
        )


def next_player_index(game: Game) -> int:
    """Next living player in fixed order after the current one."""
    n = len(game.player_order)
    for step in range(1, n + 1):
        idx = (game.current_player_index + step) % n
        if game.players[game.player_order[idx]].life > 0:
            return idx
    return (game.current_player_index + 1) % n


def first_subordinate_index(game: Game) -> int:
    fallback: int | None = None
    for idx, pid in enumerate(game.player_order):
        p = game.players[pid]
        if p.role != SUBORDINATE:
            continue
        if p.life > 0:
            return idx
        if fallback is None:
            fallback = idx
    if fallback is None:
        raise CorruptStateError(errors.BAD_ROLES, "Game has no subordinates.")
    return fallback


def next_phase(game: Game) -> Phase:
    if game.phase == "dictatorship":
        return "subordinate_consultation"
    if game.phase == "subordinate_consultation":
        return "subordinate_turn"
    if game.phase == "subordinate_turn":
        upcoming = game.players[game.player_order[next_player_index(game)]]
        return "boss_turn" if upcoming.role == BOSS else "subordinate_turn"
    if game.phase == "boss_turn":
        return "turn_end"
    return "dictatorship"


def _tick_president(game: Game) -> str | None:
    """Count the president down. Returns its card id once it expires."""
    pres = game.board.president
    if not isinstance(pres, ActivePresident):
        return None
    remaining = pres.turns_remaining - 1
    if remaining <= 0:
        game.board.president = NoPresident()
        logger.debug("president %s expired", pres.card_id)
        return pres.card_id
    game.board.president = ActivePresident(
        card_id=pres.card_id,
        owner=pres.owner,
        turns_remaining=remaining,
        placed_on_turn=pres.placed_on_turn,
    )
    return None


def _enter_dictatorship(game: Game) -> bool:
    """Start the next turn cycle. Returns True if the turn limit forced the end."""
    leaving: list[str] = []
    current = game.board.dictatorship
    if isinstance(current, ActiveDictatorship):
        leaving.append(current.card_id)
    game.board.dictatorship = NoDictatorship()
    expired = _tick_president(game)
    if expired is not None:
        leaving.append(expired)
    deck = DeckManager.for_board(game.board, game.catalog)
    deck.discard_many(leaving)
    deck.store(game.board)

    game.turn_count += 1
    # Hard stop past the last turn. The win checker normally ends the game
    # when turn_count reaches max_turns, so this only fires for snapshots
    # that were advanced without it.
    if game.turn_count > game.max_turns:
        game.phase = "turn_end"
        finish(game, ended_by(TURN_LIMIT))
        return True
    game.phase = "dictatorship"
    game.current_player_index = first_subordinate_index(game)
    return False


def advance(game: Game) -> PhaseChange:
    """Move ``game`` (a working copy) one step along the phase graph."""
    from_phase = game.phase
    from_index = game.current_player_index
    forced = False

    if from_phase == "subordinate_turn":
        target = next_phase(game)
        game.current_player_index = next_player_index(game)
        game.phase = target
    elif from_phase == "boss_turn":
        game.phase = "turn_end"
        game.current_player_index = first_subordinate_index(game)
    elif from_phase == "turn_end":
        forced = _enter_dictatorship(game)
    elif from_phase == "dictatorship":
        game.phase = "subordinate_consultation"
    else:
        game.phase = "subordinate_turn"
        game.current_player_index = first_subordinate_index(game)

    change = PhaseChange(
        from_phase=from_phase,
        to_phase=game.phase,
        from_index=from_index,
        to_index=game.current_player_index,
        turn_count=game.turn_count,
        forced_end=forced,
    )
    logger.debug("phase %s -> %s (turn %d)", from_phase, game.phase, game.turn_count)
    return change
