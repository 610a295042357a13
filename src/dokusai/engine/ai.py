from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from . import effects
from .actions import (
    Action,
    DictatorshipAction,
    DrawCardAction,
    EndConsultationAction,
    NullifyAction,
    PassTurnAction,
    PlayCardAction,
)
from .game import start_game, step
from .rng import SeededRandom
from .state import ActiveDictatorship, ActivePresident, Game, GameConfig, Player, nullification_key
from .types import BOSS, SUBORDINATE, CardCatalog


@dataclass(frozen=True)
class BotSpec:
    """Tuning for the scripted players.

    cards_per_turn: how many cards a bot plays before passing its turn.
    nullify: whether subordinates spend nullifications on cards aimed at them.
    """

    cards_per_turn: int = 1
    nullify: bool = True


def acting_player(game: Game) -> str | None:
    """Who is expected to act next (the boss during the dictatorship phase)."""
    if game.is_over:
        return None
    if game.phase == "dictatorship":
        boss = game.boss
        return boss.id if boss is not None else None
    return game.current_player_id


def _done_this_turn(game: Game, player_id: str, kind: str) -> int:
    return sum(
        1
        for r in game.turn_history
        if r.turn_number == game.turn_count
        and r.phase == game.phase
        and r.player_id == player_id
        and r.type == kind
    )


def _weakest(players: Sequence[Player]) -> Player | None:
    alive = [p for p in players if p.life > 0]
    if not alive:
        return None
    return min(alive, key=lambda p: p.life)


def _candidates(game: Game, actor: Player) -> list[tuple[str, str | None]]:
    """(category, target) pairs in the order this bot prefers them."""
    subs = game.subordinates()
    out: list[tuple[str, str | None]] = []
    if actor.role == BOSS:
        if actor.life <= game.config.boss_life - 2:
            out.append(("recovery", actor.id))
        victim = _weakest(subs)
        if victim is not None:
            out.append(("attack", victim.id))
        out.append(("president", None))
        out.append(("defense", None))
        return out

    downed = [p for p in subs if p.life <= 0]
    if downed:
        out.append(("recovery", downed[0].id))
    hurt = [p for p in subs if 0 < p.life < p.max_life]
    if hurt:
        out.append(("recovery", min(hurt, key=lambda p: p.life).id))
    boss = game.boss
    if boss is not None and actor.life >= 2:
        out.append(("attack", boss.id))
    out.append(("defense", None))
    out.append(("president", None))
    return out


def _pick_play(game: Game, actor: Player) -> PlayCardAction | None:
    hand = game.hands.get(actor.id, [])
    for category, target in _candidates(game, actor):
        if category == "president" and isinstance(game.board.president, ActivePresident):
            continue
        for card_id in hand:
            card = game.catalog.find_by_id(card_id)
            if card is None or card.category != category:
                continue
            if effects.validate(game, actor.id, card_id, target).ok:
                return PlayCardAction(player=actor.id, card_id=card_id, target=target)
    return None


def _wants_nullify(game: Game, actor: Player) -> bool:
    current = game.board.dictatorship
    if not isinstance(current, ActiveDictatorship) or current.is_nullified:
        return False
    if current.target not in (SUBORDINATE, "all"):
        return False
    subs = game.subordinate_count
    used = game.board.nullifications_used.get(nullification_key(subs), 0)
    return used < game.config.nullification_limit(subs)


def choose_action(game: Game, player_id: str, spec: BotSpec | None = None) -> Action | None:
    """Deterministic scripted move for ``player_id``, or None if it has nothing to do."""
    spec = spec or BotSpec()
    if game.is_over or player_id not in game.players:
        return None
    actor = game.players[player_id]

    if game.phase == "dictatorship":
        return DictatorshipAction(player=player_id) if actor.role == BOSS else None

    if game.phase == "subordinate_consultation":
        if actor.role != SUBORDINATE:
            return None
        if spec.nullify and _wants_nullify(game, actor):
            return NullifyAction(player=player_id)
        return EndConsultationAction(player=player_id)

    if game.current_player_id != player_id:
        return None
    if game.phase == "turn_end":
        return PassTurnAction(player=player_id)

    if not game.hands.get(player_id) and _done_this_turn(game, player_id, "draw-card") == 0:
        if game.board.work_deck or any(game.catalog.is_work_card(c) for c in game.board.discard_pile):
            return DrawCardAction(player=player_id)
    if _done_this_turn(game, player_id, "play-card") < spec.cards_per_turn:
        play = _pick_play(game, actor)
        if play is not None:
            return play
    return PassTurnAction(player=player_id)


def play_out(
    catalog: CardCatalog,
    player_ids: Sequence[str],
    seed: int,
    *,
    config: GameConfig | None = None,
    spec: BotSpec | None = None,
    max_steps: int = 1000,
) -> tuple[Game, list[Action]]:
    """Run a whole game with every seat scripted. Returns the final game and its actions."""
    rng = SeededRandom(seed)
    game = start_game(catalog, player_ids, rng=rng, config=config)
    actions: list[Action] = []
    for _ in range(max_steps):
        pid = acting_player(game)
        if pid is None:
            break
        action = choose_action(game, pid, spec)
        if action is None:
            break
        res = step(game, action, rng)
        if not res.ok:
            raise RuntimeError(f"bot produced an illegal action {action!r}: {res.error}")
        actions.append(action)
        game = res.game
    return game, actions
