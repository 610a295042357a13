"""Card effect resolution.

``validate`` decides whether a work card may be played; ``apply`` computes
the resulting deltas without touching the game. ``commit`` writes a
computed effect into a (working copy of a) game.

Effects differ between the two factions:

- attack: a subordinate pays 1 life to deal 1 damage to the boss; the boss
  deals 2 damage to one subordinate at no cost.
- defense: stores one point of damage reduction for the player.
- recovery: a subordinate heals a subordinate by 1, or rolls a die to
  revive a downed one (even revives at 1 life); the boss heals itself by 2.
- president: placed on the board for a fixed number of turns, one at a time.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from . import errors
from .rng import SeededRandom
from .state import ActivePresident, Game, Player
from .types import BOSS, SUBORDINATE, WorkCard

PlayerDeltas = dict[str, dict[str, int]]
BoardDeltas = dict[str, object]


@dataclass(frozen=True)
class Validation:
    ok: bool
    reason: str | None = None
    code: str | None = None
    needs_target: bool = False


@dataclass(frozen=True)
class Rejection:
    code: str
    reason: str
    needs_target: bool = False


@dataclass
class CardEffect:
    card_id: str
    actor_id: str
    target_id: str | None
    log_message: str
    player_deltas: PlayerDeltas = field(default_factory=dict)
    board_deltas: BoardDeltas = field(default_factory=dict)
    dice: int | None = None


_OK = Validation(ok=True)


def _reject(code: str, reason: str, needs_target: bool = False) -> Validation:
    return Validation(ok=False, reason=reason, code=code, needs_target=needs_target)


def validate(game: Game, actor_id: str, card_id: str, target_id: str | None = None) -> Validation:
    actor = game.players.get(actor_id)
    if actor is None:
        return _reject(errors.UNKNOWN_PLAYER, "Player is not part of this game.")
    if game.current_player_id != actor_id:
        return _reject(errors.NOT_YOUR_TURN, "It is not your turn.")
    if actor.is_down:
        return _reject(errors.PLAYER_DOWN, "Downed players cannot play cards.")

    card = game.catalog.find_by_id(card_id)
    if card is None:
        return _reject(errors.CARD_NOT_FOUND, f"Card not found: {card_id}.")
    if not isinstance(card, WorkCard):
        return _reject(errors.CARD_NOT_PLAYABLE, "Dictatorship cards cannot be played from hand.")

    if card.category == "attack" and not target_id:
        return _reject(errors.TARGET_REQUIRED, "Select a target.", needs_target=True)

    if target_id:
        target = game.players.get(target_id)
        if target is None:
            return _reject(errors.INVALID_TARGET, "Target player not found.")
        if card.category == "attack" and target.role == actor.role:
            return _reject(errors.INVALID_TARGET, "You cannot attack your own faction.")
        if card.category == "recovery" and target_id != actor_id and target.role != actor.role:
            return _reject(errors.INVALID_TARGET, "You cannot heal the opposing faction.")

    return _OK


def _absorb(player: Player, amount: int, defense: dict[str, int]) -> tuple[int, int]:
    """Return (life after damage, points prevented), consuming stored defense."""
    stored = defense.get(player.id, 0)
    prevented = min(stored, amount)
    if prevented:
        defense[player.id] = stored - prevented
    return max(0, player.life - (amount - prevented)), prevented


def _attack(game: Game, actor: Player, target: Player, card_id: str) -> CardEffect:
    defense = dict(game.board.defense_effects)
    eff = CardEffect(card_id=card_id, actor_id=actor.id, target_id=target.id, log_message="")

    if actor.role == SUBORDINATE:
        new_life, prevented = _absorb(target, 1, defense)
        eff.player_deltas[actor.id] = {"life": max(0, actor.life - 1)}
        eff.player_deltas[target.id] = {"life": new_life}
        msg = f"{actor.name} spent 1 life to deal 1 damage to {target.name}"
    else:
        new_life, prevented = _absorb(target, 2, defense)
        eff.player_deltas[target.id] = {"life": new_life}
        msg = f"{actor.name} dealt 2 damage to {target.name}"

    if prevented:
        eff.board_deltas["defense_effects"] = defense
        msg += f" ({prevented} prevented by defense)"
    eff.log_message = msg + "."
    return eff


def _defense(game: Game, actor: Player, card_id: str) -> CardEffect:
    defense = dict(game.board.defense_effects)
    defense[actor.id] = defense.get(actor.id, 0) + 1
    return CardEffect(
        card_id=card_id,
        actor_id=actor.id,
        target_id=None,
        log_message=f"{actor.name} used a defense card (next damage reduced by 1).",
        board_deltas={"defense_effects": defense},
    )


def _recovery(game: Game, actor: Player, target: Player, card_id: str, rng: SeededRandom) -> CardEffect:
    eff = CardEffect(card_id=card_id, actor_id=actor.id, target_id=target.id, log_message="")

    if actor.role == BOSS:
        eff.target_id = actor.id
        eff.player_deltas[actor.id] = {"life": min(game.config.boss_life, actor.life + 2)}
        eff.log_message = f"{actor.name} recovered 2 life."
        return eff

    if target.life <= 0:
        roll = rng.roll_dice()
        eff.dice = roll
        if roll % 2 == 0:
            eff.player_deltas[target.id] = {"life": 1}
            eff.log_message = f"{actor.name} revived {target.name} (dice: {roll})."
        else:
            eff.log_message = f"{actor.name} failed to revive {target.name} (dice: {roll})."
        return eff

    eff.player_deltas[target.id] = {"life": min(target.max_life, target.life + 1)}
    eff.log_message = f"{actor.name} restored 1 life to {target.name}."
    return eff


def _president(game: Game, actor: Player, card_id: str) -> CardEffect | Rejection:
    if isinstance(game.board.president, ActivePresident):
        return Rejection(errors.PRESIDENT_ON_BOARD, "A president card is already on the board.")
    placed = ActivePresident(
        card_id=card_id,
        owner=actor.role,
        turns_remaining=game.config.president_duration,
        placed_on_turn=game.turn_count,
    )
    return CardEffect(
        card_id=card_id,
        actor_id=actor.id,
        target_id=None,
        log_message=f"{actor.name} placed a president card on the board.",
        board_deltas={"president": placed},
    )


def apply(
    game: Game,
    actor_id: str,
    card_id: str,
    target_id: str | None = None,
    *,
    rng: SeededRandom,
) -> CardEffect | Rejection:
    chk = validate(game, actor_id, card_id, target_id)
    if not chk.ok:
        assert chk.code is not None and chk.reason is not None
        return Rejection(chk.code, chk.reason, chk.needs_target)

    card = game.catalog.get(card_id)
    actor = game.players[actor_id]

    if card.category == "attack":
        assert target_id is not None
        return _attack(game, actor, game.players[target_id], card_id)
    if card.category == "defense":
        return _defense(game, actor, card_id)
    if card.category == "recovery":
        target = game.players[target_id] if target_id else actor
        return _recovery(game, actor, target, card_id, rng)
    if card.category == "president":
        return _president(game, actor, card_id)
    return Rejection(errors.CARD_NOT_PLAYABLE, "Unsupported card category.")


def commit(game: Game, effect: CardEffect) -> None:
    """Write the effect's deltas into ``game`` (mutates in place)."""
    for pid, updates in effect.player_deltas.items():
        p = game.players[pid]
        if "life" in updates:
            p.life = max(0, min(p.max_life, updates["life"]))
    defense = effect.board_deltas.get("defense_effects")
    if isinstance(defense, dict):
        game.board.defense_effects = {k: v for k, v in defense.items() if v > 0}
    president = effect.board_deltas.get("president")
    if isinstance(president, ActivePresident):
        game.board.president = president
