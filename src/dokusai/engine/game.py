from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from . import effects, errors, phases, victory
from .actions import (
    Action,
    DictatorshipAction,
    DrawCardAction,
    EndConsultationAction,
    NullifyAction,
    PassTurnAction,
    PlayCardAction,
)
from .deck import DeckManager
from .rng import SeededRandom
from .state import (
    ActiveDictatorship,
    BoardState,
    Game,
    GameConfig,
    Player,
    TurnRecord,
    nullification_key,
)
from .types import BOSS, SUBORDINATE, TURN_PHASES, Card, CardCatalog, DictatorshipCard, Role

logger = logging.getLogger(__name__)

Event = dict[str, object]


@dataclass(frozen=True)
class HandDelta:
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()


@dataclass
class StepResult:
    """Outcome of one engine operation.

    ``game`` is the new snapshot when ``ok`` is true and the untouched input
    snapshot otherwise. Rejections carry a display-ready ``error`` and a
    machine-readable ``code``.
    """

    ok: bool
    game: Game
    events: list[Event] = field(default_factory=list)
    error: str | None = None
    code: str | None = None
    drawn_card: Card | None = None
    hand_delta: HandDelta | None = None
    log_message: str | None = None
    needs_target: bool = False


def _fail(game: Game, code: str, error: str, needs_target: bool = False) -> StepResult:
    logger.debug("rejected [%s] %s", code, error)
    return StepResult(ok=False, game=game, error=error, code=code, needs_target=needs_target)


def _precheck(game: Game, actor_id: str) -> StepResult | None:
    phases.check_consistency(game)
    if game.is_over:
        return _fail(game, errors.GAME_ENDED, "The game has already ended.")
    if actor_id not in game.players:
        return _fail(game, errors.UNKNOWN_PLAYER, "Player is not part of this game.")
    return None


def _record(
    game: Game,
    kind: str,
    message: str,
    *,
    turn: int,
    phase: str,
    at: int,
    player_id: str | None = None,
    card_id: str | None = None,
    target_id: str | None = None,
    dice: int | None = None,
) -> None:
    game.turn_history.append(
        TurnRecord(
            turn_number=turn,
            phase=phase,  # type: ignore[arg-type]
            type=kind,
            message=message,
            player_id=player_id,
            card_id=card_id,
            target_id=target_id,
            dice=dice,
            timestamp=at,
        )
    )
    if player_id is not None and player_id in game.players:
        game.players[player_id].last_action = at


def _settle(game: Game, events: list[Event]) -> None:
    """Run the win checker against a freshly mutated working copy."""
    if not game.is_over:
        victory.finish(game, victory.check(game))
    if game.is_over:
        events.append(
            {"type": "GAME_ENDED", "winner": game.winner, "reason": game.end_reason}
        )
        logger.info("game %s ended: %s (%s)", game.id, game.winner, game.end_reason)


def start_game(
    catalog: CardCatalog,
    player_ids: Sequence[str],
    role_assignment: Mapping[str, Role] | None = None,
    *,
    rng: SeededRandom,
    names: Mapping[str, str] | None = None,
    config: GameConfig | None = None,
    game_id: str | None = None,
    at: int = 0,
) -> Game:
    """Create a new game: roles, life, decks and opening hands.

    Without a role assignment the first player in join order is the boss.
    The stored player order always puts the boss first, followed by the
    subordinates in join order.
    """
    cfg = config or GameConfig()
    ids = list(player_ids)
    if len(set(ids)) != len(ids):
        raise ValueError("Player ids must be unique.")
    if not cfg.min_players <= len(ids) <= cfg.max_players:
        raise ValueError(
            f"A game needs {cfg.min_players}-{cfg.max_players} players, got {len(ids)}."
        )

    roles: dict[str, Role] = {}
    for i, pid in enumerate(ids):
        if role_assignment is not None:
            role = role_assignment.get(pid)
            if role not in (BOSS, SUBORDINATE):
                raise ValueError(f"Missing or invalid role for player {pid!r}.")
            roles[pid] = role
        else:
            roles[pid] = BOSS if i == 0 else SUBORDINATE
    bosses = [pid for pid in ids if roles[pid] == BOSS]
    if len(bosses) != 1:
        raise ValueError(f"Exactly one boss is required, got {len(bosses)}.")

    order = bosses + [pid for pid in ids if roles[pid] == SUBORDINATE]

    deck = DeckManager.fresh(catalog, rng)
    hands = deck.deal_initial_hands(order, roles, cfg.boss_hand, cfg.subordinate_hand)
    deck.shuffle_dictatorship_deck()

    labels = names or {}
    players: dict[str, Player] = {}
    for i, pid in enumerate(ids):
        life = cfg.initial_life(roles[pid])
        players[pid] = Player(
            id=pid,
            name=labels.get(pid, f"Player {i + 1}"),
            role=roles[pid],
            life=life,
            max_life=life,
            hand_count=len(hands[pid]),
            last_action=at,
        )

    game = Game(
        id=game_id or f"game_{rng.seed}",
        catalog=catalog,
        config=cfg,
        player_order=order,
        players=players,
        hands=hands,
        board=BoardState(
            work_deck=deck.work_deck,
            discard_pile=deck.discard_pile,
            dictatorship_deck=deck.dictatorship_deck,
        ),
        status="playing",
        phase="dictatorship",
        turn_count=1,
        max_turns=cfg.max_turns,
    )
    game.current_player_index = phases.first_subordinate_index(game)
    _record(game, "game-started", "The game has started.", turn=1, phase="dictatorship", at=at)
    logger.info("game %s started with %d players", game.id, len(order))
    return game


def play_card(
    game: Game,
    actor_id: str,
    card_id: str,
    target_id: str | None = None,
    *,
    rng: SeededRandom,
    at: int = 0,
) -> StepResult:
    early = _precheck(game, actor_id)
    if early is not None:
        return early

    chk = effects.validate(game, actor_id, card_id, target_id)
    if not chk.ok:
        assert chk.code is not None and chk.reason is not None
        return _fail(game, chk.code, chk.reason, chk.needs_target)
    if game.phase not in TURN_PHASES:
        return _fail(game, errors.WRONG_PHASE, "Cards can only be played during a player turn.")
    if card_id not in game.hands.get(actor_id, []):
        return _fail(game, errors.CARD_NOT_IN_HAND, "That card is not in your hand.")

    work = game.clone()
    outcome = effects.apply(work, actor_id, card_id, target_id, rng=rng)
    if isinstance(outcome, effects.Rejection):
        return _fail(game, outcome.code, outcome.reason, outcome.needs_target)

    effects.commit(work, outcome)
    work.hands[actor_id].remove(card_id)
    work.players[actor_id].hand_count = len(work.hands[actor_id])
    if work.catalog.get(card_id).category != "president":
        deck = DeckManager.for_board(work.board, work.catalog)
        deck.discard(card_id)
        deck.store(work.board)

    events: list[Event] = [
        {
            "type": "CARD_PLAYED",
            "player": actor_id,
            "card_id": card_id,
            "target": outcome.target_id,
            "dice": outcome.dice,
        }
    ]
    _record(
        work,
        "play-card",
        outcome.log_message,
        turn=game.turn_count,
        phase=game.phase,
        at=at,
        player_id=actor_id,
        card_id=card_id,
        target_id=outcome.target_id,
        dice=outcome.dice,
    )
    _settle(work, events)
    if not work.is_over and work.players[actor_id].is_down and work.current_player_id == actor_id:
        # an attack can knock out its own player; the turn moves on
        change = phases.advance(work)
        events.append(
            {
                "type": "PLAYER_DOWN",
                "player": actor_id,
                "phase": change.to_phase,
                "current_player": work.current_player_id,
            }
        )
    return StepResult(
        ok=True,
        game=work,
        events=events,
        hand_delta=HandDelta(removed=(card_id,)),
        log_message=outcome.log_message,
    )


def draw_card(game: Game, actor_id: str, *, rng: SeededRandom, at: int = 0) -> StepResult:
    early = _precheck(game, actor_id)
    if early is not None:
        return early
    if game.current_player_id != actor_id:
        return _fail(game, errors.NOT_YOUR_TURN, "It is not your turn.")
    if game.players[actor_id].is_down:
        return _fail(game, errors.PLAYER_DOWN, "Downed players cannot draw cards.")

    work = game.clone()
    deck = DeckManager.for_board(work.board, work.catalog, rng)
    card_id = deck.draw()
    if card_id is None:
        return _fail(game, errors.NO_CARDS_AVAILABLE, "No cards are available to draw.")
    deck.store(work.board)

    work.hands.setdefault(actor_id, []).append(card_id)
    actor = work.players[actor_id]
    actor.hand_count = len(work.hands[actor_id])
    message = f"{actor.name} drew a card."
    events: list[Event] = [{"type": "CARD_DRAWN", "player": actor_id, "deck_count": deck.counts().work_deck}]
    _record(work, "draw-card", message, turn=game.turn_count, phase=game.phase, at=at, player_id=actor_id)
    _settle(work, events)
    return StepResult(
        ok=True,
        game=work,
        events=events,
        drawn_card=work.catalog.get(card_id),
        hand_delta=HandDelta(added=(card_id,)),
        log_message=message,
    )


def pass_turn(game: Game, actor_id: str, *, at: int = 0) -> StepResult:
    early = _precheck(game, actor_id)
    if early is not None:
        return early
    if game.current_player_id != actor_id:
        return _fail(game, errors.NOT_YOUR_TURN, "It is not your turn.")
    if game.phase not in ("subordinate_turn", "boss_turn", "turn_end"):
        return _fail(game, errors.WRONG_PHASE, f"Cannot pass during the {game.phase} phase.")

    work = game.clone()
    change = phases.advance(work)
    message = f"{work.players[actor_id].name} passed ({change.from_phase} -> {change.to_phase})."
    events: list[Event] = [
        {
            "type": "TURN_PASSED",
            "player": actor_id,
            "phase": change.to_phase,
            "current_player": work.current_player_id,
            "turn_count": change.turn_count,
        }
    ]
    _record(work, "pass-turn", message, turn=game.turn_count, phase=game.phase, at=at, player_id=actor_id)
    _settle(work, events)
    return StepResult(ok=True, game=work, events=events, log_message=message)


def process_dictatorship_phase(game: Game, actor_id: str, *, at: int = 0) -> StepResult:
    early = _precheck(game, actor_id)
    if early is not None:
        return early
    if game.players[actor_id].role != BOSS:
        return _fail(game, errors.ROLE_FORBIDDEN, "Only the boss draws dictatorship cards.")
    if game.phase != "dictatorship":
        return _fail(game, errors.WRONG_PHASE, "Dictatorship cards are drawn in the dictatorship phase.")
    if isinstance(game.board.dictatorship, ActiveDictatorship):
        return _fail(game, errors.ALREADY_DRAWN, "The dictatorship card for this turn was already drawn.")

    work = game.clone()
    deck = DeckManager.for_board(work.board, work.catalog)
    card_id = deck.draw_dictatorship()
    deck.store(work.board)
    drawn = work.catalog.find_by_id(card_id) if card_id is not None else None
    if isinstance(drawn, DictatorshipCard):
        work.board.dictatorship = ActiveDictatorship(
            card_id=drawn.id, name=drawn.name, target=drawn.target
        )
        message = f"Dictatorship card '{drawn.name}' was drawn."
    else:
        drawn = None
        message = "No dictatorship cards remain."

    change = phases.advance(work)
    events: list[Event] = [
        {"type": "DICTATORSHIP_DRAWN", "card_id": card_id, "phase": change.to_phase}
    ]
    _record(
        work,
        "draw-dictatorship",
        message,
        turn=game.turn_count,
        phase=game.phase,
        at=at,
        player_id=actor_id,
        card_id=card_id,
    )
    _settle(work, events)
    return StepResult(ok=True, game=work, events=events, drawn_card=drawn, log_message=message)


def nullify_dictatorship_card(game: Game, actor_id: str, *, at: int = 0) -> StepResult:
    early = _precheck(game, actor_id)
    if early is not None:
        return early
    actor = game.players[actor_id]
    if actor.role != SUBORDINATE:
        return _fail(game, errors.ROLE_FORBIDDEN, "Only subordinates can nullify a dictatorship card.")
    current = game.board.dictatorship
    if not isinstance(current, ActiveDictatorship):
        return _fail(game, errors.NO_DICTATORSHIP_CARD, "There is no dictatorship card to nullify.")
    if current.is_nullified:
        return _fail(game, errors.ALREADY_NULLIFIED, "This dictatorship card is already nullified.")

    subs = game.subordinate_count
    key = nullification_key(subs)
    used = game.board.nullifications_used.get(key, 0)
    if used >= game.config.nullification_limit(subs):
        return _fail(game, errors.NULLIFICATION_LIMIT, "No nullifications remain for this game.")

    work = game.clone()
    work.board.dictatorship = ActiveDictatorship(
        card_id=current.card_id, name=current.name, target=current.target, is_nullified=True
    )
    work.board.nullifications_used[key] = used + 1
    message = f"{actor.name} nullified '{current.name}'."
    events: list[Event] = [{"type": "DICTATORSHIP_NULLIFIED", "player": actor_id, "card_id": current.card_id}]
    _record(
        work,
        "nullify-dictatorship",
        message,
        turn=game.turn_count,
        phase=game.phase,
        at=at,
        player_id=actor_id,
        card_id=current.card_id,
    )
    _settle(work, events)
    return StepResult(ok=True, game=work, events=events, log_message=message)


def end_subordinate_consultation(game: Game, actor_id: str, *, at: int = 0) -> StepResult:
    early = _precheck(game, actor_id)
    if early is not None:
        return early
    if game.players[actor_id].role != SUBORDINATE:
        return _fail(game, errors.ROLE_FORBIDDEN, "Only subordinates can end the consultation.")
    if game.phase != "subordinate_consultation":
        return _fail(game, errors.WRONG_PHASE, "There is no consultation in progress.")

    work = game.clone()
    change = phases.advance(work)
    message = f"Subordinate consultation ended; moving to {change.to_phase}."
    events: list[Event] = [{"type": "CONSULTATION_ENDED", "player": actor_id, "phase": change.to_phase}]
    _record(work, "end-consultation", message, turn=game.turn_count, phase=game.phase, at=at, player_id=actor_id)
    _settle(work, events)
    return StepResult(ok=True, game=work, events=events, log_message=message)


def step(game: Game, action: Action, rng: SeededRandom) -> StepResult:
    """Apply a single action and return the resulting snapshot.

    Deterministic for a given (seed, starting game, action sequence).
    """
    if isinstance(action, PlayCardAction):
        return play_card(game, action.player, action.card_id, action.target, rng=rng, at=action.at)
    if isinstance(action, DrawCardAction):
        return draw_card(game, action.player, rng=rng, at=action.at)
    if isinstance(action, PassTurnAction):
        return pass_turn(game, action.player, at=action.at)
    if isinstance(action, DictatorshipAction):
        return process_dictatorship_phase(game, action.player, at=action.at)
    if isinstance(action, NullifyAction):
        return nullify_dictatorship_card(game, action.player, at=action.at)
    if isinstance(action, EndConsultationAction):
        return end_subordinate_consultation(game, action.player, at=action.at)
    return _fail(game, errors.UNKNOWN_ACTION, "Unknown action.")


def replay(
    catalog: CardCatalog,
    player_ids: Sequence[str],
    seed: int,
    actions: Iterable[Action],
    role_assignment: Mapping[str, Role] | None = None,
    config: GameConfig | None = None,
) -> Game:
    rng = SeededRandom(seed)
    game = start_game(catalog, player_ids, role_assignment, rng=rng, config=config)
    for a in actions:
        game = step(game, a, rng).game
        if game.is_over:
            break
    return game
