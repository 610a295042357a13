from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from . import errors
from .actions import (
    Action,
    DictatorshipAction,
    DrawCardAction,
    EndConsultationAction,
    NullifyAction,
    PassTurnAction,
    PlayCardAction,
)
from .errors import CorruptStateError
from .rules import is_no_overtime_day
from .state import (
    ActiveDictatorship,
    ActivePresident,
    BoardState,
    DictatorshipSlot,
    Game,
    GameConfig,
    NoDictatorship,
    NoPresident,
    Player,
    PresidentSlot,
    TurnRecord,
)
from .types import CardCatalog

_SCHEMA_PATH = Path(__file__).resolve().parents[1] / "data" / "schemas" / "game.schema.json"


@lru_cache(maxsize=1)
def _snapshot_validator() -> Draft202012Validator:
    schema = json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))
    return Draft202012Validator(schema)


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, PlayCardAction):
        return {"type": "play", "player": a.player, "card_id": a.card_id, "target": a.target, "at": a.at}
    if isinstance(a, DrawCardAction):
        return {"type": "draw", "player": a.player, "at": a.at}
    if isinstance(a, PassTurnAction):
        return {"type": "pass", "player": a.player, "at": a.at}
    if isinstance(a, DictatorshipAction):
        return {"type": "dictatorship", "player": a.player, "at": a.at}
    if isinstance(a, NullifyAction):
        return {"type": "nullify", "player": a.player, "at": a.at}
    if isinstance(a, EndConsultationAction):
        return {"type": "end_consultation", "player": a.player, "at": a.at}
    # should be unreachable
    return {"type": "unknown"}


def action_from_dict(d: Mapping[str, object]) -> Action:
    kind = d.get("type")
    player = str(d.get("player", ""))
    at_raw = d.get("at", 0)
    at = at_raw if isinstance(at_raw, int) else 0
    if kind == "play":
        target = d.get("target")
        return PlayCardAction(
            player=player,
            card_id=str(d.get("card_id", "")),
            target=target if isinstance(target, str) else None,
            at=at,
        )
    if kind == "draw":
        return DrawCardAction(player=player, at=at)
    if kind == "pass":
        return PassTurnAction(player=player, at=at)
    if kind == "dictatorship":
        return DictatorshipAction(player=player, at=at)
    if kind == "nullify":
        return NullifyAction(player=player, at=at)
    if kind == "end_consultation":
        return EndConsultationAction(player=player, at=at)
    raise ValueError(f"Unknown action type: {kind!r}")


def _player_to_dict(p: Player) -> dict[str, object]:
    return {
        "id": p.id,
        "name": p.name,
        "role": p.role,
        "life": p.life,
        "max_life": p.max_life,
        "hand_count": p.hand_count,
        "is_connected": p.is_connected,
        "last_action": p.last_action,
    }


def _dictatorship_to_dict(slot: DictatorshipSlot) -> dict[str, object]:
    if isinstance(slot, ActiveDictatorship):
        return {
            "kind": "active",
            "card_id": slot.card_id,
            "name": slot.name,
            "target": slot.target,
            "is_nullified": slot.is_nullified,
        }
    return {"kind": "none"}


def _president_to_dict(slot: PresidentSlot) -> dict[str, object]:
    if isinstance(slot, ActivePresident):
        return {
            "kind": "active",
            "card_id": slot.card_id,
            "owner": slot.owner,
            "turns_remaining": slot.turns_remaining,
            "placed_on_turn": slot.placed_on_turn,
        }
    return {"kind": "none"}


def _board_to_dict(b: BoardState) -> dict[str, object]:
    return {
        "work_deck": list(b.work_deck),
        "discard_pile": list(b.discard_pile),
        "dictatorship_deck": list(b.dictatorship_deck),
        "deck_count": b.deck_count,
        "dictatorship": _dictatorship_to_dict(b.dictatorship),
        "president": _president_to_dict(b.president),
        "defense_effects": dict(b.defense_effects),
        "nullifications_used": dict(b.nullifications_used),
    }


def _record_to_dict(r: TurnRecord) -> dict[str, object]:
    return {
        "turn_number": r.turn_number,
        "phase": r.phase,
        "type": r.type,
        "player_id": r.player_id,
        "card_id": r.card_id,
        "target_id": r.target_id,
        "message": r.message,
        "timestamp": r.timestamp,
        "dice": r.dice,
    }


def snapshot(game: Game) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the game."""
    return {
        "id": game.id,
        "status": game.status,
        "phase": game.phase,
        "player_order": list(game.player_order),
        "current_player_index": game.current_player_index,
        "turn_count": game.turn_count,
        "max_turns": game.max_turns,
        "players": {pid: _player_to_dict(game.players[pid]) for pid in game.player_order},
        "hands": {pid: list(cards) for pid, cards in game.hands.items()},
        "board": _board_to_dict(game.board),
        "turn_history": [_record_to_dict(r) for r in game.turn_history],
        "winner": game.winner,
        "end_reason": game.end_reason,
        "end_code": game.end_code,
    }


def public_view(game: Game) -> dict[str, object]:
    """Snapshot without private hands or deck order (counts only)."""
    data = snapshot(game)
    board = dict(data["board"])  # type: ignore[arg-type]
    board["dictatorship_deck_count"] = len(game.board.dictatorship_deck)
    del board["work_deck"]
    del board["dictatorship_deck"]
    data["board"] = board
    del data["hands"]
    data["no_overtime_day"] = is_no_overtime_day(game.turn_count, game.config)
    return data


def archive(game: Game) -> dict[str, object]:
    """End-of-game history record."""
    return {
        "id": game.id,
        "winner": game.winner,
        "end_reason": game.end_reason,
        "end_code": game.end_code,
        "turn_count": game.turn_count,
        "actions": len(game.turn_history),
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "role": p.role,
                "final_life": p.life,
            }
            for p in (game.players[pid] for pid in game.player_order)
        ],
    }


def validate_snapshot(data: object) -> None:
    errs = sorted(_snapshot_validator().iter_errors(data), key=lambda e: str(list(e.path)))
    if errs:
        lines = ["Snapshot failed schema validation:"]
        for err in errs[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise CorruptStateError(errors.BAD_SNAPSHOT, "\n".join(lines))


def _dictatorship_from_dict(d: Mapping[str, object]) -> DictatorshipSlot:
    if d.get("kind") == "active":
        return ActiveDictatorship(
            card_id=str(d["card_id"]),
            name=str(d["name"]),
            target=d["target"],  # type: ignore[arg-type]
            is_nullified=bool(d["is_nullified"]),
        )
    return NoDictatorship()


def _president_from_dict(d: Mapping[str, object]) -> PresidentSlot:
    if d.get("kind") == "active":
        return ActivePresident(
            card_id=str(d["card_id"]),
            owner=d["owner"],  # type: ignore[arg-type]
            turns_remaining=int(d["turns_remaining"]),  # type: ignore[arg-type]
            placed_on_turn=int(d["placed_on_turn"]),  # type: ignore[arg-type]
        )
    return NoPresident()


def load_snapshot(
    data: Mapping[str, object],
    catalog: CardCatalog,
    config: GameConfig | None = None,
) -> Game:
    """Rebuild a Game from :func:`snapshot` output.

    Raises CorruptStateError if the data does not match the snapshot schema
    or references cards the catalog does not know.
    """
    validate_snapshot(data)
    raw_players: dict = data["players"]  # type: ignore[assignment]
    raw_board: dict = data["board"]  # type: ignore[assignment]
    raw_hands: dict = data["hands"]  # type: ignore[assignment]

    players = {
        pid: Player(
            id=p["id"],
            name=p["name"],
            role=p["role"],
            life=p["life"],
            max_life=p["max_life"],
            hand_count=p["hand_count"],
            is_connected=p["is_connected"],
            last_action=p["last_action"],
        )
        for pid, p in raw_players.items()
    }
    board = BoardState(
        work_deck=list(raw_board["work_deck"]),
        discard_pile=list(raw_board["discard_pile"]),
        dictatorship_deck=list(raw_board["dictatorship_deck"]),
        dictatorship=_dictatorship_from_dict(raw_board["dictatorship"]),
        president=_president_from_dict(raw_board["president"]),
        defense_effects=dict(raw_board["defense_effects"]),
        nullifications_used=dict(raw_board["nullifications_used"]),
    )
    referenced = [*board.work_deck, *board.discard_pile, *board.dictatorship_deck]
    for cards in raw_hands.values():
        referenced.extend(cards)
    unknown = sorted({cid for cid in referenced if catalog.find_by_id(cid) is None})
    if unknown:
        raise CorruptStateError(errors.BAD_SNAPSHOT, f"Unknown card ids: {', '.join(unknown)}")

    history = [
        TurnRecord(
            turn_number=r["turn_number"],
            phase=r["phase"],
            type=r["type"],
            message=r["message"],
            player_id=r.get("player_id"),
            card_id=r.get("card_id"),
            target_id=r.get("target_id"),
            dice=r.get("dice"),
            timestamp=r["timestamp"],
        )
        for r in data["turn_history"]  # type: ignore[attr-defined]
    ]

    return Game(
        id=str(data["id"]),
        catalog=catalog,
        config=config or GameConfig(),
        player_order=list(data["player_order"]),  # type: ignore[call-overload]
        players=players,
        hands={pid: list(cards) for pid, cards in raw_hands.items()},
        board=board,
        status=data["status"],  # type: ignore[arg-type]
        phase=data["phase"],  # type: ignore[arg-type]
        current_player_index=int(data["current_player_index"]),  # type: ignore[call-overload]
        turn_count=int(data["turn_count"]),  # type: ignore[call-overload]
        max_turns=int(data["max_turns"]),  # type: ignore[call-overload]
        turn_history=history,
        winner=data["winner"],  # type: ignore[arg-type]
        end_reason=data["end_reason"],  # type: ignore[arg-type]
        end_code=data["end_code"],  # type: ignore[arg-type]
    )
