from __future__ import annotations

import pytest

from dokusai.engine import phases
from dokusai.engine.errors import CorruptStateError
from dokusai.engine.game import (
    end_subordinate_consultation,
    pass_turn,
    play_card,
    process_dictatorship_phase,
    start_game,
)
from dokusai.engine.rng import SeededRandom
from dokusai.engine.state import ActiveDictatorship, ActivePresident, NoDictatorship, NoPresident
from dokusai.paths import get_paths
from dokusai.services.content import ContentService


def _load_catalog():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_catalog()


def _new_game(seed: int = 1, players: int = 4):
    rng = SeededRandom(seed)
    ids = ["boss"] + [chr(ord("a") + i) for i in range(players - 1)]
    return start_game(_load_catalog(), ids, rng=rng), rng


def test_start_game_setup() -> None:
    game, _ = _new_game()
    assert game.phase == "dictatorship"
    assert game.turn_count == 1
    assert game.max_turns == 5
    assert game.status == "playing"
    assert game.player_order == ["boss", "a", "b", "c"]
    assert game.current_player_id == "a"
    assert game.players["boss"].life == 7 and game.players["boss"].max_life == 7
    assert all(game.players[p].life == 4 for p in ("a", "b", "c"))
    assert len(game.hands["boss"]) == 7
    assert all(len(game.hands[p]) == 2 for p in ("a", "b", "c"))
    assert game.board.deck_count == 50 - 13
    assert len(game.board.dictatorship_deck) == 15
    assert game.turn_history[0].type == "game-started"


def test_boss_is_placed_first() -> None:
    rng = SeededRandom(3)
    roles = {"x": "subordinate", "y": "subordinate", "z": "boss", "w": "subordinate"}
    game = start_game(_load_catalog(), ["x", "y", "z", "w"], roles, rng=rng)  # type: ignore[arg-type]
    assert game.player_order == ["z", "x", "y", "w"]
    assert game.boss is not None and game.boss.id == "z"
    assert game.players["x"].name == "Player 1"


def test_start_game_rejects_bad_setup() -> None:
    catalog = _load_catalog()
    with pytest.raises(ValueError):
        start_game(catalog, ["a", "b", "c"], rng=SeededRandom(1))
    with pytest.raises(ValueError):
        start_game(catalog, ["a", "b", "c", "d", "e", "f"], rng=SeededRandom(1))
    with pytest.raises(ValueError):
        start_game(catalog, ["a", "a", "b", "c"], rng=SeededRandom(1))
    roles = {"a": "boss", "b": "boss", "c": "subordinate", "d": "subordinate"}
    with pytest.raises(ValueError):
        start_game(catalog, ["a", "b", "c", "d"], roles, rng=SeededRandom(1))  # type: ignore[arg-type]


def test_full_turn_cycle() -> None:
    game, _ = _new_game()

    res = process_dictatorship_phase(game, "boss")
    assert res.ok
    assert res.drawn_card is not None
    game = res.game
    assert game.phase == "subordinate_consultation"
    assert isinstance(game.board.dictatorship, ActiveDictatorship)
    assert len(game.board.dictatorship_deck) == 14

    game = end_subordinate_consultation(game, "b").game
    assert game.phase == "subordinate_turn"
    assert game.current_player_id == "a"

    seen = []
    for pid in ("a", "b", "c"):
        res = pass_turn(game, pid)
        assert res.ok, res.error
        game = res.game
        seen.append((game.phase, game.current_player_id))
    assert seen == [
        ("subordinate_turn", "b"),
        ("subordinate_turn", "c"),
        ("boss_turn", "boss"),
    ]

    game = pass_turn(game, "boss").game
    assert game.phase == "turn_end"
    assert game.current_player_id == "a"

    drawn = game.board.dictatorship
    assert isinstance(drawn, ActiveDictatorship)
    game = pass_turn(game, "a").game
    assert game.phase == "dictatorship"
    assert game.turn_count == 2
    assert isinstance(game.board.dictatorship, NoDictatorship)
    assert drawn.card_id in game.board.discard_pile


def test_rotation_skips_downed_players() -> None:
    game, _ = _new_game()
    game.players["b"].life = 0
    game = process_dictatorship_phase(game, "boss").game
    game = end_subordinate_consultation(game, "a").game
    game = pass_turn(game, "a").game
    assert game.current_player_id == "c"


def test_pass_rules() -> None:
    game, _ = _new_game()
    res = pass_turn(game, "a")
    assert not res.ok and res.code == "WRONG_PHASE"

    game = process_dictatorship_phase(game, "boss").game
    game = end_subordinate_consultation(game, "a").game
    res = pass_turn(game, "b")
    assert not res.ok and res.code == "NOT_YOUR_TURN"


def test_dictatorship_phase_rules() -> None:
    game, _ = _new_game()
    res = process_dictatorship_phase(game, "a")
    assert res.code == "ROLE_FORBIDDEN"

    drawn = process_dictatorship_phase(game, "boss").game
    res = process_dictatorship_phase(drawn, "boss")
    assert res.code == "WRONG_PHASE"

    stuck = game.clone()
    stuck.board.dictatorship = ActiveDictatorship(card_id="dict_001", name="x", target="boss")
    res = process_dictatorship_phase(stuck, "boss")
    assert res.code == "ALREADY_DRAWN"


def test_exhausted_dictatorship_deck_still_advances() -> None:
    game, _ = _new_game()
    game.board.dictatorship_deck.clear()
    res = process_dictatorship_phase(game, "boss")
    assert res.ok
    assert res.drawn_card is None
    assert res.game.phase == "subordinate_consultation"
    assert isinstance(res.game.board.dictatorship, NoDictatorship)


def test_consultation_rules() -> None:
    game, _ = _new_game()
    res = end_subordinate_consultation(game, "a")
    assert res.code == "WRONG_PHASE"
    game = process_dictatorship_phase(game, "boss").game
    res = end_subordinate_consultation(game, "boss")
    assert res.code == "ROLE_FORBIDDEN"


def _cycle(game):
    """Pass through one whole turn cycle, back to the dictatorship phase."""
    game = process_dictatorship_phase(game, "boss").game
    game = end_subordinate_consultation(game, "a").game
    while game.phase in ("subordinate_turn", "boss_turn", "turn_end"):
        game = pass_turn(game, game.current_player_id).game
    return game


def test_president_expires_after_two_turns() -> None:
    game, rng = _new_game(seed=6)
    game = process_dictatorship_phase(game, "boss").game
    game = end_subordinate_consultation(game, "a").game
    card = next(cid for cid in game.board.work_deck if cid.startswith("president_"))
    game.board.work_deck.remove(card)
    game.hands["a"].append(card)
    game = play_card(game, "a", card, rng=rng).game
    while game.phase != "dictatorship":
        game = pass_turn(game, game.current_player_id).game

    pres = game.board.president
    assert game.turn_count == 2
    assert isinstance(pres, ActivePresident) and pres.turns_remaining == 1

    game = _cycle(game)
    assert game.turn_count == 3
    assert isinstance(game.board.president, NoPresident)
    assert card in game.board.discard_pile


def test_corrupt_state_raises() -> None:
    game, rng = _new_game()
    broken = game.clone()
    broken.current_player_index = 9
    with pytest.raises(CorruptStateError) as exc:
        pass_turn(broken, "a")
    assert exc.value.code == "BAD_PLAYER_INDEX"

    broken = game.clone()
    broken.phase = "boss_turn"
    with pytest.raises(CorruptStateError) as exc:
        pass_turn(broken, "a")
    assert exc.value.code == "PHASE_ROLE_MISMATCH"

    broken = game.clone()
    broken.players["a"].role = "boss"
    with pytest.raises(CorruptStateError) as exc:
        process_dictatorship_phase(broken, "boss")
    assert exc.value.code == "BAD_ROLES"


def test_advancing_past_the_last_turn_ends_the_game() -> None:
    game, _ = _new_game()
    game.phase = "turn_end"
    game.turn_count = game.max_turns

    change = phases.advance(game)
    assert change.forced_end
    assert change.to_phase == "turn_end"
    assert game.turn_count == game.max_turns + 1
    assert game.is_over
    assert game.winner == "subordinate"
    assert game.end_code == "turn_limit"


def test_turn_end_before_the_limit_starts_the_next_turn() -> None:
    game, _ = _new_game()
    game.phase = "turn_end"
    game.turn_count = game.max_turns - 1

    change = phases.advance(game)
    assert not change.forced_end
    assert game.phase == "dictatorship"
    assert game.turn_count == game.max_turns
    assert not game.is_over
