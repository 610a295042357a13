from __future__ import annotations

from pathlib import Path

import pytest

from dokusai.engine.actions import DictatorshipAction, EndConsultationAction, PassTurnAction
from dokusai.engine.errors import CorruptStateError
from dokusai.engine.game import start_game
from dokusai.engine.rng import SeededRandom
from dokusai.paths import get_paths
from dokusai.services.content import ContentService
from dokusai.services.session import GameSession
from dokusai.services.telemetry import TelemetryService


def _load_catalog():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_catalog()


def _session(tmp_path: Path) -> tuple[GameSession, TelemetryService]:
    rng = SeededRandom(13)
    game = start_game(_load_catalog(), ["boss", "a", "b", "c"], rng=rng)
    telemetry = TelemetryService(tmp_path / "telemetry.jsonl")
    return GameSession(game, rng, telemetry), telemetry


def test_versions_advance_on_success(tmp_path: Path) -> None:
    session, _ = _session(tmp_path)
    assert session.version == 0
    res = session.apply(DictatorshipAction(player="boss"), expected_version=0)
    assert res.ok
    assert session.version == 1
    assert session.game.phase == "subordinate_consultation"
    assert session.actions == [DictatorshipAction(player="boss")]


def test_stale_version_rejected(tmp_path: Path) -> None:
    session, _ = _session(tmp_path)
    session.apply(DictatorshipAction(player="boss"))
    before = session.snapshot()

    res = session.apply(EndConsultationAction(player="a"), expected_version=0)
    assert not res.ok
    assert res.code == "STALE_SNAPSHOT"
    assert session.version == 1
    assert session.snapshot() == before


def test_rejection_keeps_state(tmp_path: Path) -> None:
    session, _ = _session(tmp_path)
    game = session.game
    res = session.apply(PassTurnAction(player="a"))
    assert not res.ok
    assert res.code == "WRONG_PHASE"
    assert session.version == 0
    assert session.game is game


def test_telemetry_records(tmp_path: Path) -> None:
    session, telemetry = _session(tmp_path)
    session.apply(DictatorshipAction(player="boss"))
    session.apply(PassTurnAction(player="a"))
    session.apply(EndConsultationAction(player="a"), expected_version=5)

    recs = telemetry.read()
    assert [r["type"] for r in recs] == ["action_applied", "action_rejected", "action_rejected"]
    assert recs[0]["payload"]["version"] == 1  # type: ignore[index]
    assert recs[0]["payload"]["game_id"] == session.game.id  # type: ignore[index]
    assert recs[2]["payload"]["code"] == "STALE_SNAPSHOT"  # type: ignore[index]


def test_public_view_carries_version(tmp_path: Path) -> None:
    session, _ = _session(tmp_path)
    session.apply(DictatorshipAction(player="boss"))
    view = session.public_view()
    assert view["version"] == 1
    assert "hands" not in view


def test_corrupt_state_is_logged_and_raised(tmp_path: Path) -> None:
    session, telemetry = _session(tmp_path)
    session.game.current_player_index = 42
    with pytest.raises(CorruptStateError):
        session.apply(DictatorshipAction(player="boss"))
    recs = telemetry.read()
    assert recs[-1]["type"] == "corrupt_state"
    assert recs[-1]["payload"]["code"] == "BAD_PLAYER_INDEX"  # type: ignore[index]


def test_game_ended_record(tmp_path: Path) -> None:
    session, telemetry = _session(tmp_path)
    while not session.game.is_over:
        game = session.game
        if game.phase == "dictatorship":
            action = DictatorshipAction(player="boss")
        elif game.phase == "subordinate_consultation":
            action = EndConsultationAction(player=game.current_player_id or "")
        else:
            action = PassTurnAction(player=game.current_player_id or "")
        assert session.apply(action, expected_version=session.version).ok
    recs = telemetry.read()
    assert recs[-1]["type"] == "game_ended"
    assert recs[-1]["payload"]["winner"] == "subordinate"  # type: ignore[index]
    assert recs[-1]["payload"]["end_reason"] == "turn limit reached"  # type: ignore[index]
