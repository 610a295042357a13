from __future__ import annotations

import logging
import threading

from dokusai.engine import errors
from dokusai.engine.actions import Action
from dokusai.engine.errors import CorruptStateError
from dokusai.engine.game import StepResult, step
from dokusai.engine.rng import SeededRandom
from dokusai.engine.serialize import action_to_dict, archive, public_view, snapshot
from dokusai.engine.state import Game
from dokusai.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)


class GameSession:
    """Single writer for one game.

    Holds the latest snapshot and a version number that increases with each
    applied action. Callers that act on an older view pass the version they
    saw as ``expected_version`` and get a ``STALE_SNAPSHOT`` rejection if
    another action landed first. A rejected action leaves the snapshot, the
    version and the random stream untouched.
    """

    def __init__(
        self,
        game: Game,
        rng: SeededRandom,
        telemetry: TelemetryService | None = None,
    ) -> None:
        self._game = game
        self._rng = rng
        self._telemetry = telemetry
        self._lock = threading.Lock()
        self.version = 0
        self.actions: list[Action] = []

    @property
    def game(self) -> Game:
        return self._game

    def snapshot(self) -> dict[str, object]:
        return snapshot(self._game)

    def public_view(self) -> dict[str, object]:
        data = public_view(self._game)
        data["version"] = self.version
        return data

    def apply(self, action: Action, expected_version: int | None = None) -> StepResult:
        with self._lock:
            if expected_version is not None and expected_version != self.version:
                self._log(
                    "action_rejected",
                    {"action": action_to_dict(action), "code": errors.STALE_SNAPSHOT},
                )
                return StepResult(
                    ok=False,
                    game=self._game,
                    error=f"Snapshot version {expected_version} is stale (current {self.version}).",
                    code=errors.STALE_SNAPSHOT,
                )

            saved = self._rng.get_state()
            try:
                res = step(self._game, action, self._rng)
            except CorruptStateError as e:
                self._rng.set_state(saved)
                logger.error("game %s is corrupt: %s", self._game.id, e)
                self._log("corrupt_state", {"code": e.code, "message": e.message})
                raise

            if not res.ok:
                self._rng.set_state(saved)
                self._log(
                    "action_rejected",
                    {"action": action_to_dict(action), "code": res.code, "error": res.error},
                )
                return res

            self._game = res.game
            self.version += 1
            self.actions.append(action)
            self._log(
                "action_applied",
                {"action": action_to_dict(action), "version": self.version, "events": res.events},
            )
            if self._game.is_over:
                self._log("game_ended", archive(self._game))
            return res

    def _log(self, event_type: str, payload: dict[str, object]) -> None:
        if self._telemetry is None:
            return
        self._telemetry.log(event_type, {"game_id": self._game.id, **payload})
