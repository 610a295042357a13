from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RandomState:
    seed: int
    calls: int
    internal: tuple[object, ...]


class SeededRandom:
    """Deterministic random source for dice rolls, shuffles and picks.

    Every public roll/shuffle/pick advances ``calls`` exactly once, so a
    (seed, calls) pair identifies a position in the stream. The full
    generator state can be captured with :meth:`get_state` and restored
    with :meth:`set_state` for replays.
    """

    def __init__(self, seed: int) -> None:
        self._seed = seed
        self._rng = random.Random(seed)
        self.calls = 0

    @property
    def seed(self) -> int:
        return self._seed

    def reseed(self, seed: int) -> None:
        self._seed = seed
        self._rng.seed(seed)
        self.calls = 0

    def next_int(self, lo: int, hi: int) -> int:
        """Integer in [lo, hi)."""
        if hi <= lo:
            raise ValueError(f"empty range [{lo}, {hi})")
        self.calls += 1
        return self._rng.randrange(lo, hi)

    def roll_dice(self) -> int:
        return self.next_int(1, 7)

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Return a shuffled copy of ``items`` (Fisher-Yates)."""
        out = list(items)
        for i in range(len(out) - 1, 0, -1):
            j = self._rng.randrange(0, i + 1)
            out[i], out[j] = out[j], out[i]
        self.calls += 1
        return out

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("cannot pick from an empty sequence")
        return items[self.next_int(0, len(items))]

    def get_state(self) -> RandomState:
        return RandomState(seed=self._seed, calls=self.calls, internal=self._rng.getstate())

    def set_state(self, state: RandomState) -> None:
        self._seed = state.seed
        self.calls = state.calls
        self._rng.setstate(state.internal)  # type: ignore[arg-type]

    def fork(self) -> "SeededRandom":
        twin = SeededRandom(self._seed)
        twin.set_state(self.get_state())
        return twin
