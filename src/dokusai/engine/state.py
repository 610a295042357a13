from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Literal

from .types import BOSS, SUBORDINATE, CardCatalog, DictatorshipTarget, Phase, Role, Status


@dataclass(frozen=True)
class GameConfig:
    boss_life: int = 7
    subordinate_life: int = 4
    boss_hand: int = 7
    subordinate_hand: int = 2
    max_turns: int = 5
    president_duration: int = 2
    no_overtime_turn: int = 3
    # resignation opens once this many subordinates or fewer are still standing
    resignation_max_alive: int = 3
    # subordinate count -> nullifications the whole faction may use per game
    nullification_limits: tuple[tuple[int, int], ...] = ((4, 1), (3, 2))
    boss_win_subordinates_down: int = 3
    min_players: int = 4
    max_players: int = 5

    def nullification_limit(self, subordinate_count: int) -> int:
        for count, limit in self.nullification_limits:
            if count == subordinate_count:
                return limit
        return 0

    def initial_life(self, role: Role) -> int:
        return self.boss_life if role == BOSS else self.subordinate_life

    def hand_size(self, role: Role) -> int:
        return self.boss_hand if role == BOSS else self.subordinate_hand


@dataclass
class Player:
    id: str
    name: str
    role: Role
    life: int
    max_life: int
    hand_count: int = 0
    is_connected: bool = True
    last_action: int = 0

    @property
    def is_down(self) -> bool:
        return self.life <= 0


@dataclass(frozen=True)
class NoDictatorship:
    kind: Literal["none"] = "none"


@dataclass(frozen=True)
class ActiveDictatorship:
    card_id: str
    name: str
    target: DictatorshipTarget
    is_nullified: bool = False
    kind: Literal["active"] = "active"


DictatorshipSlot = NoDictatorship | ActiveDictatorship


@dataclass(frozen=True)
class NoPresident:
    kind: Literal["none"] = "none"


@dataclass(frozen=True)
class ActivePresident:
    card_id: str
    owner: Role
    turns_remaining: int
    placed_on_turn: int
    kind: Literal["active"] = "active"


PresidentSlot = NoPresident | ActivePresident

NullificationKey = Literal["four_subordinates", "three_subordinates"]


def nullification_key(subordinate_count: int) -> NullificationKey:
    return "four_subordinates" if subordinate_count >= 4 else "three_subordinates"


@dataclass
class BoardState:
    work_deck: list[str] = field(default_factory=list)
    discard_pile: list[str] = field(default_factory=list)
    dictatorship_deck: list[str] = field(default_factory=list)
    dictatorship: DictatorshipSlot = field(default_factory=NoDictatorship)
    president: PresidentSlot = field(default_factory=NoPresident)
    defense_effects: dict[str, int] = field(default_factory=dict)
    nullifications_used: dict[str, int] = field(
        default_factory=lambda: {"four_subordinates": 0, "three_subordinates": 0}
    )

    @property
    def deck_count(self) -> int:
        return len(self.work_deck)


@dataclass
class TurnRecord:
    turn_number: int
    phase: Phase
    type: str
    message: str
    player_id: str | None = None
    card_id: str | None = None
    target_id: str | None = None
    dice: int | None = None
    timestamp: int = 0


@dataclass
class Game:
    id: str
    catalog: CardCatalog = field(repr=False, compare=False)
    config: GameConfig = field(repr=False, compare=False)
    player_order: list[str]
    players: dict[str, Player]
    hands: dict[str, list[str]]
    board: BoardState
    status: Status = "playing"
    phase: Phase = "dictatorship"
    current_player_index: int = 0
    turn_count: int = 1
    max_turns: int = 5
    turn_history: list[TurnRecord] = field(default_factory=list)
    winner: Role | None = None
    end_reason: str | None = None
    end_code: str | None = None

    @property
    def current_player_id(self) -> str | None:
        if 0 <= self.current_player_index < len(self.player_order):
            return self.player_order[self.current_player_index]
        return None

    @property
    def current_player(self) -> Player | None:
        pid = self.current_player_id
        return self.players.get(pid) if pid is not None else None

    @property
    def boss(self) -> Player | None:
        for pid in self.player_order:
            p = self.players.get(pid)
            if p is not None and p.role == BOSS:
                return p
        return None

    def subordinates(self) -> list[Player]:
        return [
            self.players[pid]
            for pid in self.player_order
            if pid in self.players and self.players[pid].role == SUBORDINATE
        ]

    @property
    def subordinate_count(self) -> int:
        return len(self.subordinates())

    @property
    def is_over(self) -> bool:
        return self.status == "ended"

    def clone(self) -> "Game":
        """Deep copy of the mutable data; catalog and config are shared."""
        return Game(
            id=self.id,
            catalog=self.catalog,
            config=self.config,
            player_order=list(self.player_order),
            players=copy.deepcopy(self.players),
            hands={k: list(v) for k, v in self.hands.items()},
            board=copy.deepcopy(self.board),
            status=self.status,
            phase=self.phase,
            current_player_index=self.current_player_index,
            turn_count=self.turn_count,
            max_turns=self.max_turns,
            turn_history=copy.deepcopy(self.turn_history),
            winner=self.winner,
            end_reason=self.end_reason,
            end_code=self.end_code,
        )
