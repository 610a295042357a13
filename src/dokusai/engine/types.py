from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

CardType = Literal["work", "dictatorship"]
Category = Literal["attack", "defense", "recovery", "president", "dictatorship"]
WorkCategory = Literal["attack", "defense", "recovery", "president"]
DictatorshipTarget = Literal["boss", "subordinate", "all"]

Role = Literal["boss", "subordinate"]
Status = Literal["playing", "ended"]
Phase = Literal[
    "dictatorship",
    "subordinate_consultation",
    "subordinate_turn",
    "boss_turn",
    "turn_end",
]

BOSS: Role = "boss"
SUBORDINATE: Role = "subordinate"

WORK_CATEGORIES: tuple[WorkCategory, ...] = ("attack", "defense", "recovery", "president")
TURN_PHASES: tuple[Phase, ...] = ("subordinate_turn", "boss_turn")


@dataclass(frozen=True)
class WorkCard:
    id: str
    category: WorkCategory
    name: str
    description: str
    is_visible: bool = False
    type: Literal["work"] = "work"


@dataclass(frozen=True)
class DictatorshipCard:
    id: str
    name: str
    description: str
    target: DictatorshipTarget
    is_visible: bool = True
    type: Literal["dictatorship"] = "dictatorship"
    category: Literal["dictatorship"] = "dictatorship"


Card = WorkCard | DictatorshipCard


@dataclass(frozen=True)
class CardCatalog:
    """Immutable card catalog used by the engine."""

    cards: dict[str, Card]
    _by_category: dict[str, tuple[Card, ...]] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        grouped: dict[str, list[Card]] = {}
        for card in self.cards.values():
            grouped.setdefault(card.category, []).append(card)
        self._by_category.update({k: tuple(v) for k, v in grouped.items()})

    def find_by_id(self, card_id: str) -> Card | None:
        return self.cards.get(card_id)

    def get(self, card_id: str) -> Card:
        return self.cards[card_id]

    def cards_by_category(self, category: Category) -> list[Card]:
        return list(self._by_category.get(category, ()))

    def work_cards(self) -> list[WorkCard]:
        return [c for c in self.cards.values() if isinstance(c, WorkCard)]

    def dictatorship_cards(self) -> list[DictatorshipCard]:
        return [c for c in self.cards.values() if isinstance(c, DictatorshipCard)]

    def is_work_card(self, card_id: str) -> bool:
        return isinstance(self.cards.get(card_id), WorkCard)

    @staticmethod
    def applies_to(card: DictatorshipCard, role: Role) -> bool:
        if card.target == "all":
            return True
        return card.target == role
