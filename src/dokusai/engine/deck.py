from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .rng import SeededRandom
from .state import BoardState
from .types import BOSS, CardCatalog, Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeckCounts:
    work_deck: int
    dictatorship_deck: int
    discard_pile: int
    discard: tuple[str, ...]


@dataclass
class DeckManager:
    """Work deck, dictatorship deck and discard pile over card ids.

    The top of a deck is the end of its list. The work deck refills from
    work cards in the discard pile; the dictatorship deck never refills.
    Only shuffling needs ``rng``; discards and dictatorship draws work
    without one.
    """

    catalog: CardCatalog
    rng: SeededRandom | None = None
    work_deck: list[str] = field(default_factory=list)
    dictatorship_deck: list[str] = field(default_factory=list)
    discard_pile: list[str] = field(default_factory=list)

    @staticmethod
    def fresh(catalog: CardCatalog, rng: SeededRandom) -> "DeckManager":
        return DeckManager(
            catalog=catalog,
            rng=rng,
            work_deck=[c.id for c in catalog.work_cards()],
            dictatorship_deck=[c.id for c in catalog.dictatorship_cards()],
        )

    @staticmethod
    def for_board(board: BoardState, catalog: CardCatalog, rng: SeededRandom | None = None) -> "DeckManager":
        return DeckManager(
            catalog=catalog,
            rng=rng,
            work_deck=board.work_deck,
            dictatorship_deck=board.dictatorship_deck,
            discard_pile=board.discard_pile,
        )

    def store(self, board: BoardState) -> None:
        board.work_deck = self.work_deck
        board.dictatorship_deck = self.dictatorship_deck
        board.discard_pile = self.discard_pile

    def _shuffled(self, items: list[str]) -> list[str]:
        if self.rng is None:
            raise RuntimeError("DeckManager needs a random source to shuffle")
        return self.rng.shuffle(items)

    def shuffle_work_deck(self) -> None:
        self.work_deck = self._shuffled(self.work_deck)

    def shuffle_dictatorship_deck(self) -> None:
        self.dictatorship_deck = self._shuffled(self.dictatorship_deck)

    def _recycle_discard(self) -> bool:
        recyclable = [cid for cid in self.discard_pile if self.catalog.is_work_card(cid)]
        if not recyclable:
            return False
        self.work_deck = self._shuffled(recyclable)
        self.discard_pile = [cid for cid in self.discard_pile if not self.catalog.is_work_card(cid)]
        logger.debug("recycled %d work cards from discard", len(recyclable))
        return True

    def draw(self) -> str | None:
        """Draw one work card, refilling from discard once if the deck is empty."""
        if not self.work_deck and not self._recycle_discard():
            return None
        return self.work_deck.pop()

    def draw_n(self, count: int) -> list[str]:
        drawn: list[str] = []
        for _ in range(max(0, count)):
            card_id = self.draw()
            if card_id is None:
                break
            drawn.append(card_id)
        return drawn

    def draw_dictatorship(self) -> str | None:
        if not self.dictatorship_deck:
            return None
        return self.dictatorship_deck.pop()

    def discard(self, card_id: str) -> None:
        self.discard_pile.append(card_id)

    def discard_many(self, card_ids: Iterable[str]) -> None:
        self.discard_pile.extend(card_ids)

    def deal_initial_hands(
        self,
        player_order: Sequence[str],
        roles: dict[str, Role],
        boss_hand: int,
        subordinate_hand: int,
    ) -> dict[str, list[str]]:
        """Shuffle the work deck, then deal each player in fixed order."""
        self.shuffle_work_deck()
        hands: dict[str, list[str]] = {}
        for pid in player_order:
            size = boss_hand if roles[pid] == BOSS else subordinate_hand
            hands[pid] = self.draw_n(size)
        return hands

    def counts(self) -> DeckCounts:
        return DeckCounts(
            work_deck=len(self.work_deck),
            dictatorship_deck=len(self.dictatorship_deck),
            discard_pile=len(self.discard_pile),
            discard=tuple(self.discard_pile),
        )
