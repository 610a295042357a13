from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlayCardAction:
    player: str
    card_id: str
    target: str | None = None
    at: int = 0


@dataclass(frozen=True)
class DrawCardAction:
    player: str
    at: int = 0


@dataclass(frozen=True)
class PassTurnAction:
    player: str
    at: int = 0


@dataclass(frozen=True)
class DictatorshipAction:
    player: str
    at: int = 0


@dataclass(frozen=True)
class NullifyAction:
    player: str
    at: int = 0


@dataclass(frozen=True)
class EndConsultationAction:
    player: str
    at: int = 0


Action = (
    PlayCardAction
    | DrawCardAction
    | PassTurnAction
    | DictatorshipAction
    | NullifyAction
    | EndConsultationAction
)
