"""Deterministic, headless rules engine for Dokusai.

IMPORTANT: This package must never import dokusai.services.
"""

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
from .game import (
    StepResult,
    draw_card,
    end_subordinate_consultation,
    nullify_dictatorship_card,
    pass_turn,
    play_card,
    process_dictatorship_phase,
    replay,
    start_game,
    step,
)
from .rng import SeededRandom
from .rules import can_submit_resignation, is_no_overtime_day, resignation_damage
from .state import Game, GameConfig, Player
from .types import Card, CardCatalog, DictatorshipCard, Role, WorkCard

__all__ = [
    "Action",
    "Card",
    "CardCatalog",
    "CorruptStateError",
    "DictatorshipAction",
    "DictatorshipCard",
    "DrawCardAction",
    "EndConsultationAction",
    "Game",
    "GameConfig",
    "NullifyAction",
    "PassTurnAction",
    "PlayCardAction",
    "Player",
    "Role",
    "SeededRandom",
    "StepResult",
    "WorkCard",
    "can_submit_resignation",
    "draw_card",
    "end_subordinate_consultation",
    "is_no_overtime_day",
    "nullify_dictatorship_card",
    "pass_turn",
    "play_card",
    "process_dictatorship_phase",
    "replay",
    "resignation_damage",
    "start_game",
    "step",
]
