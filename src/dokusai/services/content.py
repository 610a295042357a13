from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from dokusai.engine.types import (
    Card,
    CardCatalog,
    DictatorshipCard,
    WorkCard,
)
from dokusai.paths import get_paths

# Expected deck composition.
WORK_CARD_COUNTS = {"attack": 22, "defense": 11, "recovery": 10, "president": 7}
DICTATORSHIP_CARD_COUNT = 15


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: str(list(e.path)))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _expand_work_cards(raw: Mapping[str, object]) -> list[WorkCard]:
    prefix = _require_str(raw, "id_prefix")
    count = _require_int(raw, "count")
    return [
        WorkCard(
            id=f"{prefix}_{i:03d}",
            category=_require_str(raw, "category"),  # type: ignore[arg-type]
            name=_require_str(raw, "name"),
            description=_require_str(raw, "description"),
            is_visible=bool(raw.get("is_visible", False)),
        )
        for i in range(1, count + 1)
    ]


def _parse_dictatorship_card(raw: Mapping[str, object]) -> DictatorshipCard:
    return DictatorshipCard(
        id=_require_str(raw, "id"),
        name=_require_str(raw, "name"),
        description=_require_str(raw, "description"),
        target=_require_str(raw, "target"),  # type: ignore[arg-type]  # schema restricts values
        is_visible=bool(raw.get("is_visible", True)),
    )


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_catalog(self, *, strict_counts: bool = True) -> CardCatalog:
        cards_path = self._data_dir / "cards.json"
        raw = _load_json(cards_path)
        schema = _load_json(self._schema_dir / "cards.schema.json")
        validate_json(raw, schema, context=str(cards_path))

        if not isinstance(raw, dict):
            raise ContentError("cards.json must be an object")

        cards: dict[str, Card] = {}
        for group in raw.get("work_cards", []):
            if not isinstance(group, dict):
                continue
            for card in _expand_work_cards(group):
                if card.id in cards:
                    raise ContentError(f"Duplicate card id: {card.id}")
                cards[card.id] = card
        for item in raw.get("dictatorship_cards", []):
            if not isinstance(item, dict):
                continue
            dcard = _parse_dictatorship_card(item)
            if dcard.id in cards:
                raise ContentError(f"Duplicate card id: {dcard.id}")
            cards[dcard.id] = dcard

        catalog = CardCatalog(cards=cards)
        if strict_counts:
            _check_counts(catalog)
        return catalog

    def validate_all(self) -> None:
        # Load is validation (schema + parse + counts)
        _ = self.load_catalog()


def _check_counts(catalog: CardCatalog) -> None:
    for category, expected in WORK_CARD_COUNTS.items():
        got = len(catalog.cards_by_category(category))  # type: ignore[arg-type]
        if got != expected:
            raise ContentError(f"Expected {expected} {category} cards, found {got}")
    got = len(catalog.dictatorship_cards())
    if got != DICTATORSHIP_CARD_COUNT:
        raise ContentError(f"Expected {DICTATORSHIP_CARD_COUNT} dictatorship cards, found {got}")


@lru_cache(maxsize=1)
def default_catalog() -> CardCatalog:
    """Catalog from the packaged card data, built once per process."""
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir).load_catalog()
