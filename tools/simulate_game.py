from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dokusai.engine.ai import BotSpec, play_out
from dokusai.engine.serialize import action_to_dict, archive
from dokusai.paths import get_paths
from dokusai.services.content import ContentService
from dokusai.services.telemetry import TelemetryService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Play a seeded bot game and print its archive record.")
    parser.add_argument("--seed", type=int, default=1, help="Random seed for shuffles and dice.")
    parser.add_argument("--players", type=int, default=4, choices=(4, 5), help="Number of seats.")
    parser.add_argument("--cards-per-turn", type=int, default=1)
    parser.add_argument("--no-nullify", action="store_true", help="Subordinates never nullify.")
    parser.add_argument("--actions", action="store_true", help="Include the action log in the output.")
    parser.add_argument("--telemetry", type=Path, default=None, help="Append a game_ended record to this JSONL file.")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    paths = get_paths()
    catalog = ContentService(paths.data_dir, paths.schema_dir).load_catalog()
    player_ids = [f"p{i + 1}" for i in range(args.players)]
    spec = BotSpec(cards_per_turn=args.cards_per_turn, nullify=not args.no_nullify)

    game, actions = play_out(catalog, player_ids, args.seed, spec=spec)

    out = archive(game)
    out["seed"] = args.seed
    if args.actions:
        out["action_log"] = [action_to_dict(a) for a in actions]
    if args.telemetry is not None:
        TelemetryService(args.telemetry).log("game_ended", out)

    json.dump(out, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
