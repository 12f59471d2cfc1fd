#!/usr/bin/env python3
"""Solve many Klondike deals and write one result row per deal.

Every deal gets its own solver and visited set, so deals can be solved in
separate worker processes.  Results are written as CSV or Parquet and a
summary is printed when the run completes.
"""

from __future__ import annotations

import argparse
import logging
import os
import random
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Sequence

from klondike.cards import shuffled_deck
from klondike.decks import DeckError, DeckSpec, load_decks
from klondike.search import SearchConfig, SearchLimits, solve
from klondike.stats import (
    ResultsError,
    format_summary,
    outcome_to_row,
    rows_to_frame,
    summarise_frame,
    write_results,
)

DEFAULT_OUTPUT_PATH = Path("data/results.parquet")

LOGGER = logging.getLogger("klondike.batch")


def _default_workers() -> int:
    return max(1, (os.cpu_count() or 1) - 1)


def seeded_decks(games: int, seed: int | None) -> list[DeckSpec]:
    """Return *games* shuffled deals.

    The first deal uses *seed* itself when given; later deals draw their
    seeds from a master RNG seeded with it, so a run is reproducible.
    """

    master_seed = seed if seed is not None else random.randrange(0, 2**32)
    master_rng = random.Random(master_seed)
    decks: list[DeckSpec] = []
    for game_index in range(games):
        if game_index == 0 and seed is not None:
            game_seed = seed & 0xFFFFFFFF
        else:
            game_seed = master_rng.randrange(0, 2**32)
        decks.append(DeckSpec(label=f"seed:{game_seed}", deck=tuple(shuffled_deck(game_seed))))
    return decks


def solve_one(spec: DeckSpec, config: SearchConfig) -> dict[str, Any]:
    """Solve a single deal; module level so worker processes can pickle it."""

    return outcome_to_row(spec.label, solve(spec.deck, config))


def run_batch(
    decks: Sequence[DeckSpec],
    config: SearchConfig,
    *,
    workers: int = 1,
    progress_every: int = 0,
) -> list[dict[str, Any]]:
    """Solve *decks* and return their result rows in input order."""

    started = time.perf_counter()
    rows: list[dict[str, Any] | None] = [None] * len(decks)

    def _report(done: int) -> None:
        if progress_every > 0 and done % progress_every == 0:
            elapsed = (time.perf_counter() - started) * 1000.0
            LOGGER.info("progress %s/%s elapsed_ms=%.1f", done, len(decks), elapsed)

    if workers <= 1:
        for index, spec in enumerate(decks):
            rows[index] = solve_one(spec, config)
            _report(index + 1)
    else:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(solve_one, spec, config): index
                for index, spec in enumerate(decks)
            }
            for done, future in enumerate(as_completed(futures), start=1):
                rows[futures[future]] = future.result()
                _report(done)

    return [row for row in rows if row is not None]


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--games",
        type=int,
        default=10,
        help="Number of shuffled deals to solve (default: %(default)s).",
    )
    source.add_argument(
        "--deck-file",
        help="Solve every bracketed deck list in this text file instead of shuffling.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the first shuffle. Subsequent deals advance the RNG deterministically.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=_default_workers(),
        help="Number of worker processes (default: %(default)s).",
    )
    parser.add_argument(
        "--max-nodes",
        default=str(SearchLimits().max_nodes),
        help="Maximum number of positions to expand per deal (default: %(default)s).",
    )
    parser.add_argument(
        "--max-depth",
        default=str(SearchLimits().max_depth),
        help="Maximum number of moves along one branch (default: %(default)s).",
    )
    parser.add_argument(
        "--output",
        default=str(DEFAULT_OUTPUT_PATH),
        help="Result file, .csv or .parquet (default: %(default)s).",
    )
    parser.add_argument(
        "--progress-every",
        type=int,
        default=0,
        help="Log progress after this many solved deals (default: off).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.games < 0:
        parser.error("--games must be non-negative")
    try:
        limits = SearchLimits(max_nodes=args.max_nodes, max_depth=args.max_depth)
    except (TypeError, ValueError) as exc:
        parser.error(str(exc))
    output = Path(args.output)
    if output.suffix.lower() not in (".csv", ".parquet"):
        parser.error(f"{output}: output must end in .csv or .parquet")

    try:
        if args.deck_file is not None:
            decks = load_decks(args.deck_file)
        else:
            decks = seeded_decks(args.games, args.seed)
    except DeckError as exc:
        parser.error(str(exc))

    LOGGER.info("Solving %s deals with %s workers", f"{len(decks):,}", max(1, args.workers))
    rows = run_batch(
        decks,
        SearchConfig(limits=limits),
        workers=max(1, args.workers),
        progress_every=args.progress_every,
    )
    frame = rows_to_frame(rows)

    try:
        write_results(frame, output)
    except ResultsError as exc:
        LOGGER.error("%s", exc)
        return 1
    LOGGER.info("Wrote %s rows to %s", f"{len(frame):,}", output)

    print(format_summary(str(output), summarise_frame(frame)))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
