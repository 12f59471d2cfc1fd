#!/usr/bin/env python3
"""Solve Klondike deals (draw three, unlimited redeals) with a bounded DFS."""

from __future__ import annotations

import argparse
import json
import logging
import random
from typing import Sequence

from klondike.cards import shuffled_deck
from klondike.decks import DeckError, DeckSpec, load_decks, parse_deck_list
from klondike.display import render_move_line, render_tableau
from klondike.search import (
    DETAIL_SUMMARY,
    DETAIL_TRACE,
    SearchConfig,
    SearchLimits,
    SolveOutcome,
    solve,
)
from klondike.tableau import Tableau

LOGGER = logging.getLogger("klondike.solver")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--seed",
        type=int,
        help="Shuffle seed for the deal. A random seed is chosen when no source is given.",
    )
    source.add_argument(
        "--deck",
        help="Deal as a bracketed list of 52 card indices or labels, e.g. '[51, 32, ...]'.",
    )
    source.add_argument(
        "--deck-file",
        help="Text file containing one or more bracketed deck lists; every deck is solved.",
    )
    parser.add_argument(
        "--max-nodes",
        default=str(SearchLimits().max_nodes),
        help="Maximum number of positions to expand (default: %(default)s).",
    )
    parser.add_argument(
        "--max-depth",
        default=str(SearchLimits().max_depth),
        help="Maximum number of moves along one branch (default: %(default)s).",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Log every visited position while searching.",
    )
    parser.add_argument(
        "--show-line",
        action="store_true",
        help="Print the starting position and the winning line, move by move.",
    )
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Emit results as JSON instead of formatted text.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def _collect_decks(args: argparse.Namespace) -> list[DeckSpec]:
    if args.deck is not None:
        return [DeckSpec(label="cli", deck=parse_deck_list(args.deck))]
    if args.deck_file is not None:
        decks = load_decks(args.deck_file)
        if not decks:
            raise DeckError(f"{args.deck_file}: no deck lists found")
        return decks
    seed = args.seed if args.seed is not None else random.randrange(0, 2**32)
    return [DeckSpec(label=f"seed:{seed}", deck=tuple(shuffled_deck(seed)))]


def format_outcome(label: str, outcome: SolveOutcome) -> str:
    moves = len(outcome.winning_line) if outcome.winning_line is not None else 0
    return (
        f"Deal {label}: {outcome.termination} moves={moves} "
        f"nodes={outcome.nodes_visited} max_stack={outcome.max_stack_depth} "
        f"max_depth={outcome.max_branch_depth} dead_ends={outcome.dead_end_branches} "
        f"loops={outcome.loop_pruned_branches} cutoffs={outcome.depth_cutoff_branches} "
        f"time={outcome.elapsed_ms:.1f}ms"
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        limits = SearchLimits(max_nodes=args.max_nodes, max_depth=args.max_depth)
    except (TypeError, ValueError) as exc:
        parser.error(str(exc))
    config = SearchConfig(
        limits=limits, detail=DETAIL_TRACE if args.trace else DETAIL_SUMMARY
    )

    try:
        decks = _collect_decks(args)
    except DeckError as exc:
        parser.error(str(exc))

    payload = []
    for spec in decks:
        LOGGER.debug("Solving deal %s", spec.label)
        outcome = solve(spec.deck, config)
        if args.as_json:
            payload.append({"label": spec.label, "outcome": outcome.to_dict()})
            continue
        print(format_outcome(spec.label, outcome))
        if args.show_line and outcome.winning_line is not None:
            start = Tableau.deal(spec.deck)
            print(render_tableau(start))
            print(render_move_line(start, outcome.winning_line))

    if args.as_json:
        print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
