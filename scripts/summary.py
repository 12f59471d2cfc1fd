"""Summarise Klondike batch solver results exported as CSV or Parquet."""
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable, Sequence

from klondike.stats import (
    ResultSummary,
    ResultsError,
    format_summary,
    load_results,
    summarise_frame,
    summary_to_dict,
)


def summarise_path(path: Path) -> ResultSummary:
    """Load results from *path* and return their summary."""

    return summarise_frame(load_results(path))


def run(paths: Iterable[str]) -> list[tuple[Path, ResultSummary]]:
    """Compute summaries for each path in *paths*."""

    results: list[tuple[Path, ResultSummary]] = []
    for raw_path in paths:
        path = Path(raw_path)
        results.append((path, summarise_path(path)))
    return results


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Summarise Klondike batch solver results exported as CSV or Parquet.",
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Paths to result files. Use shell globs to summarise multiple files at once.",
    )
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Emit the summary as JSON instead of formatted text.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    try:
        summaries = run(args.paths)
    except ResultsError as exc:
        parser.error(str(exc))

    if args.as_json:
        payload = [
            {"path": str(path), "summary": summary_to_dict(summary)}
            for path, summary in summaries
        ]
        print(json.dumps(payload, indent=2))
    else:
        for path, summary in summaries:
            print(format_summary(str(path), summary))

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
