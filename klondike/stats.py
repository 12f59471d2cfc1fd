"""Win/loss bookkeeping and summaries of batch solver results.

Batch runs store one row per deal with the columns in :data:`RESULT_COLUMNS`.
Rows are kept in pandas frames and written as CSV or Parquet so they can be
analysed with the same tooling as any other dataset.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from klondike.search import (
    BOUNDED_REASONS,
    TERMINATION_REASONS,
    WIN,
    SolveOutcome,
)

LOGGER = logging.getLogger("klondike.stats")

RESULT_COLUMNS = [
    "label",
    "termination",
    "is_win",
    "moves",
    "nodes_visited",
    "max_stack_depth",
    "max_branch_depth",
    "dead_end_branches",
    "loop_pruned_branches",
    "depth_cutoff_branches",
    "solve_time_ms",
    "winning_line",
]
REQUIRED_COLUMNS = {"label", "termination", "nodes_visited", "solve_time_ms"}
DIFFICULTY_LEVELS = ("easy", "medium", "hard")


class ResultsError(Exception):
    """Raised when a batch result file cannot be read or is malformed."""


@dataclass
class Stats:
    """Running tally of solved games.

    Games that hit a node or depth budget are neither won nor lost; they are
    counted as ``unknown`` and left out of the win rate.
    """

    games_played: int = 0
    games_won: int = 0
    games_lost: int = 0
    games_unknown: int = 0

    def record_win(self) -> None:
        self.games_played += 1
        self.games_won += 1

    def record_loss(self) -> None:
        self.games_played += 1
        self.games_lost += 1

    def record_unknown(self) -> None:
        self.games_played += 1
        self.games_unknown += 1

    def record(self, termination: str) -> None:
        if termination == WIN:
            self.record_win()
        elif termination in BOUNDED_REASONS:
            self.record_unknown()
        elif termination in TERMINATION_REASONS:
            self.record_loss()
        else:
            raise ValueError(f"Unknown termination reason: {termination!r}")

    @property
    def win_rate(self) -> float | None:
        decided = self.games_won + self.games_lost
        if decided == 0:
            return None
        return self.games_won / decided


def outcome_to_row(label: str, outcome: SolveOutcome) -> dict[str, Any]:
    """Flatten *outcome* into a result row keyed by :data:`RESULT_COLUMNS`."""

    line = outcome.winning_line
    return {
        "label": label,
        "termination": outcome.termination,
        "is_win": outcome.is_win,
        "moves": len(line) if line is not None else None,
        "nodes_visited": outcome.nodes_visited,
        "max_stack_depth": outcome.max_stack_depth,
        "max_branch_depth": outcome.max_branch_depth,
        "dead_end_branches": outcome.dead_end_branches,
        "loop_pruned_branches": outcome.loop_pruned_branches,
        "depth_cutoff_branches": outcome.depth_cutoff_branches,
        "solve_time_ms": round(outcome.elapsed_ms, 3),
        "winning_line": (
            " ".join(move.to_notation() for move in line) if line is not None else None
        ),
    }


def rows_to_frame(rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(list(rows), columns=RESULT_COLUMNS)


def write_results(frame: pd.DataFrame, path: Path) -> None:
    """Write *frame* to *path* as CSV or Parquet, chosen by the suffix."""

    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".csv":
        frame.to_csv(path, index=False)
    elif suffix == ".parquet":
        frame.to_parquet(path, index=False)
    else:
        raise ResultsError(f"{path}: Unsupported file extension")


def load_results(path: Path) -> pd.DataFrame:
    """Read a batch result file, raising :class:`ResultsError` on problems."""

    suffix = path.suffix.lower()
    if suffix not in (".csv", ".parquet"):
        raise ResultsError(f"{path}: Unsupported file extension")
    if not path.exists():
        raise ResultsError(f"{path}: File not found")
    try:
        if suffix == ".csv":
            frame = pd.read_csv(path)
        else:
            frame = pd.read_parquet(path)
    except (OSError, ValueError) as exc:
        raise ResultsError(f"{path}: Could not read results ({exc})") from exc

    missing = sorted(REQUIRED_COLUMNS - set(frame.columns))
    if missing:
        raise ResultsError(f"{path}: Missing required columns: " + ", ".join(missing))

    terminations = frame["termination"].astype(str).str.strip().str.lower()
    unknown = sorted(set(terminations[~terminations.isin(TERMINATION_REASONS)]))
    if unknown:
        raise ResultsError(
            f"{path}: Unexpected termination values: " + ", ".join(unknown)
        )
    LOGGER.debug("Loaded %s result rows from %s", f"{len(frame):,}", path)
    return frame


def difficulty_score(frame: pd.DataFrame) -> pd.Series:
    node_term = np.log10(frame["nodes_visited"].astype(float) + 1.0)
    time_term = np.log10(frame["solve_time_ms"].astype(float) + 1.0)
    return node_term + time_term


def assign_difficulty(scores: pd.Series) -> pd.Series:
    """Bucket *scores* into easy/medium/hard at the 30th and 70th percentiles."""

    if scores.empty:
        return pd.Series(dtype="object")

    p30 = np.percentile(scores, 30)
    p70 = np.percentile(scores, 70)

    buckets = np.full(len(scores), "medium", dtype=object)
    buckets[(scores < p30).to_numpy()] = "easy"
    buckets[(scores > p70).to_numpy()] = "hard"
    return pd.Series(buckets, index=scores.index)


@dataclass(frozen=True)
class ResultSummary:
    """Aggregate statistics over a frame of batch results."""

    total_games: int
    termination_counts: dict[str, int]
    wins: int
    losses: int
    unknown: int
    win_rate: float | None
    median_nodes: float | None
    p90_nodes: float | None
    max_nodes: int | None
    mean_solve_time_ms: float | None
    difficulty_counts: dict[str, int] = field(default_factory=dict)


def summarise_frame(frame: pd.DataFrame) -> ResultSummary:
    """Return a :class:`ResultSummary` for the rows of *frame*."""

    stats = Stats()
    terminations = frame["termination"].astype(str).str.strip().str.lower()
    for termination in terminations:
        stats.record(termination)

    counts = {
        str(label): int(count)
        for label, count in terminations.value_counts().sort_index().items()
    }

    if frame.empty:
        median_nodes = p90_nodes = None
        max_nodes = None
        mean_time = None
    else:
        nodes = frame["nodes_visited"].astype(float).to_numpy()
        median_nodes = float(np.percentile(nodes, 50))
        p90_nodes = float(np.percentile(nodes, 90))
        max_nodes = int(nodes.max())
        mean_time = float(frame["solve_time_ms"].astype(float).mean())

    wins = frame[(terminations == WIN).to_numpy()]
    levels = assign_difficulty(difficulty_score(wins))
    difficulty_counts: dict[str, int] = {}
    if not levels.empty:
        for level in DIFFICULTY_LEVELS:
            difficulty_counts[level] = int((levels == level).sum())

    return ResultSummary(
        total_games=stats.games_played,
        termination_counts=counts,
        wins=stats.games_won,
        losses=stats.games_lost,
        unknown=stats.games_unknown,
        win_rate=stats.win_rate,
        median_nodes=median_nodes,
        p90_nodes=p90_nodes,
        max_nodes=max_nodes,
        mean_solve_time_ms=mean_time,
        difficulty_counts=difficulty_counts,
    )


def summary_to_dict(summary: ResultSummary) -> dict[str, object]:
    """Return a JSON-serialisable representation of *summary*."""

    payload = asdict(summary)
    payload["termination_counts"] = dict(sorted(payload["termination_counts"].items()))
    return payload


def format_summary(name: str, summary: ResultSummary) -> str:
    """Return a human-readable description of *summary*."""

    lines = [f"{name}: {summary.total_games} games"]
    if summary.termination_counts:
        ordered = ", ".join(
            f"{label}={count}" for label, count in sorted(summary.termination_counts.items())
        )
        lines.append(f"  terminations: {ordered}")
    lines.append(
        f"  won={summary.wins} lost={summary.losses} unknown={summary.unknown}"
    )
    if summary.win_rate is not None:
        lines.append(f"  win rate: {summary.win_rate * 100:.1f}%")
    if summary.median_nodes is not None:
        lines.append(
            f"  nodes: median={summary.median_nodes:.0f} "
            f"p90={summary.p90_nodes:.0f} max={summary.max_nodes}"
        )
    if summary.mean_solve_time_ms is not None:
        lines.append(f"  mean solve time: {summary.mean_solve_time_ms:.1f} ms")
    if summary.difficulty_counts:
        total = sum(summary.difficulty_counts.values()) or 1
        parts = [
            f"{summary.difficulty_counts.get(level, 0) / total * 100:.1f}% {level}"
            for level in DIFFICULTY_LEVELS
        ]
        lines.append("  difficulty of wins: " + ", ".join(parts))
    return "\n".join(lines)


__all__ = [
    "DIFFICULTY_LEVELS",
    "RESULT_COLUMNS",
    "ResultSummary",
    "ResultsError",
    "Stats",
    "assign_difficulty",
    "difficulty_score",
    "format_summary",
    "load_results",
    "outcome_to_row",
    "rows_to_frame",
    "summarise_frame",
    "summary_to_dict",
    "write_results",
]
