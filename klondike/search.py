"""Bounded depth-first search over Klondike positions.

The solver keeps an explicit stack of :class:`GameHistory` values, so the
search depth is limited by configuration rather than by the interpreter's
recursion limit.  Positions are deduplicated by fingerprint; a fingerprint
that was already inserted into the visited set is never explored again.
Every run ends with one of the termination reasons below.
"""
from __future__ import annotations

import json
import logging
import math
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, MutableMapping, Sequence

from klondike.display import render_tableau
from klondike.game import GameHistory
from klondike.rules import Move, legal_moves
from klondike.tableau import Tableau

LOGGER = logging.getLogger("klondike.search")

WIN = "win"
LOSS_NO_MORE_MOVES = "loss_no_more_moves"
MAX_NODES_REACHED = "max_nodes_reached"
MAX_DEPTH_REACHED = "max_depth_reached"
LOOP_ON_LAST_BRANCH = "loop_on_last_branch"

TERMINATION_REASONS = (
    WIN,
    LOSS_NO_MORE_MOVES,
    MAX_NODES_REACHED,
    MAX_DEPTH_REACHED,
    LOOP_ON_LAST_BRANCH,
)
# Reasons caused by a search bound rather than by the game itself.
BOUNDED_REASONS = frozenset({MAX_NODES_REACHED, MAX_DEPTH_REACHED})

DETAIL_SUMMARY = "summary"
DETAIL_TRACE = "trace"
DETAIL_LEVELS = (DETAIL_SUMMARY, DETAIL_TRACE)

DEFAULT_MAX_NODES = 100_000
DEFAULT_MAX_DEPTH = 256


def _normalise_limit(value: Any, name: str) -> int:
    """Convert *value* into a non-negative integer search limit.

    Limits frequently arrive from command lines or JSON payloads, so numeric
    strings and integral floats are accepted.  ``ValueError`` is raised for
    recognised but invalid content (negative, fractional or non-numeric)
    while ``TypeError`` flags unsupported data types.
    """

    if isinstance(value, bool):
        raise TypeError(f"Boolean values are not valid for {name}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value) or not value.is_integer():
            raise ValueError(f"{name} must be a whole number")
        parsed = int(value)
    elif isinstance(value, str):
        token = value.strip().replace("_", "")
        try:
            parsed = int(token, 10)
        except ValueError as exc:
            raise ValueError(f"Unknown {name} value: {value!r}") from exc
    else:
        raise TypeError(f"Unsupported {name} type: {type(value).__name__}")
    if parsed < 0:
        raise ValueError(f"{name} must be non-negative")
    return parsed


@dataclass(frozen=True)
class SearchLimits:
    """Node and depth budgets for a single solve."""

    max_nodes: int = DEFAULT_MAX_NODES
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        object.__setattr__(self, "max_nodes", _normalise_limit(self.max_nodes, "max_nodes"))
        object.__setattr__(self, "max_depth", _normalise_limit(self.max_depth, "max_depth"))


@dataclass(frozen=True)
class SearchConfig:
    """Limits plus the amount of diagnostic output to emit."""

    limits: SearchLimits = field(default_factory=SearchLimits)
    detail: str = DETAIL_SUMMARY

    def __post_init__(self) -> None:
        detail = str(self.detail).strip().lower()
        if detail not in DETAIL_LEVELS:
            raise ValueError(f"Unknown detail level: {self.detail!r}")
        object.__setattr__(self, "detail", detail)

    @property
    def trace(self) -> bool:
        return self.detail == DETAIL_TRACE

    def to_dict(self) -> MutableMapping[str, Any]:
        """Return the configuration as a flat JSON-serialisable mapping."""
        return {
            "max_nodes": self.limits.max_nodes,
            "max_depth": self.limits.max_depth,
            "detail": self.detail,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SearchConfig":
        """Create a configuration from *data*; missing keys keep defaults."""
        limits = SearchLimits(
            max_nodes=data.get("max_nodes", DEFAULT_MAX_NODES),
            max_depth=data.get("max_depth", DEFAULT_MAX_DEPTH),
        )
        return cls(limits=limits, detail=data.get("detail", DETAIL_SUMMARY))

    def to_json(self) -> str:
        """Serialise the configuration to a JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, payload: str) -> "SearchConfig":
        """Deserialise a :class:`SearchConfig` from *payload*."""
        return cls.from_dict(json.loads(payload))


@dataclass
class SolveOutcome:
    """Result of solving one starting position."""

    termination: str
    winning_line: tuple[Move, ...] | None
    nodes_visited: int
    max_stack_depth: int
    max_branch_depth: int
    dead_end_branches: int
    loop_pruned_branches: int
    depth_cutoff_branches: int
    elapsed_ms: float
    initial_deck: tuple[int, ...] | None = None

    @property
    def is_win(self) -> bool:
        return self.termination == WIN

    @property
    def is_bounded(self) -> bool:
        """``True`` when a search limit, not the game, ended the run."""
        return self.termination in BOUNDED_REASONS

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["is_win"] = self.is_win
        payload["winning_line"] = (
            None
            if self.winning_line is None
            else [dict(move.to_dict()) for move in self.winning_line]
        )
        payload["initial_deck"] = (
            None if self.initial_deck is None else list(self.initial_deck)
        )
        return payload


class DepthFirstSolver:
    """Explores the positions reachable from one start, depth first.

    An instance holds the stack and visited set of a single run.  Solving
    several deals, in sequence or in parallel, needs one instance per deal.
    """

    def __init__(self, config: SearchConfig | None = None) -> None:
        self.config = config or SearchConfig()
        self.stack: list[GameHistory] = []
        self.visited: set[int] = set()

    def solve(self, history: GameHistory) -> SolveOutcome:
        limits = self.config.limits
        trace = self.config.trace
        started = time.perf_counter()

        self.stack = [history]
        self.visited = {history.fingerprint}
        stack = self.stack
        visited = self.visited

        nodes_visited = 0
        max_stack_depth = 1
        max_branch_depth = 0
        dead_ends = 0
        loop_pruned = 0
        depth_cutoffs = 0
        last_loop_pruned = False
        termination: str | None = None
        winning_line: tuple[Move, ...] | None = None

        while stack:
            state = stack.pop()
            if nodes_visited >= limits.max_nodes:
                termination = MAX_NODES_REACHED
                break
            nodes_visited += 1
            depth = len(state.moves)
            if depth > max_branch_depth:
                max_branch_depth = depth
            if trace:
                self._trace_node(nodes_visited, state)

            if state.tableau.is_win():
                termination = WIN
                winning_line = tuple(state.moves)
                break

            last_loop_pruned = False
            if depth >= limits.max_depth:
                depth_cutoffs += 1
                continue

            moves = legal_moves(state.tableau)
            if not moves:
                dead_ends += 1
                continue

            admitted = 0
            # Reversed so the first catalogue move is popped first.
            for move in reversed(moves):
                child = state.clone()
                child.apply_move(move)
                if child.fingerprint not in visited:
                    visited.add(child.fingerprint)
                    stack.append(child)
                    admitted += 1
            if admitted == 0:
                loop_pruned += 1
                last_loop_pruned = True
            elif len(stack) > max_stack_depth:
                max_stack_depth = len(stack)

        if termination is None:
            if depth_cutoffs:
                termination = MAX_DEPTH_REACHED
            elif last_loop_pruned and dead_ends + loop_pruned > 1:
                termination = LOOP_ON_LAST_BRANCH
            else:
                termination = LOSS_NO_MORE_MOVES

        outcome = SolveOutcome(
            termination=termination,
            winning_line=winning_line,
            nodes_visited=nodes_visited,
            max_stack_depth=max_stack_depth,
            max_branch_depth=max_branch_depth,
            dead_end_branches=dead_ends,
            loop_pruned_branches=loop_pruned,
            depth_cutoff_branches=depth_cutoffs,
            elapsed_ms=(time.perf_counter() - started) * 1000.0,
            initial_deck=history.deal,
        )
        LOGGER.debug(
            "Search finished: %s after %s nodes (max stack %s, max depth %s)",
            termination,
            f"{nodes_visited:,}",
            max_stack_depth,
            max_branch_depth,
        )
        return outcome

    def _trace_node(self, number: int, state: GameHistory) -> None:
        notation = " ".join(move.to_notation() for move in state.moves) or "[]"
        LOGGER.info(
            "=== DFS node %d ===\nDepth: %d\nFingerprint: 0x%016x\n%s\nMoves so far: %s",
            number,
            len(state.moves),
            state.fingerprint,
            render_tableau(state.tableau),
            notation,
        )


def solve_history(
    history: GameHistory, config: SearchConfig | None = None
) -> SolveOutcome:
    """Search from *history* with a fresh solver and visited set."""

    return DepthFirstSolver(config).solve(history)


def solve(deal: Sequence[int], config: SearchConfig | None = None) -> SolveOutcome:
    """Deal *deal* and search it for a winning line."""

    return solve_history(GameHistory.new(deal), config)


def solve_tableau(tableau: Tableau, config: SearchConfig | None = None) -> SolveOutcome:
    """Search from an arbitrary position rather than a fresh deal."""

    return solve_history(GameHistory.from_tableau(tableau), config)


__all__ = [
    "BOUNDED_REASONS",
    "DETAIL_SUMMARY",
    "DETAIL_TRACE",
    "DepthFirstSolver",
    "LOOP_ON_LAST_BRANCH",
    "LOSS_NO_MORE_MOVES",
    "MAX_DEPTH_REACHED",
    "MAX_NODES_REACHED",
    "SearchConfig",
    "SearchLimits",
    "SolveOutcome",
    "TERMINATION_REASONS",
    "WIN",
    "solve",
    "solve_history",
    "solve_tableau",
]
