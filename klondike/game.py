"""Game history: the initial deal plus every move applied since."""
from __future__ import annotations

from typing import Iterable, Sequence

from klondike.hashing import fingerprint
from klondike.rules import Move, apply_move
from klondike.tableau import Tableau


class GameHistory:
    """Couples a starting position with the ordered moves played from it.

    The current tableau and its fingerprint are cached and kept in step by
    :meth:`apply_move`, the only sanctioned mutator.  ``deal`` is ``None``
    when the history was seeded from an arbitrary position instead of a deal.
    """

    __slots__ = ("deal", "initial_tableau", "moves", "tableau", "fingerprint")

    def __init__(
        self,
        initial_tableau: Tableau,
        *,
        deal: Sequence[int] | None = None,
    ) -> None:
        self.deal: tuple[int, ...] | None = tuple(deal) if deal is not None else None
        self.initial_tableau = initial_tableau.copy()
        self.tableau = initial_tableau.copy()
        self.moves: list[Move] = []
        self.fingerprint = fingerprint(self.tableau)

    @classmethod
    def new(cls, deal: Sequence[int]) -> "GameHistory":
        """Deal *deal* and start a history with no moves."""

        return cls(Tableau.deal(deal), deal=deal)

    @classmethod
    def from_tableau(cls, tableau: Tableau) -> "GameHistory":
        return cls(tableau)

    @classmethod
    def from_parts(cls, deal: Sequence[int], moves: Iterable[Move]) -> "GameHistory":
        """Deal *deal* and replay *moves* through :meth:`apply_move`."""

        history = cls.new(deal)
        for move in moves:
            history.apply_move(move)
        return history

    def clone(self) -> "GameHistory":
        other = GameHistory.__new__(GameHistory)
        other.deal = self.deal
        other.initial_tableau = self.initial_tableau.copy()
        other.tableau = self.tableau.copy()
        other.moves = self.moves[:]
        other.fingerprint = self.fingerprint
        return other

    @property
    def move_count(self) -> int:
        return len(self.moves)

    def is_at_initial(self) -> bool:
        return not self.moves

    def apply_move(self, move: Move) -> None:
        apply_move(self.tableau, move)
        self.moves.append(move)
        self.fingerprint = fingerprint(self.tableau)

    def replay_from_scratch(self) -> Tableau:
        """Rebuild the current tableau from the start without the cache."""

        if self.deal is not None:
            tableau = Tableau.deal(self.deal)
        else:
            tableau = self.initial_tableau.copy()
        for move in self.moves:
            apply_move(tableau, move)
        return tableau

    def verify(self) -> bool:
        """Return ``True`` when the cached tableau matches a full replay."""

        replayed = self.replay_from_scratch()
        return replayed == self.tableau and fingerprint(replayed) == self.fingerprint

    def __repr__(self) -> str:
        return (
            f"GameHistory(moves={len(self.moves)}, "
            f"fingerprint=0x{self.fingerprint:016x})"
        )


__all__ = ["GameHistory"]
