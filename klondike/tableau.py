"""Position model for a Klondike (draw-3) game.

A :class:`Tableau` holds one stock pile, one waste pile, seven columns and four
foundation counters.  It is a plain value: :meth:`Tableau.copy` duplicates
every pile so that search branches never observe each other's mutations.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

from klondike.cards import DECK_SIZE, NUM_RANKS, NUM_SUITS

NUM_COLS = 7
NUM_FOUNDATIONS = NUM_SUITS

# 28 cards go to the columns, leaving 24 for the stock.  A column holds at most
# six hidden cards plus a full king-to-ace run.
MAX_STOCK = 24
MAX_WASTE = 24
MAX_COL = 19


def _build_deal_sequence() -> tuple[tuple[int, bool], ...]:
    sequence: list[tuple[int, bool]] = []
    # Face-down rounds, each dealt right to left: round r fills columns r..6.
    for round_start in range(1, NUM_COLS):
        for column in range(NUM_COLS - 1, round_start - 1, -1):
            sequence.append((column, True))
    # One face-up card per column, right to left.
    for column in range(NUM_COLS - 1, -1, -1):
        sequence.append((column, False))
    return tuple(sequence)


# (column, face_down) for each of the first 28 cards of a deal, in order.
DEAL_SEQUENCE = _build_deal_sequence()
STOCK_START = len(DEAL_SEQUENCE)
# Deck index of the face-up card dealt to each column, in column order.
FACE_UP_DEAL_INDICES = tuple(
    next(
        index
        for index, (column, face_down) in enumerate(DEAL_SEQUENCE)
        if column == target and not face_down
    )
    for target in range(NUM_COLS)
)


@dataclass
class Pile:
    """Fixed-capacity stack of cards; index 0 is the bottom."""

    capacity: int
    cards: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[int]:
        return iter(self.cards)

    def is_empty(self) -> bool:
        return not self.cards

    def push(self, card: int) -> None:
        assert len(self.cards) < self.capacity, "pile overflow"
        self.cards.append(card)

    def pop(self) -> int:
        assert self.cards, "pop from empty pile"
        return self.cards.pop()

    def top(self) -> int | None:
        return self.cards[-1] if self.cards else None

    def copy(self) -> "Pile":
        return Pile(self.capacity, self.cards[:])


@dataclass
class Column(Pile):
    """A pile whose first ``num_face_down`` cards are hidden."""

    num_face_down: int = 0

    @property
    def num_face_up(self) -> int:
        return len(self.cards) - self.num_face_down

    def push_card(self, card: int, *, face_down: bool = False) -> None:
        self.push(card)
        if face_down:
            self.num_face_down += 1

    def face_up_cards(self) -> list[int]:
        return self.cards[self.num_face_down:]

    def top_face_up(self) -> int | None:
        """Return the top card if it is visible, else ``None``."""

        if len(self.cards) > self.num_face_down:
            return self.cards[-1]
        return None

    def expose_top(self) -> bool:
        """Turn the top card face-up when the column has no visible card.

        Returns ``True`` when a card was exposed.
        """

        if self.cards and self.num_face_down == len(self.cards):
            self.num_face_down -= 1
            return True
        return False

    def copy(self) -> "Column":
        return Column(self.capacity, self.cards[:], self.num_face_down)


def _empty_columns() -> list[Column]:
    return [Column(MAX_COL) for _ in range(NUM_COLS)]


@dataclass
class Tableau:
    """Full game position: stock, waste, seven columns and four foundations."""

    stock: Pile = field(default_factory=lambda: Pile(MAX_STOCK))
    waste: Pile = field(default_factory=lambda: Pile(MAX_WASTE))
    columns: list[Column] = field(default_factory=_empty_columns)
    # Foundations hold the count of consecutive ranks placed per suit.
    foundations: list[int] = field(default_factory=lambda: [0] * NUM_FOUNDATIONS)

    @classmethod
    def deal(cls, permutation: Sequence[int]) -> "Tableau":
        """Lay out the opening position from a 52-card dealing-order deck.

        Column ``i`` receives ``i + 1`` cards with only the last one face-up.
        The remaining cards become the stock, arranged so that the next card
        drawn is the next undealt card of *permutation*.
        """

        deck = list(permutation)
        if len(deck) != DECK_SIZE or sorted(deck) != list(range(DECK_SIZE)):
            raise ValueError("Deal must be a permutation of the 52-card deck")

        tableau = cls()
        for card, (column, face_down) in zip(deck, DEAL_SEQUENCE):
            tableau.columns[column].push_card(card, face_down=face_down)
        for card in reversed(deck[STOCK_START:]):
            tableau.stock.push(card)
        return tableau

    def copy(self) -> "Tableau":
        return Tableau(
            stock=self.stock.copy(),
            waste=self.waste.copy(),
            columns=[column.copy() for column in self.columns],
            foundations=self.foundations[:],
        )

    def is_win(self) -> bool:
        return all(count == NUM_RANKS for count in self.foundations)

    def total_cards(self) -> int:
        """Return the number of cards accounted for across every pile."""

        total = len(self.stock) + len(self.waste)
        total += sum(len(column) for column in self.columns)
        total += sum(self.foundations)
        return total

    def flatten(self) -> list[int]:
        """Serialise the position into its canonical 52-card sequence.

        Columns come first in storage order, then the stock and the waste
        bottom-to-top, then the foundations suit-major and rank-minor.
        """

        out: list[int] = []
        for column in self.columns:
            out.extend(column.cards)
        out.extend(self.stock.cards)
        out.extend(self.waste.cards)
        for suit, count in enumerate(self.foundations):
            out.extend(suit * NUM_RANKS + rank for rank in range(count))
        return out

    def check_invariants(self) -> list[str]:
        """Return a description of every structural invariant that fails."""

        problems: list[str] = []
        flat = self.flatten()
        if sorted(flat) != list(range(DECK_SIZE)):
            problems.append("cards do not form exactly one 52-card deck")
        for name, pile in (("stock", self.stock), ("waste", self.waste)):
            if len(pile) > pile.capacity:
                problems.append(f"{name} exceeds capacity {pile.capacity}")
        for index, column in enumerate(self.columns):
            if len(column) > column.capacity:
                problems.append(f"column {index + 1} exceeds capacity")
            if not 0 <= column.num_face_down <= len(column):
                problems.append(f"column {index + 1} has an invalid face-down count")
            elif column.cards and column.num_face_up == 0:
                problems.append(f"column {index + 1} has no face-up card")
        for suit, count in enumerate(self.foundations):
            if not 0 <= count <= NUM_RANKS:
                problems.append(f"foundation {suit} out of range: {count}")
        return problems


def column_from_cards(
    cards: Iterable[int], num_face_down: int = 0, capacity: int = MAX_COL
) -> Column:
    """Build a column from bottom-to-top *cards* with a hidden prefix."""

    column = Column(capacity)
    for index, card in enumerate(cards):
        column.push_card(card, face_down=index < num_face_down)
    return column


__all__ = [
    "Column",
    "DEAL_SEQUENCE",
    "FACE_UP_DEAL_INDICES",
    "MAX_COL",
    "MAX_STOCK",
    "MAX_WASTE",
    "NUM_COLS",
    "NUM_FOUNDATIONS",
    "Pile",
    "STOCK_START",
    "Tableau",
    "column_from_cards",
]
