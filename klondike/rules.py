"""Rules engine for Klondike, draw three with unlimited redeals.

:func:`legal_moves` lists every legal transition from a position in a fixed
catalogue order and :func:`apply_move` mutates a position by one such move.
A :class:`Move` only references piles by index, so it is meaningless outside
the position it was generated from.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Mapping, MutableMapping

from klondike.cards import KING, NUM_RANKS, SUITS, can_stack, card_label
from klondike.tableau import Column, Tableau

DRAW_COUNT = 3

COLUMN_TO_COLUMN = "column_to_column"
COLUMN_TO_FOUNDATION = "column_to_foundation"
WASTE_TO_COLUMN = "waste_to_column"
WASTE_TO_FOUNDATION = "waste_to_foundation"
FLIP_COLUMN = "flip_column"
DEAL_FROM_STOCK = "deal_from_stock"
REDEAL_STOCK = "redeal_stock"

MOVE_KINDS = (
    COLUMN_TO_FOUNDATION,
    WASTE_TO_FOUNDATION,
    COLUMN_TO_COLUMN,
    WASTE_TO_COLUMN,
    FLIP_COLUMN,
    DEAL_FROM_STOCK,
    REDEAL_STOCK,
)


def _get_value(obj: Any, key: str, default: Any = None) -> Any:
    """Retrieve *key* from mappings or objects with a fallback."""
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    if hasattr(obj, key):
        return getattr(obj, key)
    return default


def _coerce_index(value: Any) -> int:
    """Convert *value* into a pile index, ``-1`` meaning "unused"."""

    if value is None:
        return -1
    if isinstance(value, bool):
        raise TypeError("Boolean values are not valid pile indices")
    if isinstance(value, str):
        token = value.strip()
        if not token:
            return -1
        try:
            value = int(token, 10)
        except ValueError as exc:
            raise ValueError(f"Unknown pile index value: {value!r}") from exc
    if not isinstance(value, int):
        raise TypeError(f"Unsupported pile index type: {type(value).__name__}")
    if value < -1:
        raise ValueError("Pile index must be -1 or non-negative")
    return value


@dataclass(frozen=True)
class Move:
    """A single transition; unused index fields are ``-1``."""

    kind: str
    src_col: int = -1
    src_index: int = -1
    dst_col: int = -1

    def to_dict(self) -> MutableMapping[str, Any]:
        """Return the move as a JSON-serialisable mapping."""
        return dict(asdict(self))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Move":
        """Create a move from *data* produced by :meth:`to_dict`."""
        kind = _get_value(data, "kind")
        if kind not in MOVE_KINDS:
            raise ValueError(f"Unknown move kind: {kind!r}")
        return cls(
            kind=kind,
            src_col=_coerce_index(_get_value(data, "src_col")),
            src_index=_coerce_index(_get_value(data, "src_index")),
            dst_col=_coerce_index(_get_value(data, "dst_col")),
        )

    def to_json(self) -> str:
        """Serialise the move to a JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, payload: str) -> "Move":
        """Deserialise a :class:`Move` from *payload*."""
        return cls.from_dict(json.loads(payload))

    def to_notation(self) -> str:
        """Compact, position-independent text such as ``C3:4->C5``."""

        if self.kind == COLUMN_TO_COLUMN:
            return f"C{self.src_col + 1}:{self.src_index}->C{self.dst_col + 1}"
        if self.kind == COLUMN_TO_FOUNDATION:
            return f"C{self.src_col + 1}->F"
        if self.kind == WASTE_TO_COLUMN:
            return f"W->C{self.dst_col + 1}"
        if self.kind == WASTE_TO_FOUNDATION:
            return "W->F"
        if self.kind == FLIP_COLUMN:
            return f"FLIP(C{self.src_col + 1})"
        if self.kind == DEAL_FROM_STOCK:
            return "DEAL"
        return "REDEAL"


def _fits_foundation(foundations: list[int], card: int) -> bool:
    return foundations[card // NUM_RANKS] == card % NUM_RANKS


def _accepts(column: Column, card: int) -> bool:
    """Return ``True`` when *card* (or a run topped by it) may land on *column*."""

    if not column.cards:
        return card % NUM_RANKS == KING
    top = column.top_face_up()
    return top is not None and can_stack(card, top)


def run_starts(column: Column) -> list[int]:
    """Return every storage index from which the column's top is a valid run.

    A run descends by exactly one rank and alternates colors; the top card on
    its own is always a run.  Indices are returned bottom-most first.
    """

    cards = column.cards
    if len(cards) <= column.num_face_down:
        return []
    start = len(cards) - 1
    while start > column.num_face_down and can_stack(cards[start], cards[start - 1]):
        start -= 1
    return list(range(start, len(cards)))


def legal_moves(tableau: Tableau) -> list[Move]:
    """Return every legal move from *tableau* in catalogue order.

    The order only sets search priority: foundation moves, column moves,
    waste moves, flips, then stock handling.
    """

    moves: list[Move] = []
    columns = tableau.columns
    foundations = tableau.foundations
    waste_top = tableau.waste.top()

    for index, column in enumerate(columns):
        card = column.top_face_up()
        if card is not None and _fits_foundation(foundations, card):
            moves.append(Move(COLUMN_TO_FOUNDATION, src_col=index))

    if waste_top is not None and _fits_foundation(foundations, waste_top):
        moves.append(Move(WASTE_TO_FOUNDATION))

    for src_col, column in enumerate(columns):
        for start in run_starts(column):
            run_top = column.cards[start]
            for dst_col, destination in enumerate(columns):
                if dst_col != src_col and _accepts(destination, run_top):
                    moves.append(
                        Move(
                            COLUMN_TO_COLUMN,
                            src_col=src_col,
                            src_index=start,
                            dst_col=dst_col,
                        )
                    )

    if waste_top is not None:
        for dst_col, destination in enumerate(columns):
            if _accepts(destination, waste_top):
                moves.append(Move(WASTE_TO_COLUMN, dst_col=dst_col))

    for index, column in enumerate(columns):
        if column.cards and column.num_face_down == len(column.cards):
            moves.append(Move(FLIP_COLUMN, src_col=index))

    if tableau.stock.cards:
        moves.append(Move(DEAL_FROM_STOCK))
    elif tableau.waste.cards:
        moves.append(Move(REDEAL_STOCK))

    return moves


def _place_on_foundation(tableau: Tableau, card: int) -> None:
    suit, rank = divmod(card, NUM_RANKS)
    assert tableau.foundations[suit] == rank, "card does not fit its foundation"
    tableau.foundations[suit] = rank + 1


def apply_move(tableau: Tableau, move: Move) -> None:
    """Mutate *tableau* in place by *move*.

    *move* must come from :func:`legal_moves` for this exact position.  Any
    column that loses its last visible card has its new top card exposed
    before this function returns.
    """

    kind = move.kind
    if kind == COLUMN_TO_COLUMN:
        assert move.src_col != move.dst_col, "run moved onto its own column"
        source = tableau.columns[move.src_col]
        destination = tableau.columns[move.dst_col]
        assert source.num_face_down <= move.src_index < len(source), "run start not visible"
        run = source.cards[move.src_index:]
        del source.cards[move.src_index:]
        for card in run:
            destination.push(card)
        source.expose_top()
    elif kind == COLUMN_TO_FOUNDATION:
        source = tableau.columns[move.src_col]
        assert source.top_face_up() is not None, "no visible card to promote"
        _place_on_foundation(tableau, source.pop())
        source.expose_top()
    elif kind == WASTE_TO_COLUMN:
        tableau.columns[move.dst_col].push(tableau.waste.pop())
    elif kind == WASTE_TO_FOUNDATION:
        _place_on_foundation(tableau, tableau.waste.pop())
    elif kind == FLIP_COLUMN:
        exposed = tableau.columns[move.src_col].expose_top()
        assert exposed, "flip requested on a column with a visible card"
    elif kind == DEAL_FROM_STOCK:
        stock = tableau.stock
        assert stock.cards, "deal from an empty stock"
        for _ in range(min(DRAW_COUNT, len(stock))):
            tableau.waste.push(stock.pop())
    elif kind == REDEAL_STOCK:
        assert not tableau.stock.cards, "redeal while the stock still has cards"
        waste = tableau.waste
        while waste.cards:
            tableau.stock.push(waste.pop())
    else:
        raise ValueError(f"Unknown move kind: {kind!r}")


def describe_move(move: Move, tableau: Tableau) -> str:
    """Render *move* for humans using the cards it touches in *tableau*."""

    kind = move.kind
    if kind == COLUMN_TO_COLUMN:
        cards = tableau.columns[move.src_col].cards
        run_top = card_label(cards[move.src_index])
        if move.src_index == len(cards) - 1:
            moved = run_top
        else:
            moved = f"{run_top}..{card_label(cards[-1])}"
        return f"Column {move.src_col + 1}: {moved} -> Column {move.dst_col + 1}"
    if kind == COLUMN_TO_FOUNDATION:
        card = tableau.columns[move.src_col].cards[-1]
        return (
            f"Column {move.src_col + 1}: {card_label(card)} "
            f"-> Foundation({SUITS[card // NUM_RANKS]})"
        )
    if kind == WASTE_TO_COLUMN:
        top = tableau.waste.top()
        label = card_label(top) if top is not None else "(empty)"
        return f"Waste: {label} -> Column {move.dst_col + 1}"
    if kind == WASTE_TO_FOUNDATION:
        top = tableau.waste.top()
        if top is None:
            return "Waste (empty) -> Foundation"
        return f"Waste: {card_label(top)} -> Foundation({SUITS[top // NUM_RANKS]})"
    if kind == FLIP_COLUMN:
        cards = tableau.columns[move.src_col].cards
        if not cards:
            return f"Flip Column {move.src_col + 1} (empty)"
        return f"Flip Column {move.src_col + 1} top card {card_label(cards[-1])} face-up"
    if kind == DEAL_FROM_STOCK:
        return f"Deal from Stock (draw up to {DRAW_COUNT} cards)"
    if kind == REDEAL_STOCK:
        return "Redeal Stock from Waste"
    raise ValueError(f"Unknown move kind: {kind!r}")


__all__ = [
    "COLUMN_TO_COLUMN",
    "COLUMN_TO_FOUNDATION",
    "DEAL_FROM_STOCK",
    "DRAW_COUNT",
    "FLIP_COLUMN",
    "MOVE_KINDS",
    "Move",
    "REDEAL_STOCK",
    "WASTE_TO_COLUMN",
    "WASTE_TO_FOUNDATION",
    "apply_move",
    "describe_move",
    "legal_moves",
    "run_starts",
]
