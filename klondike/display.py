"""Human-readable rendering of tableaus and move lines.

Face-down cards are shown as ``XX`` and face-up cards with their two
character label.  Columns are top-justified: row 0 holds the bottom card of
every column and the playable edge is the last row of each column.
"""
from __future__ import annotations

from typing import Sequence

from klondike.cards import card_label, make_card
from klondike.rules import Move, apply_move, describe_move
from klondike.tableau import NUM_COLS, Tableau

HIDDEN = "XX"


def format_card(card: int, face_up: bool) -> str:
    return card_label(card) if face_up else HIDDEN


def render_foundations(tableau: Tableau) -> str:
    """Render the top card of each foundation, ``[  ]`` when empty."""

    parts = []
    for suit, count in enumerate(tableau.foundations):
        if count == 0:
            parts.append("[  ]")
        else:
            parts.append(f"[{card_label(make_card(suit, count - 1))}]")
    return "Foundations: " + " ".join(parts)


def render_stock_and_waste(tableau: Tableau) -> str:
    stock_len = len(tableau.stock)
    stock = "Stock: [empty]" if stock_len == 0 else f"Stock: [{stock_len} cards]"
    top = tableau.waste.top()
    if top is None:
        waste = "Waste: [empty]"
    else:
        waste = f"Waste: [{card_label(top)}] ({len(tableau.waste)} cards)"
    return f"{stock}    {waste}"


def render_columns(tableau: Tableau) -> str:
    lines = ["Columns:", "      " + "".join(f" C{index + 1} " for index in range(NUM_COLS))]
    height = max((len(column) for column in tableau.columns), default=0)
    for row in range(height):
        cells = []
        for column in tableau.columns:
            if row >= len(column):
                cells.append("    ")
            else:
                face_up = row >= column.num_face_down
                cells.append(f"{format_card(column.cards[row], face_up):>3} ")
        lines.append("      " + "".join(cells))
    return "\n".join(lines) + "\n"


def render_tableau(tableau: Tableau) -> str:
    """Render foundations, stock/waste and columns as one block of text."""

    return "\n".join(
        [
            render_foundations(tableau),
            render_stock_and_waste(tableau),
            "",
            render_columns(tableau),
        ]
    )


def render_playing_edge(tableau: Tableau) -> str:
    """Summarise the top of every column, e.g. ``C1: 4S  C2: --``."""

    parts = []
    for index, column in enumerate(tableau.columns):
        if not column.cards:
            label = "--"
        elif column.num_face_up == 0:
            label = HIDDEN
        else:
            label = card_label(column.cards[-1])
        parts.append(f"C{index + 1}: {label:>2}")
    return "Piles (playing edge): " + "  ".join(parts)


def render_full_piles(tableau: Tableau) -> str:
    """Debug view listing every pile bottom to top, hidden cards included."""

    lines = ["Full piles (all cards shown, bottom -> top within each pile):"]
    for index, column in enumerate(tableau.columns):
        cards = " ".join(card_label(card) for card in column.cards) or "<empty>"
        lines.append(f"  C{index + 1}: {cards}")
    for name, pile in (("Stock", tableau.stock), ("Waste", tableau.waste)):
        cards = " ".join(card_label(card) for card in pile.cards) or "<empty>"
        lines.append(f"  {name}: {cards}")
    return "\n".join(lines)


def render_move_line(start: Tableau, moves: Sequence[Move]) -> str:
    """Describe *moves* one per line, replaying them on a copy of *start*."""

    tableau = start.copy()
    lines = []
    for number, move in enumerate(moves, start=1):
        lines.append(f"  {number:3}: {describe_move(move, tableau)}")
        apply_move(tableau, move)
    return "\n".join(lines)


__all__ = [
    "format_card",
    "render_columns",
    "render_foundations",
    "render_full_piles",
    "render_move_line",
    "render_playing_edge",
    "render_stock_and_waste",
    "render_tableau",
]
