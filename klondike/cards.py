"""Compact card model for a standard 52-card deck.

A card is a plain ``int`` in ``[0, 52)``.  The suit is ``card // 13`` and the
rank is ``card % 13`` with ``0`` for the ace and ``12`` for the king.  Keeping
cards as integers lets the tableau copy and hash positions cheaply.
"""
from __future__ import annotations

import random

SUITS = ("spades", "hearts", "clubs", "diamonds")
SUIT_COLORS = {
    "spades": "black",
    "clubs": "black",
    "hearts": "red",
    "diamonds": "red",
}
NUM_SUITS = len(SUITS)
NUM_RANKS = 13
DECK_SIZE = NUM_SUITS * NUM_RANKS
RANKS = tuple(range(NUM_RANKS))
ACE = 0
KING = NUM_RANKS - 1

RANK_LABELS = "A23456789TJQK"
SUIT_LABELS = "SHCD"

_RED_SUITS = frozenset(
    index for index, suit in enumerate(SUITS) if SUIT_COLORS[suit] == "red"
)


def _suit_index(suit: int | str) -> int:
    if isinstance(suit, str):
        try:
            return SUITS.index(suit.strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown suit: {suit!r}") from exc
    if isinstance(suit, bool) or not isinstance(suit, int):
        raise TypeError(f"Unsupported suit type: {type(suit).__name__}")
    if not 0 <= suit < NUM_SUITS:
        raise ValueError(f"Suit index out of range: {suit}")
    return suit


def make_card(suit: int | str, rank: int) -> int:
    """Return the card index for *suit* (index or name) and *rank* (0-12)."""

    suit_index = _suit_index(suit)
    if isinstance(rank, bool) or not isinstance(rank, int):
        raise TypeError(f"Unsupported rank type: {type(rank).__name__}")
    if not 0 <= rank < NUM_RANKS:
        raise ValueError(f"Rank out of range: {rank}")
    return suit_index * NUM_RANKS + rank


def card_from_index(index: int) -> int:
    """Validate a raw card index and return it."""

    if isinstance(index, bool) or not isinstance(index, int):
        raise TypeError(f"Unsupported card type: {type(index).__name__}")
    if not 0 <= index < DECK_SIZE:
        raise ValueError(f"Card index out of range: {index}")
    return index


def suit_of(card: int) -> int:
    return card // NUM_RANKS


def rank_of(card: int) -> int:
    return card % NUM_RANKS


def is_red(card: int) -> bool:
    return card // NUM_RANKS in _RED_SUITS


def color_of(card: int) -> str:
    return SUIT_COLORS[SUITS[card // NUM_RANKS]]


def can_stack(upper: int, lower: int) -> bool:
    """Return ``True`` when *upper* may sit directly on *lower* in a column.

    The upper card must be exactly one rank below the lower card and of the
    opposite color.
    """

    return (
        upper % NUM_RANKS + 1 == lower % NUM_RANKS
        and (upper // NUM_RANKS in _RED_SUITS) != (lower // NUM_RANKS in _RED_SUITS)
    )


def card_label(card: int) -> str:
    """Return a two character label such as ``"AS"``, ``"TD"`` or ``"KH"``."""

    return RANK_LABELS[card % NUM_RANKS] + SUIT_LABELS[card // NUM_RANKS]


def parse_card(label: str) -> int:
    """Parse a label produced by :func:`card_label` (``"10"`` is accepted)."""

    token = label.strip().upper()
    if token.startswith("10"):
        token = "T" + token[2:]
    if len(token) != 2:
        raise ValueError(f"Malformed card label: {label!r}")
    rank_char, suit_char = token
    rank = RANK_LABELS.find(rank_char)
    suit = SUIT_LABELS.find(suit_char)
    if rank < 0 or suit < 0:
        raise ValueError(f"Malformed card label: {label!r}")
    return suit * NUM_RANKS + rank


def standard_deck() -> list[int]:
    """Return the deck in suit-major, rank-minor order."""

    return list(range(DECK_SIZE))


def shuffled_deck(seed: int) -> list[int]:
    """Return a deterministic permutation of the deck for *seed*."""

    deck = standard_deck()
    random.Random(seed & 0xFFFFFFFF).shuffle(deck)
    return deck


__all__ = [
    "ACE",
    "DECK_SIZE",
    "KING",
    "NUM_RANKS",
    "NUM_SUITS",
    "RANKS",
    "SUITS",
    "SUIT_COLORS",
    "can_stack",
    "card_from_index",
    "card_label",
    "color_of",
    "is_red",
    "make_card",
    "parse_card",
    "rank_of",
    "shuffled_deck",
    "standard_deck",
    "suit_of",
]
