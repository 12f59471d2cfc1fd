"""Deal ingestion: validating, parsing and loading 52-card dealing orders.

Decks usually arrive as bracketed integer lists, either typed on a command
line or embedded in the stdout of a dump script alongside descriptive text
such as ``Seed: 1310``.  :func:`extract_decks_from_text` accepts both.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from klondike.cards import (
    ACE,
    DECK_SIZE,
    NUM_RANKS,
    can_stack,
    make_card,
    parse_card,
    standard_deck,
)
from klondike.tableau import FACE_UP_DEAL_INDICES, MAX_STOCK, STOCK_START

_DECK_CHARS = re.compile(r"^[\d,\s\[\]]*$")
_LABEL_KEYS = re.compile(r"game|seed", re.IGNORECASE)
_DIGITS = re.compile(r"\d+")
# How far back from a list to look for its label.
_LABEL_LOOKBACK = 512


class DeckError(ValueError):
    """Raised when deck text or a deck file cannot be turned into a deal."""


@dataclass(frozen=True)
class DeckSpec:
    """A labelled deal in dealing order."""

    label: str
    deck: tuple[int, ...]


def validate_deck(values: Iterable[object]) -> tuple[int, ...]:
    """Return *values* as a deal tuple, raising :class:`DeckError` otherwise."""

    deck: list[int] = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise DeckError(f"Card {value!r} is not an integer index")
        deck.append(value)
    if len(deck) != DECK_SIZE:
        raise DeckError(f"Deck must have {DECK_SIZE} cards, got {len(deck)}")
    seen: set[int] = set()
    for card in deck:
        if not 0 <= card < DECK_SIZE:
            raise DeckError(f"Card index {card} out of range 0..{DECK_SIZE - 1}")
        if card in seen:
            raise DeckError(f"Duplicate card index {card}")
        seen.add(card)
    return tuple(deck)


def _parse_token(token: str) -> int:
    if token.isdigit():
        return int(token, 10)
    try:
        return parse_card(token)
    except ValueError as exc:
        raise DeckError(f"Could not parse {token!r} as a card") from exc


def parse_deck_list(text: str) -> tuple[int, ...]:
    """Parse ``"[51, 32, ...]"`` into a deal.

    Entries are card indices or labels such as ``AS`` and ``TD``; empty
    entries are ignored so trailing commas are fine.
    """

    open_at = text.find("[")
    close_at = text.rfind("]")
    if open_at < 0:
        raise DeckError("Deck list is missing '['")
    if close_at < 0:
        raise DeckError("Deck list is missing ']'")
    if close_at <= open_at:
        raise DeckError("Malformed [...] deck list")
    tokens = [part.strip() for part in text[open_at + 1 : close_at].split(",")]
    return validate_deck(_parse_token(token) for token in tokens if token)


def _sniff_label(text: str) -> str | None:
    matches = list(_LABEL_KEYS.finditer(text))
    if not matches:
        return None
    number = _DIGITS.search(text, matches[-1].start())
    return number.group(0) if number else None


def extract_decks_from_text(text: str, default_label: str) -> list[DeckSpec]:
    """Return every well-formed bracketed deck list found in *text*.

    A deck is labelled by the number following the last ``game`` or ``seed``
    between it and the previous deck; unlabelled decks are numbered
    ``<default_label>#<n>``.  Bracketed text that is not a valid deck is
    skipped.
    """

    decks: list[DeckSpec] = []
    unlabelled = 0
    position = 0
    # A label never reaches back past the previous deck.
    previous_end = 0
    while True:
        open_at = text.find("[", position)
        if open_at < 0:
            break
        close_at = text.find("]", open_at + 1)
        if close_at < 0:
            break
        candidate = text[open_at : close_at + 1]
        position = close_at + 1
        if not _DECK_CHARS.match(candidate):
            continue
        try:
            deck = parse_deck_list(candidate)
        except DeckError:
            continue
        window_start = max(previous_end, open_at - _LABEL_LOOKBACK)
        label = _sniff_label(text[window_start:open_at])
        previous_end = close_at + 1
        if label is None:
            unlabelled += 1
            label = f"{default_label}#{unlabelled}"
        decks.append(DeckSpec(label=label, deck=deck))
    return decks


def load_decks(path: Path | str) -> list[DeckSpec]:
    """Load every deck in the text file at *path*, labelled after the file."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DeckError(f"{path}: could not read deck file ({exc.strerror})") from exc
    return extract_decks_from_text(text, path.name)


# Under draw three the waste top can only ever be every third stock card.
STOCK_ACCESSIBLE_INDICES = tuple(range(STOCK_START + 2, STOCK_START + MAX_STOCK, 3))

_UNPLAYABLE_TOPS = (
    make_card("clubs", 4),
    make_card("clubs", 6),
    make_card("clubs", 8),
    make_card("clubs", 10),
    make_card("spades", 4),
    make_card("spades", 6),
    make_card("spades", 8),
)
_UNPLAYABLE_STOCK = (
    make_card("clubs", 2),
    make_card("spades", 2),
    make_card("diamonds", 6),
    make_card("hearts", 6),
    make_card("diamonds", 10),
    make_card("hearts", 10),
    make_card("diamonds", 12),
    make_card("hearts", 12),
)


def unplayable_deck() -> tuple[int, ...]:
    """Return a deal with no legal move other than cycling the stock.

    Every face-up column card and every card that can surface on the waste
    has an odd rank, so no two of them differ by one and none is an ace.
    The other 37 cards fill the remaining slots in standard order.
    """

    forced = dict(zip(sorted(FACE_UP_DEAL_INDICES), _UNPLAYABLE_TOPS))
    forced.update(zip(STOCK_ACCESSIBLE_INDICES, _UNPLAYABLE_STOCK))
    used = set(forced.values())
    filler = iter(card for card in standard_deck() if card not in used)
    return tuple(
        forced[index] if index in forced else next(filler) for index in range(DECK_SIZE)
    )


def is_unplayable_by_local_conditions(deck: Sequence[int]) -> bool:
    """Check the accessible cards of *deck* admit no foundation or column move."""

    tops = [deck[index] for index in FACE_UP_DEAL_INDICES]
    stock = [deck[index] for index in STOCK_ACCESSIBLE_INDICES]
    if any(card % NUM_RANKS == ACE for card in tops + stock):
        return False
    for upper in tops + stock:
        if any(can_stack(upper, lower) for lower in tops if lower != upper):
            return False
    return True


__all__ = [
    "DeckError",
    "DeckSpec",
    "STOCK_ACCESSIBLE_INDICES",
    "extract_decks_from_text",
    "is_unplayable_by_local_conditions",
    "load_decks",
    "parse_deck_list",
    "unplayable_deck",
]
