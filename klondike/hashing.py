"""64-bit position fingerprints used for duplicate detection during search."""
from __future__ import annotations

from klondike.tableau import Tableau

FNV_OFFSET_BASIS = 0xCBF29CE484222325
FNV_PRIME = 0x00000100000001B3
MASK_64 = 0xFFFFFFFFFFFFFFFF

# Section separators.
TAG_FOUNDATIONS = 0xF0
TAG_STOCK = ord("S")
TAG_WASTE = ord("W")
TAG_COLUMNS = 0xC0


def fingerprint(tableau: Tableau) -> int:
    """Return an FNV-1a hash over the complete state of *tableau*.

    Hidden column cards are included: two positions that differ only in a
    face-down card lead to different futures.
    """

    h = FNV_OFFSET_BASIS

    h = ((h ^ TAG_FOUNDATIONS) * FNV_PRIME) & MASK_64
    for count in tableau.foundations:
        h = ((h ^ count) * FNV_PRIME) & MASK_64

    h = ((h ^ TAG_STOCK) * FNV_PRIME) & MASK_64
    for card in reversed(tableau.stock.cards):
        h = ((h ^ card) * FNV_PRIME) & MASK_64

    h = ((h ^ TAG_WASTE) * FNV_PRIME) & MASK_64
    for card in reversed(tableau.waste.cards):
        h = ((h ^ card) * FNV_PRIME) & MASK_64

    h = ((h ^ TAG_COLUMNS) * FNV_PRIME) & MASK_64
    for column in tableau.columns:
        h = ((h ^ len(column.cards)) * FNV_PRIME) & MASK_64
        h = ((h ^ column.num_face_down) * FNV_PRIME) & MASK_64
        for card in column.cards:
            h = ((h ^ card) * FNV_PRIME) & MASK_64

    return h


__all__ = ["fingerprint"]
