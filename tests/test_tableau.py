from __future__ import annotations

import pytest

from klondike.cards import parse_card, shuffled_deck, standard_deck
from klondike.tableau import (
    DEAL_SEQUENCE,
    FACE_UP_DEAL_INDICES,
    MAX_STOCK,
    NUM_COLS,
    STOCK_START,
    Column,
    Pile,
    Tableau,
    column_from_cards,
)


@pytest.mark.parametrize("seed", [0, 1, 42, 2**31])
def test_deal_conserves_cards(seed):
    tableau = Tableau.deal(shuffled_deck(seed))

    assert sorted(tableau.flatten()) == standard_deck()
    assert tableau.total_cards() == 52
    assert tableau.check_invariants() == []
    assert len(tableau.stock) == MAX_STOCK
    assert tableau.waste.is_empty()
    assert tableau.foundations == [0, 0, 0, 0]
    for index, column in enumerate(tableau.columns):
        assert len(column) == index + 1
        assert column.num_face_down == index
        assert column.num_face_up == 1


def test_deal_layout_is_right_to_left_rounds():
    tableau = Tableau.deal(standard_deck())

    assert len(DEAL_SEQUENCE) == STOCK_START == 28
    assert FACE_UP_DEAL_INDICES == (27, 26, 25, 24, 23, 22, 21)
    # First round of hidden cards starts in the rightmost column.
    assert tableau.columns[6].cards[0] == 0
    assert tableau.columns[1].cards[0] == 5
    assert tableau.columns[0].cards == [27]
    assert tableau.columns[6].cards[-1] == 21


def test_stock_draws_continue_the_deal_order():
    tableau = Tableau.deal(standard_deck())

    assert tableau.stock.top() == 28
    assert tableau.stock.cards[0] == 51


@pytest.mark.parametrize(
    "deck",
    [
        list(range(51)),
        list(range(51)) + [0],
        list(range(1, 53)),
    ],
)
def test_deal_rejects_malformed_permutations(deck):
    with pytest.raises(ValueError):
        Tableau.deal(deck)


def test_copy_is_independent():
    original = Tableau.deal(standard_deck())
    clone = original.copy()

    clone.columns[0].pop()
    clone.stock.pop()
    clone.foundations[0] = 3

    assert original == Tableau.deal(standard_deck())
    assert clone != original


def test_pile_overflow_is_an_assertion():
    pile = Pile(1)
    pile.push(3)
    with pytest.raises(AssertionError):
        pile.push(4)


def test_pop_from_empty_pile_is_an_assertion():
    with pytest.raises(AssertionError):
        Pile(2).pop()


def test_expose_top_only_turns_a_fully_hidden_column():
    column = column_from_cards([parse_card("2C"), parse_card("9H")], num_face_down=2)
    assert column.top_face_up() is None
    assert column.expose_top() is True
    assert column.num_face_down == 1
    assert column.top_face_up() == parse_card("9H")
    assert column.expose_top() is False
    assert Column(19).expose_top() is False


def test_win_requires_every_foundation_complete():
    tableau = Tableau()
    tableau.foundations = [13, 13, 13, 12]
    assert not tableau.is_win()
    tableau.foundations[3] = 13
    assert tableau.is_win()
    assert tableau.total_cards() == 52
    assert tableau.check_invariants() == []


def test_flatten_orders_foundations_last():
    tableau = Tableau()
    tableau.foundations = [2, 0, 0, 0]
    tableau.stock.push(parse_card("KD"))
    tableau.columns[3] = column_from_cards([parse_card("5H")])
    assert tableau.flatten() == [parse_card("5H"), parse_card("KD"), 0, 1]


def test_check_invariants_reports_hidden_top_and_missing_cards():
    tableau = Tableau()
    tableau.columns[0] = column_from_cards([parse_card("5H")], num_face_down=1)
    problems = tableau.check_invariants()
    assert "cards do not form exactly one 52-card deck" in problems
    assert "column 1 has no face-up card" in problems
    assert len(tableau.columns) == NUM_COLS
