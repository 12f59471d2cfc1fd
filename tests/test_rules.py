from __future__ import annotations

import json

import pytest
from hypothesis import given, settings, strategies as st

from klondike.cards import parse_card, shuffled_deck, standard_deck
from klondike.rules import (
    COLUMN_TO_COLUMN,
    COLUMN_TO_FOUNDATION,
    DEAL_FROM_STOCK,
    FLIP_COLUMN,
    REDEAL_STOCK,
    WASTE_TO_COLUMN,
    WASTE_TO_FOUNDATION,
    Move,
    apply_move,
    describe_move,
    legal_moves,
    run_starts,
)
from klondike.tableau import Tableau, column_from_cards


def cards(*labels):
    return [parse_card(label) for label in labels]


def build_tableau(columns=(), stock=(), waste=(), foundations=(0, 0, 0, 0)):
    """Return a partial position; unlisted columns stay empty."""

    tableau = Tableau()
    for index, (labels, num_face_down) in enumerate(columns):
        tableau.columns[index] = column_from_cards(cards(*labels), num_face_down)
    for card in cards(*stock):
        tableau.stock.push(card)
    for card in cards(*waste):
        tableau.waste.push(card)
    tableau.foundations = list(foundations)
    return tableau


def test_opening_moves_for_standard_deck():
    tableau = Tableau.deal(standard_deck())

    assert legal_moves(tableau) == [
        Move(COLUMN_TO_FOUNDATION, src_col=1),
        Move(DEAL_FROM_STOCK),
    ]


def test_foundation_move_exposes_the_next_card():
    tableau = Tableau.deal(standard_deck())
    hidden = tableau.columns[1].cards[0]

    apply_move(tableau, Move(COLUMN_TO_FOUNDATION, src_col=1))

    assert tableau.foundations == [0, 0, 1, 0]
    assert tableau.columns[1].cards == [hidden]
    assert tableau.columns[1].num_face_down == 0
    assert tableau.check_invariants() == []


def test_catalogue_order_and_placement_rules():
    tableau = build_tableau(
        columns=[
            ((), 0),
            (("2C", "KH", "QS"), 1),
            (("2D",), 0),
            (("4D",), 0),
            (("6D",), 0),
            (("8D",), 0),
            (("TD",), 0),
        ],
        stock=("3C",),
        waste=("AS",),
    )

    assert legal_moves(tableau) == [
        Move(WASTE_TO_FOUNDATION),
        Move(COLUMN_TO_COLUMN, src_col=1, src_index=1, dst_col=0),
        Move(WASTE_TO_COLUMN, dst_col=2),
        Move(DEAL_FROM_STOCK),
    ]


def test_run_move_describes_and_exposes():
    tableau = build_tableau(columns=[((), 0), (("2C", "KH", "QS"), 1)])
    move = Move(COLUMN_TO_COLUMN, src_col=1, src_index=1, dst_col=0)

    assert describe_move(move, tableau) == "Column 2: KH..QS -> Column 1"
    apply_move(tableau, move)

    assert tableau.columns[0].cards == cards("KH", "QS")
    assert tableau.columns[1].cards == cards("2C")
    assert tableau.columns[1].num_face_down == 0


@pytest.mark.parametrize(
    "labels,num_face_down,expected",
    [
        (("KD", "9H", "8S", "7H"), 1, [1, 2, 3]),
        (("KD", "9H", "8H"), 1, [2]),
        (("KD", "QS"), 2, []),
        ((), 0, []),
        (("5C",), 0, [0]),
    ],
)
def test_run_starts(labels, num_face_down, expected):
    column = column_from_cards(cards(*labels), num_face_down)
    assert run_starts(column) == expected


def test_deal_and_redeal_restore_stock_order():
    tableau = build_tableau(stock=("AS", "2S", "3S", "4S", "5S"))
    original = tableau.stock.cards[:]

    apply_move(tableau, Move(DEAL_FROM_STOCK))
    assert tableau.waste.cards == cards("5S", "4S", "3S")
    apply_move(tableau, Move(DEAL_FROM_STOCK))
    assert tableau.stock.is_empty()
    assert legal_moves(tableau)[-1] == Move(REDEAL_STOCK)

    apply_move(tableau, Move(REDEAL_STOCK))
    assert tableau.waste.is_empty()
    assert tableau.stock.cards == original


def test_redeal_not_offered_while_stock_has_cards():
    tableau = build_tableau(stock=("KS",), waste=("KH",))
    kinds = [move.kind for move in legal_moves(tableau)]
    assert DEAL_FROM_STOCK in kinds
    assert REDEAL_STOCK not in kinds


def test_flip_offered_for_fully_hidden_column():
    tableau = build_tableau(columns=[(("5C", "9H"), 2)])

    assert legal_moves(tableau) == [Move(FLIP_COLUMN, src_col=0)]
    apply_move(tableau, Move(FLIP_COLUMN, src_col=0))
    assert tableau.columns[0].top_face_up() == parse_card("9H")

    with pytest.raises(AssertionError):
        apply_move(tableau, Move(FLIP_COLUMN, src_col=0))


def test_foundation_requires_next_rank():
    tableau = build_tableau(columns=[(("3H",), 0)], foundations=(0, 1, 0, 0))
    assert legal_moves(tableau) == []
    tableau.foundations[1] = 2
    assert legal_moves(tableau) == [Move(COLUMN_TO_FOUNDATION, src_col=0)]


@pytest.mark.parametrize(
    "move,expected",
    [
        (Move(COLUMN_TO_COLUMN, src_col=2, src_index=4, dst_col=4), "C3:4->C5"),
        (Move(COLUMN_TO_FOUNDATION, src_col=0), "C1->F"),
        (Move(WASTE_TO_COLUMN, dst_col=1), "W->C2"),
        (Move(WASTE_TO_FOUNDATION), "W->F"),
        (Move(FLIP_COLUMN, src_col=3), "FLIP(C4)"),
        (Move(DEAL_FROM_STOCK), "DEAL"),
        (Move(REDEAL_STOCK), "REDEAL"),
    ],
)
def test_move_notation(move, expected):
    assert move.to_notation() == expected


def test_move_serialisation():
    move = Move(COLUMN_TO_COLUMN, src_col=2, src_index=4, dst_col=4)
    assert Move.from_json(move.to_json()) == move
    assert json.loads(move.to_json())["kind"] == "column_to_column"
    assert Move.from_dict({"kind": "waste_to_column", "dst_col": "3"}) == Move(
        WASTE_TO_COLUMN, dst_col=3
    )


@pytest.mark.parametrize(
    "payload,error",
    [
        ({"kind": "teleport"}, ValueError),
        ({"kind": "flip_column", "src_col": "x"}, ValueError),
        ({"kind": "flip_column", "src_col": -4}, ValueError),
        ({"kind": "flip_column", "src_col": True}, TypeError),
        ({"kind": "flip_column", "src_col": 1.5}, TypeError),
    ],
)
def test_move_from_dict_rejects_bad_payloads(payload, error):
    with pytest.raises(error):
        Move.from_dict(payload)


def test_unknown_move_kind_is_rejected_by_apply():
    with pytest.raises(ValueError):
        apply_move(Tableau(), Move("teleport"))


@settings(max_examples=60, deadline=None)
@given(
    seed=st.integers(min_value=0, max_value=2**32 - 1),
    choices=st.lists(st.integers(min_value=0, max_value=1000), max_size=60),
)
def test_random_play_conserves_cards(seed, choices):
    tableau = Tableau.deal(shuffled_deck(seed))
    for choice in choices:
        moves = legal_moves(tableau)
        if not moves:
            break
        apply_move(tableau, moves[choice % len(moves)])
        assert tableau.total_cards() == 52
        assert tableau.check_invariants() == []


@pytest.mark.parametrize("seed", [0, 19])
def test_every_position_within_three_moves_conserves_cards(seed):
    frontier = [Tableau.deal(shuffled_deck(seed))]
    for _ in range(3):
        successors = []
        for tableau in frontier:
            for move in legal_moves(tableau):
                child = tableau.copy()
                apply_move(child, move)
                assert child.total_cards() == 52
                assert child.check_invariants() == []
                successors.append(child)
        frontier = successors
