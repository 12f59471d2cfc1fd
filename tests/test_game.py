from __future__ import annotations

import pytest

from klondike.cards import shuffled_deck, standard_deck
from klondike.game import GameHistory
from klondike.hashing import fingerprint
from klondike.rules import COLUMN_TO_FOUNDATION, DEAL_FROM_STOCK, Move, legal_moves
from klondike.tableau import Tableau


def test_new_history_starts_at_the_deal():
    deck = shuffled_deck(3)
    history = GameHistory.new(deck)

    assert history.is_at_initial()
    assert history.move_count == 0
    assert history.deal == tuple(deck)
    assert history.tableau == Tableau.deal(deck)
    assert history.fingerprint == fingerprint(Tableau.deal(deck))


def test_apply_move_updates_cache_and_verifies():
    history = GameHistory.new(standard_deck())
    history.apply_move(Move(COLUMN_TO_FOUNDATION, src_col=1))
    history.apply_move(Move(DEAL_FROM_STOCK))

    assert history.move_count == 2
    assert not history.is_at_initial()
    assert history.fingerprint == fingerprint(history.tableau)
    assert history.verify()
    assert history.replay_from_scratch() == history.tableau


def test_clone_does_not_share_mutable_state():
    history = GameHistory.new(standard_deck())
    child = history.clone()
    child.apply_move(Move(DEAL_FROM_STOCK))

    assert history.move_count == 0
    assert len(history.tableau.stock) == 24
    assert len(child.tableau.stock) == 21
    assert child.fingerprint != history.fingerprint
    assert child.initial_tableau == history.initial_tableau


def test_from_parts_replays_moves():
    moves = [Move(DEAL_FROM_STOCK), Move(DEAL_FROM_STOCK)]
    history = GameHistory.from_parts(standard_deck(), moves)

    assert history.moves == moves
    assert len(history.tableau.waste) == 6
    assert history.verify()


def test_from_tableau_replays_from_the_given_position():
    tableau = Tableau()
    tableau.foundations = [13, 13, 13, 13]
    history = GameHistory.from_tableau(tableau)

    assert history.deal is None
    assert legal_moves(history.tableau) == []
    assert history.replay_from_scratch() == tableau
    assert history.verify()


def test_verify_detects_a_tampered_cache():
    history = GameHistory.new(standard_deck())
    history.tableau.foundations[0] = 5
    assert not history.verify()


def test_history_rejects_bad_deals():
    with pytest.raises(ValueError):
        GameHistory.new([0] * 52)


def test_clone_copies_the_starting_position():
    tableau = Tableau()
    tableau.stock.push(0)
    tableau.stock.push(1)
    parent = GameHistory.from_tableau(tableau)
    child = parent.clone()

    assert child.initial_tableau is not parent.initial_tableau
    child.initial_tableau.stock.pop()

    assert len(parent.initial_tableau.stock) == 2
    assert parent.verify()
