from __future__ import annotations

from klondike.cards import standard_deck
from klondike.display import (
    HIDDEN,
    format_card,
    render_columns,
    render_foundations,
    render_full_piles,
    render_move_line,
    render_playing_edge,
    render_stock_and_waste,
    render_tableau,
)
from klondike.rules import COLUMN_TO_FOUNDATION, DEAL_FROM_STOCK, Move
from klondike.tableau import Tableau


def test_format_card_hides_face_down_cards():
    assert format_card(0, True) == "AS"
    assert format_card(0, False) == HIDDEN == "XX"


def test_render_foundations():
    tableau = Tableau()
    assert render_foundations(tableau) == "Foundations: [  ] [  ] [  ] [  ]"
    tableau.foundations = [1, 0, 13, 0]
    assert render_foundations(tableau) == "Foundations: [AS] [  ] [KC] [  ]"


def test_render_stock_and_waste():
    tableau = Tableau.deal(standard_deck())
    assert render_stock_and_waste(tableau) == "Stock: [24 cards]    Waste: [empty]"
    tableau.waste.push(tableau.stock.pop())
    assert render_stock_and_waste(tableau) == "Stock: [23 cards]    Waste: [3C] (1 cards)"


def test_render_columns_is_top_justified():
    lines = render_columns(Tableau.deal(standard_deck())).splitlines()

    assert lines[0] == "Columns:"
    assert lines[1] == "      " + "".join(f" C{index} " for index in range(1, 8))
    assert lines[2] == "      " + " 2C " + " XX " * 6
    assert lines[-1] == "      " + "    " * 6 + " 9H "
    assert len(lines) == 2 + 7


def test_render_tableau_combines_sections():
    text = render_tableau(Tableau.deal(standard_deck()))
    assert text.startswith("Foundations:")
    assert "Stock: [24 cards]" in text
    assert "Columns:" in text


def test_render_playing_edge():
    tableau = Tableau.deal(standard_deck())
    assert render_playing_edge(tableau) == (
        "Piles (playing edge): C1: 2C  C2: AC  C3: KH  C4: QH  C5: JH  C6: TH  C7: 9H"
    )
    tableau.columns[0].pop()
    assert "C1: --" in render_playing_edge(tableau)


def test_render_full_piles_shows_hidden_cards():
    text = render_full_piles(Tableau.deal(standard_deck()))
    assert "  C1: 2C" in text
    assert "  C2: 6S AC" in text
    assert "  Waste: <empty>" in text


def test_render_move_line_describes_each_move_in_context():
    start = Tableau.deal(standard_deck())
    moves = [Move(COLUMN_TO_FOUNDATION, src_col=1), Move(DEAL_FROM_STOCK)]

    assert render_move_line(start, moves).splitlines() == [
        "    1: Column 2: AC -> Foundation(clubs)",
        "    2: Deal from Stock (draw up to 3 cards)",
    ]
    assert start == Tableau.deal(standard_deck())
