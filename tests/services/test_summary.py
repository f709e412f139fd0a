from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from optionledger.services.engine import build_positions
from optionledger.services.summary import calculate_summary, strategy_breakdown


def test_summary_counts_wins_losses_and_open_positions(make_txn):
    transactions = [
        make_txn("w-open", "STO", when=datetime(2024, 5, 1), strike="100", amount="250"),
        make_txn("w-close", "BTC", when=datetime(2024, 5, 9), strike="100", amount="-100"),
        make_txn("l-open", "STO", when=datetime(2024, 5, 2), strike="90", amount="100"),
        make_txn("l-close", "BTC", when=datetime(2024, 5, 9), strike="90", amount="-180"),
        make_txn("w2-open", "STO", when=datetime(2024, 5, 3), strike="80", amount="50"),
        make_txn("w2-exp", "OEXP", when=datetime(2024, 6, 21), strike="80"),
        make_txn("open", "STO", when=datetime(2024, 5, 4), strike="70", amount="75"),
    ]

    stats = calculate_summary(build_positions(transactions).positions)

    assert stats.total_pl == Decimal("195")
    assert stats.open_positions_count == 1
    assert stats.closed_positions_count == 3
    assert stats.total_premium_collected == Decimal("475")
    assert stats.total_wins == 2
    assert stats.total_losses == 1
    assert stats.win_rate == Decimal("66.67")


def test_summary_of_nothing_is_zero():
    stats = calculate_summary([])

    assert stats.total_pl == Decimal("0")
    assert stats.win_rate == Decimal("0")
    assert stats.open_positions_count == stats.closed_positions_count == 0


def test_break_even_positions_count_as_neither(make_txn):
    transactions = [
        make_txn("open", "STO", when=datetime(2024, 5, 1), amount="100"),
        make_txn("close", "BTC", when=datetime(2024, 5, 2), amount="-100"),
    ]

    stats = build_positions(transactions).summary()

    assert stats.closed_positions_count == 1
    assert stats.total_wins == stats.total_losses == 0
    assert stats.win_rate == Decimal("0")


def test_strategy_breakdown_totals_and_averages_by_strategy(make_txn):
    transactions = [
        make_txn("p1-open", "STO", when=datetime(2024, 5, 1), strike="100", amount="250"),
        make_txn("p1-close", "BTC", when=datetime(2024, 5, 9), strike="100", amount="-100"),
        make_txn("p2-open", "STO", when=datetime(2024, 5, 2), strike="90", amount="100"),
        make_txn("p2-close", "BTC", when=datetime(2024, 5, 9), strike="90", amount="-180"),
        make_txn("p3-open", "STO", when=datetime(2024, 5, 3), strike="80", amount="31"),
        make_txn("p3-exp", "OEXP", when=datetime(2024, 6, 21), strike="80"),
        make_txn(
            "call", "STO", when=datetime(2024, 5, 6), option_type="Call", strike="200", amount="300"
        ),
    ]

    rows = strategy_breakdown(build_positions(transactions).positions)

    assert [row.strategy_type for row in rows] == ["Short Call", "Cash Secured Put"]
    call_row, put_row = rows
    assert call_row.count == 1
    assert call_row.total_pl == Decimal("300")
    assert call_row.average_pl == Decimal("300.00")
    assert put_row.count == 3
    assert put_row.total_pl == Decimal("101")
    assert put_row.average_pl == Decimal("33.67")


def test_strategy_breakdown_of_nothing_is_empty():
    assert strategy_breakdown([]) == []
