from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal

from optionledger.services.engine import build_positions
from optionledger.services.json_serializer import (
    serialize_anomaly,
    serialize_chain,
    serialize_decimal,
    serialize_position,
    serialize_summary,
)


def _rolled_book(make_txn):
    return [
        make_txn("o1", "BTO", when=datetime(2024, 5, 1), option_type="Call", amount="-300"),
        make_txn(
            "c1", "STC", when=datetime(2024, 5, 10, 10), option_type="Call", amount="450"
        ),
        make_txn(
            "o2",
            "STO",
            when=datetime(2024, 5, 10, 10, 1),
            option_type="Call",
            strike="105",
            expiration=date(2024, 7, 19),
            amount="200",
        ),
        make_txn("x", "BTC", when=datetime(2024, 5, 11), strike="80", amount="-5"),
    ]


def test_serialize_decimal_strips_trailing_zeros():
    assert serialize_decimal(Decimal("150.00")) == "150"
    assert serialize_decimal(Decimal("2.50")) == "2.5"
    assert serialize_decimal(Decimal("1E+2")) == "100"
    assert serialize_decimal("text") == "text"


def test_serialize_position(make_txn):
    result = build_positions(_rolled_book(make_txn))
    position = result.positions[0]

    data = serialize_position(position)

    assert data["symbol"] == "TSLA"
    assert data["strategy_type"] == "Long Call"
    assert data["status"] == "closed"
    assert data["entry_date"] == "2024-05-01T00:00:00"
    assert data["net_pl"] == "150"
    assert data["realized_pl"] == "150"
    assert data["max_profitable_debit"] is None
    assert [leg["trans_code"] for leg in data["legs"]] == ["BTO", "STC"]
    assert data["legs"][0]["strike"] == "100"
    assert data["legs"][0]["expiration"] == "2024-06-21"
    assert len(data["rolls"]) == 1
    assert data["roll_chain_id"] == result.chains[0].id
    assert len(data["hash"]) == 64
    json.dumps(data)


def test_serialize_chain_and_anomaly(make_txn):
    result = build_positions(_rolled_book(make_txn))

    chain = serialize_chain(result.chains[0])
    anomaly = serialize_anomaly(result.anomalies[0])

    assert chain["roll_count"] == 1
    assert chain["net_credit"] == "650"
    assert chain["segments"][0]["to_expiration"] == "2024-07-19"
    assert anomaly["kind"] == "unmatched_close"
    assert anomaly["unmatched_amount"] == "-5"
    assert anomaly["unmatched_quantity"] == 1
    json.dumps({"chain": chain, "anomaly": anomaly})


def test_serialize_summary(make_txn):
    stats = build_positions(_rolled_book(make_txn)).summary()

    data = serialize_summary(stats)

    assert data == {
        "total_pl": "350",
        "open_positions_count": 1,
        "closed_positions_count": 1,
        "total_premium_collected": "650",
        "win_rate": "100",
        "total_wins": 1,
        "total_losses": 0,
    }
