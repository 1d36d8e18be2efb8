import pytest

from app.models.domain.feed_domain import AirdropItem
from app.services.feeds.airdrop import (
    build_airdrop_row,
    build_airdrop_rows,
    format_number,
    normalize_status,
    parse_airdrop_feed,
    summarize_airdrops,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        (1234.5, "1,234.5"),
        (1000, "1,000"),
        (0.126, "0.13"),
        ("1,234.567", "1,234.57"),
        ("  42 ", "42"),
        ("TBA", "TBA"),
        (None, "-"),
        ("", "-"),
        (float("nan"), "-"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


@pytest.mark.parametrize(
    "status,expected",
    [
        ("ongoing", "ongoing"),
        ("Live now", "ongoing"),
        ("COMPLETED", "completed"),
        ("finished", "completed"),
        ("upcoming", "announced"),
        (None, "announced"),
    ],
)
def test_normalize_status(status, expected):
    assert normalize_status(status) == expected


def test_parse_orders_newest_first_with_timestamp_fallbacks():
    items = parse_airdrop_feed(
        {
            "airdrops": [
                {"token": "OLD", "created_timestamp": 1},
                {"token": "UPDATED", "updated_timestamp": 3, "system_timestamp": 100},
                {"token": "SYSTEM", "system_timestamp": 5, "created_timestamp": 2},
                {"token": "NONE"},
            ]
        }
    )

    assert [item.token for item in items] == ["SYSTEM", "UPDATED", "OLD", "NONE"]


def test_parse_skips_malformed_items():
    items = parse_airdrop_feed({"airdrops": [{"token": "OK"}, {"points": 5}]})

    assert [item.token for item in items] == ["OK"]


def test_parse_unexpected_payload_returns_empty():
    assert parse_airdrop_feed({"items": []}) == []
    assert parse_airdrop_feed(None) == []


def test_build_row_defaults():
    row = build_airdrop_row(AirdropItem(token="ABC", points=250, amount="1500", status="live"))

    assert row.name == "-"
    assert row.date == "-"
    assert row.points_display == "250"
    assert row.amount_display == "1,500"
    assert row.status == "ongoing"
    assert row.market_cap_display == "-"


def test_summary_counts_every_status():
    rows = build_airdrop_rows(
        [AirdropItem(token="A", status="ongoing"), AirdropItem(token="B"), AirdropItem(token="C")]
    )

    assert summarize_airdrops(rows) == {"ongoing": 1, "announced": 2, "completed": 0}
