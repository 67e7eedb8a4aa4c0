import json

import pytest

from hl_pnl.engine import InvalidDateRange, PriceResolver, compute_report

WALLET = "0xabc"
DAY1_MS = 1735689600000  # 2025-01-01T00:00:00Z
DAY_MS = 86400 * 1000


@pytest.fixture
def mixed_inputs():
    trades = [
        {"coin": "BTC", "time": DAY1_MS + 1000, "closedPnl": "120.5", "fee": "1.25"},
        {"coin": "ETH", "timestamp": (DAY1_MS + DAY_MS) // 1000, "realizedPnl": "-20", "fee": "0.75"},
        {"coin": "ETH", "time": DAY1_MS + 5 * DAY_MS, "realizedPnl": "999", "fee": "9"},  # 区间外
        {"coin": "SOL", "realizedPnl": "50", "fee": "1"},  # 无时间戳
    ]
    funding = [
        {"time": DAY1_MS + 2 * DAY_MS, "delta": {"type": "funding", "coin": "BTC", "usdc": "-0.4"}},
        {"time": DAY1_MS, "funding": "0.1"},
    ]
    positions = [
        {"type": "oneWay", "position": {"coin": "BTC", "szi": "0.1", "entryPx": "90000"}},
        {"position": {"coin": "ETH", "szi": "1"}},
    ]
    prices = {"BTC": {"2025-01-01": 91000.0, "2025-01-02": 92000.0, "2025-01-03": 89000.0}}
    return trades, funding, positions, prices


def _report(inputs, starting_equity=1000.0, start="2025-01-01", end="2025-01-03"):
    trades, funding, positions, prices = inputs
    return compute_report(WALLET, start, end, trades, funding, positions, starting_equity, prices=prices)


def test_one_row_per_day(mixed_inputs):
    report = _report(mixed_inputs)
    assert [row.date for row in report.daily] == ["2025-01-01", "2025-01-02", "2025-01-03"]
    assert report.start == "2025-01-01"
    assert report.end == "2025-01-03"


def test_equity_prefix_sum(mixed_inputs):
    report = _report(mixed_inputs)
    equity = report.starting_equity
    for row in report.daily:
        equity += row.net_pnl_usd
        assert row.equity_usd == pytest.approx(equity, abs=0.01 * len(report.daily))


def test_summary_closes_over_daily(mixed_inputs):
    report = _report(mixed_inputs)
    for total, field in [
        ("total_realized_usd", "realized_pnl_usd"),
        ("total_unrealized_usd", "unrealized_pnl_usd"),
        ("total_fees_usd", "fees_usd"),
        ("total_funding_usd", "funding_usd"),
        ("net_pnl_usd", "net_pnl_usd"),
    ]:
        expected = round(sum(getattr(row, field) for row in report.daily), 2)
        assert getattr(report.summary, total) == expected


def test_daily_figures(mixed_inputs):
    day1, day2, day3 = _report(mixed_inputs).daily
    assert (day1.realized_pnl_usd, day1.fees_usd, day1.funding_usd) == (120.5, 1.25, 0.1)
    assert day1.unrealized_pnl_usd == 100.0
    assert (day2.realized_pnl_usd, day2.fees_usd) == (-20.0, 0.75)
    assert day2.unrealized_pnl_usd == 200.0
    assert day3.funding_usd == -0.4
    assert day3.unrealized_pnl_usd == -100.0


def test_diagnostics(mixed_inputs):
    diagnostics = _report(mixed_inputs).diagnostics
    assert diagnostics.data_source == "hyperliquid_api"
    assert diagnostics.trades_found == 4
    assert diagnostics.funding_records_found == 2
    assert diagnostics.trades_in_range == 2
    assert diagnostics.funding_records_in_range == 2
    assert diagnostics.records_without_timestamp == 1
    assert diagnostics.positions_marked == 1
    assert diagnostics.equity_resets == 0
    assert diagnostics.starting_equity_source == "account_value"


def test_same_instant_seconds_or_ms_same_day():
    seconds = compute_report(WALLET, "2025-01-01", "2025-01-02",
                             [{"time": DAY1_MS // 1000 + 10, "realizedPnl": "5"}], [], [], 0)
    millis = compute_report(WALLET, "2025-01-01", "2025-01-02",
                            [{"time": DAY1_MS + 10000, "realizedPnl": "5"}], [], [], 0)
    assert seconds.daily == millis.daily
    assert seconds.daily[0].realized_pnl_usd == 5.0


def test_missing_timestamp_excluded_from_every_day():
    report = compute_report(WALLET, "2025-01-01", "2025-01-03",
                            [{"realizedPnl": "1000", "fee": "10"}], [], [], 0)
    assert all(row.realized_pnl_usd == 0.0 and row.fees_usd == 0.0 for row in report.daily)
    assert report.diagnostics.records_without_timestamp == 1


def test_position_without_entry_contributes_nothing():
    report = compute_report(WALLET, "2025-01-01", "2025-01-01", [], [],
                            [{"coin": "BTC", "szi": "2"}], 0,
                            prices={"BTC": {"2025-01-01": 100000.0}})
    assert report.daily[0].unrealized_pnl_usd == 0.0
    assert report.diagnostics.positions_marked == 0


def test_empty_range_keeps_starting_equity():
    report = compute_report(WALLET, "2025-01-01", "2025-01-03", [], [], [], 10000)
    assert len(report.daily) == 3
    assert [row.equity_usd for row in report.daily] == [10000.0, 10000.0, 10000.0]
    assert all(row.net_pnl_usd == 0.0 for row in report.daily)
    assert report.summary.net_pnl_usd == 0.0
    assert report.diagnostics.data_source == "hyperliquid_api_no_data"


def test_single_trade_three_day_range():
    trades = [{"time": DAY1_MS + DAY_MS + 3600 * 1000, "realizedPnl": "150", "fee": "2"}]
    report = compute_report(WALLET, "2025-01-01", "2025-01-03", trades, [], [], 1000)

    day0, day1, day2 = report.daily
    assert (day0.date, day0.net_pnl_usd, day0.equity_usd) == ("2025-01-01", 0.0, 1000.0)
    assert (day1.date, day1.realized_pnl_usd, day1.fees_usd) == ("2025-01-02", 150.0, 2.0)
    assert (day1.net_pnl_usd, day1.equity_usd) == (148.0, 1148.0)
    assert (day2.date, day2.net_pnl_usd, day2.equity_usd) == ("2025-01-03", 0.0, 1148.0)
    assert report.summary.net_pnl_usd == 148.0


def test_fee_on_half_cent_tie():
    trades = [{"time": DAY1_MS, "fee": "0.125"}]
    row = compute_report(WALLET, "2025-01-01", "2025-01-01", trades, [], [], 0).daily[0]
    assert row.fees_usd == 0.13
    assert row.net_pnl_usd == -0.13
    assert row.equity_usd == -0.13


def test_zero_time_falls_through_to_next_alias():
    trades = [{"time": 0, "timestamp": DAY1_MS // 1000 + 60, "realizedPnl": "7"}]
    funding = [{"time": 0, "timestamp": DAY1_MS, "funding": "1"}]
    report = compute_report(WALLET, "2025-01-01", "2025-01-01", trades, funding, [], 0)

    assert report.daily[0].realized_pnl_usd == 7.0
    assert report.daily[0].funding_usd == 1.0
    assert report.diagnostics.records_without_timestamp == 0


def test_single_trade():
    trades = [{"time": DAY1_MS + 3600 * 1000, "realizedPnl": "150", "fee": "2"}]
    report = compute_report(WALLET, "2025-01-01", "2025-01-01", trades, [], [], 1000)
    row = report.daily[0]
    assert row.realized_pnl_usd == 150.0
    assert row.fees_usd == 2.0
    assert row.net_pnl_usd == 148.0
    assert row.equity_usd == 1148.0


def test_idempotent(mixed_inputs):
    first = _report(mixed_inputs)
    second = _report(mixed_inputs)
    assert first == second
    assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)


def test_inputs_not_mutated(mixed_inputs):
    snapshot = json.dumps(mixed_inputs, sort_keys=True)
    _report(mixed_inputs)
    assert json.dumps(mixed_inputs, sort_keys=True) == snapshot


def test_price_fetched_once_per_instrument():
    calls = []

    def source(instrument, start, end):
        calls.append(instrument)
        return {"2025-01-01": 110.0, "2025-01-02": 120.0, "2025-01-03": 130.0}

    resolver = PriceResolver(source)
    positions = [
        {"coin": "BTC", "szi": "1", "entryPx": "100"},
        {"coin": "BTC", "szi": "-1", "entryPx": "100"},
        {"coin": "ETH", "szi": "1", "entryPx": "100"},
    ]
    report = compute_report(WALLET, "2025-01-01", "2025-01-03", [], [], positions, 0, prices=resolver)

    assert sorted(calls) == ["BTC", "ETH"]
    assert resolver.fetch_count == 2
    # BTC 多空对冲, 只剩 ETH
    assert [row.unrealized_pnl_usd for row in report.daily] == [10.0, 20.0, 30.0]


def test_non_finite_starting_equity_becomes_zero():
    report = compute_report(WALLET, "2025-01-01", "2025-01-01", [], [], [], float("nan"))
    assert report.starting_equity == 0.0
    assert report.daily[0].equity_usd == 0.0


def test_invalid_range_raises():
    with pytest.raises(InvalidDateRange):
        compute_report(WALLET, "2025-01-03", "2025-01-01", [], [], [], 0)


def test_to_dict_shape(mixed_inputs):
    payload = _report(mixed_inputs).to_dict()
    assert set(payload) == {"wallet", "start", "end", "daily", "summary", "diagnostics"}
    assert set(payload["daily"][0]) == {
        "date", "realized_pnl_usd", "unrealized_pnl_usd", "fees_usd",
        "funding_usd", "net_pnl_usd", "equity_usd",
    }
