from hl_pnl.engine.classifier import RecordClassifier, record_day_key, records_for_day
from hl_pnl.engine.fields import trade_timestamp

DAY1_MS = 1735689600000  # 2025-01-01T00:00:00Z
DAY2_MS = DAY1_MS + 86400 * 1000


def test_seconds_and_ms_land_on_same_day():
    in_seconds = {"time": (DAY1_MS + 5000) // 1000}
    in_ms = {"time": DAY1_MS + 5000}
    assert record_day_key(in_seconds, trade_timestamp) == "2025-01-01"
    assert record_day_key(in_ms, trade_timestamp) == "2025-01-01"


def test_records_for_day_is_pure_filter():
    trades = [{"time": DAY1_MS}, {"time": DAY2_MS}, {"fee": "1"}]
    snapshot = [dict(t) for t in trades]
    assert records_for_day(trades, "2025-01-02", trade_timestamp) == [{"time": DAY2_MS}]
    assert trades == snapshot


class TestRecordClassifier:

    def test_partitions_by_day(self):
        trades = [
            {"time": DAY1_MS, "realizedPnl": "1"},
            {"timestamp": DAY1_MS // 1000 + 60, "realizedPnl": "2"},
            {"closedPxTime": DAY2_MS, "realizedPnl": "3"},
        ]
        classifier = RecordClassifier.for_trades(trades)
        assert [t["realizedPnl"] for t in classifier.for_day("2025-01-01")] == ["1", "2"]
        assert [t["realizedPnl"] for t in classifier.for_day("2025-01-02")] == ["3"]
        assert classifier.for_day("2025-01-03") == []
        assert len(classifier) == 3

    def test_missing_timestamp_counted_not_assigned(self):
        classifier = RecordClassifier.for_trades([{"realizedPnl": "10"}, {"time": "", "fee": "1"}])
        assert classifier.unresolved == 2
        assert classifier.count_in(["2025-01-01"]) == 0
        assert len(classifier) == 2

    def test_funding_uses_funding_timestamp_fields(self):
        funding = [{"time": DAY1_MS, "delta": {"usdc": "0.5"}}, {"closedPxTime": DAY1_MS}]
        classifier = RecordClassifier.for_funding(funding)
        # closedPxTime 只用于成交记录
        assert len(classifier.for_day("2025-01-01")) == 1
        assert classifier.unresolved == 1

    def test_count_in(self):
        classifier = RecordClassifier.for_trades([{"time": DAY1_MS}, {"time": DAY2_MS}, {"time": DAY2_MS}])
        assert classifier.count_in(["2025-01-02"]) == 2
        assert classifier.count_in(["2025-01-01", "2025-01-02"]) == 3

    def test_none_records(self):
        classifier = RecordClassifier.for_trades(None)
        assert len(classifier) == 0
        assert classifier.unresolved == 0
