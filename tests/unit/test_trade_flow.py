"""Тесты Trade Flow Aggregator."""

import pytest

from src.core.domain import TradeDirection, TradeRecord
from src.market.trade_flow import aggregate_trade_pressure, window_start

NOW = 1_700_000_600_000
WINDOW = 600_000


def _trade(token_id, direction, amount, ts):
    return TradeRecord(
        token_id=token_id,
        direction=direction,
        quantity=1.0,
        total_amount=amount,
        ts_utc_ms=ts,
    )


class TestAggregateTradePressure:
    """Свёртка сделок в net pressure."""

    def test_buys_minus_sells(self):
        trades = [
            _trade("a", TradeDirection.BUY, 300.0, NOW - 1_000),
            _trade("a", TradeDirection.SELL, 100.0, NOW - 2_000),
            _trade("b", TradeDirection.SELL, 50.0, NOW - 3_000),
        ]

        pressure = aggregate_trade_pressure(trades, NOW, WINDOW)

        assert pressure == {"a": pytest.approx(200.0), "b": pytest.approx(-50.0)}

    def test_tokens_without_trades_absent(self):
        pressure = aggregate_trade_pressure(
            [_trade("a", TradeDirection.BUY, 10.0, NOW - 1)], NOW, WINDOW
        )
        assert "b" not in pressure

    def test_empty_window(self):
        assert aggregate_trade_pressure([], NOW, WINDOW) == {}

    def test_window_is_half_open(self):
        """Граница [now - window, now): начало включается, now исключается."""
        trades = [
            _trade("start", TradeDirection.BUY, 1.0, NOW - WINDOW),
            _trade("before", TradeDirection.BUY, 1.0, NOW - WINDOW - 1),
            _trade("now", TradeDirection.BUY, 1.0, NOW),
        ]

        pressure = aggregate_trade_pressure(trades, NOW, WINDOW)

        assert set(pressure) == {"start"}

    def test_balanced_flow_is_zero_but_present(self):
        trades = [
            _trade("a", TradeDirection.BUY, 75.0, NOW - 10),
            _trade("a", TradeDirection.SELL, 75.0, NOW - 5),
        ]
        assert aggregate_trade_pressure(trades, NOW, WINDOW) == {"a": 0.0}

    def test_inputs_not_mutated(self):
        trades = [_trade("a", TradeDirection.BUY, 10.0, NOW - 1)]
        snapshot = list(trades)

        aggregate_trade_pressure(trades, NOW, WINDOW)

        assert trades == snapshot

    def test_non_positive_window_rejected(self):
        with pytest.raises(ValueError, match="window_ms must be positive"):
            aggregate_trade_pressure([], NOW, 0)

    def test_window_start(self):
        assert window_start(NOW, WINDOW) == NOW - WINDOW
