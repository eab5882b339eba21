"""Trade Flow Aggregator — свёртка сделок игроков в давление по токенам.

pressure(token) = sum(+total_amount для buy, -total_amount для sell)
по сделкам в полуоткрытом окне [now - window_ms, now).

Токены без сделок в окне отсутствуют в результате (downstream трактует
это как нулевое давление). Функция чистая: входы не мутируются.
"""

from typing import Iterable

from src.core.domain import TradeRecord


def window_start(now_ts_utc_ms: int, window_ms: int) -> int:
    """Нижняя (включительная) граница окна сделок."""
    if window_ms <= 0:
        raise ValueError(f"window_ms must be positive, got {window_ms}")
    return now_ts_utc_ms - window_ms


def aggregate_trade_pressure(
    trades: Iterable[TradeRecord],
    now_ts_utc_ms: int,
    window_ms: int,
) -> dict[str, float]:
    """Net pressure по токенам в окне [now - window_ms, now).

    Args:
        trades: сделки (могут включать сделки вне окна, они отбрасываются)
        now_ts_utc_ms: начало тика (верхняя граница, исключается)
        window_ms: длина окна

    Returns:
        Новый dict token_id -> net pressure
    """
    start = window_start(now_ts_utc_ms, window_ms)

    pressure: dict[str, float] = {}
    for trade in trades:
        if not (start <= trade.ts_utc_ms < now_ts_utc_ms):
            continue
        pressure[trade.token_id] = pressure.get(trade.token_id, 0.0) + trade.signed_amount()

    return pressure
