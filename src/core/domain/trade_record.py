"""
TradeRecord — Модель сделки игрока

Immutable Pydantic модель. Сделки пишет внешняя подсистема ввода ордеров;
движок симуляции только читает их для расчёта давления (pressure).
"""

from enum import Enum

from pydantic import BaseModel, Field


class TradeDirection(str, Enum):
    """Направление сделки"""

    BUY = "buy"
    SELL = "sell"


class TradeRecord(BaseModel):
    """
    Запись о сделке игрока с токеном.

    total_amount: стоимость сделки в игровой валюте, знак задаёт direction.
    """

    token_id: str = Field(..., min_length=1, description="Идентификатор токена")
    direction: TradeDirection = Field(..., description="Направление сделки (buy/sell)")
    quantity: float = Field(..., gt=0, description="Количество токенов")
    total_amount: float = Field(..., ge=0, description="Стоимость сделки")
    ts_utc_ms: int = Field(..., ge=0, description="Время сделки (UTC, миллисекунды)")

    model_config = {"frozen": True}

    def signed_amount(self) -> float:
        """
        Вклад сделки в давление.

        Returns:
            +total_amount для покупки, -total_amount для продажи
        """
        if self.direction == TradeDirection.BUY:
            return self.total_amount
        return -self.total_amount
