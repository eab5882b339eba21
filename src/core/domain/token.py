"""
Token — Модель торгуемого токена

Immutable Pydantic модель, представляющая состояние токена на момент тика.
Полная совместимость с JSON Schema (contracts/schema/token_state.json).

Жизненный цикл:
- Токен создаётся при genesis экономики или TokenFactory как замена
  делистнутого токена
- Каждый тик порождает новую версию токена (model_copy), старая не мутирует
- Делистинг терминален: price = 0, is_active = False, is_delisted = True
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class VolatilityTier(str, Enum):
    """
    Класс риска токена.

    Определяет максимальный размах цены за тик и вероятность делистинга.
    Порядок от наиболее рискового к наименее рисковому.
    """

    MICRO = "micro"
    MID = "mid"
    LARGE = "large"
    BLUE_CHIP = "blue_chip"

    @classmethod
    def parse(cls, value: Any) -> Optional["VolatilityTier"]:
        """
        Мягкий парсинг tier из сырой записи хранилища.

        Returns:
            VolatilityTier или None для отсутствующего/неизвестного значения
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


# =============================================================================
# NESTED MODELS
# =============================================================================


class PricePoint(BaseModel):
    """Один сэмпл истории цены."""

    ts_utc_ms: int = Field(..., ge=0, description="Timestamp сэмпла (UTC, миллисекунды)")
    price: float = Field(..., ge=0, description="Цена на момент сэмпла")

    model_config = {"frozen": True}


# =============================================================================
# TOKEN MODEL
# =============================================================================


class Token(BaseModel):
    """
    Модель токена внутриигровой экономики.

    Immutable модель (frozen=True). Содержит:
    - Идентификацию (token_id, symbol, name)
    - Рыночные метрики (current_price, volume_24h, market_cap)
    - Ограниченную историю цен (price_history)
    - Параметры динамики (volatility_tier, trend_momentum)
    - Флаги жизненного цикла (is_active, is_delisted)
    - Версию для optimistic concurrency (version)

    volatility_tier = None означает повреждённое состояние (tier отсутствует
    или неизвестен); разрешение такого токена решает политика orchestrator.
    """

    # Идентификация
    token_id: str = Field(..., min_length=1, description="Уникальный идентификатор токена")
    symbol: str = Field(..., min_length=1, description="Тикер (например, 'MOIN417')")
    name: str = Field(..., min_length=1, description="Отображаемое имя токена")
    description: Optional[str] = Field(None, description="Описание токена (nullable)")

    # Рыночные метрики
    current_price: float = Field(..., ge=0, description="Текущая цена")
    volume_24h: float = Field(0.0, ge=0, description="Объём за 24 часа")
    market_cap: float = Field(0.0, ge=0, description="Рыночная капитализация")

    # История и динамика
    price_history: tuple[PricePoint, ...] = Field(
        default=(), description="Хронологическая история цен (старые первыми)"
    )
    volatility_tier: Optional[VolatilityTier] = Field(
        VolatilityTier.MID, description="Класс риска (nullable при повреждённом состоянии)"
    )
    trend_momentum: float = Field(
        0.0, ge=-1, le=1, description="Затухающий momentum направления цены [-1, 1]"
    )

    # Жизненный цикл
    is_active: bool = Field(True, description="Токен участвует в тиках")
    is_delisted: bool = Field(False, description="Токен делистнут (терминальное состояние)")

    # Метаданные
    version: int = Field(0, ge=0, description="Счётчик версий для compare-and-swap записи")
    created_ts_utc_ms: int = Field(0, ge=0, description="Время создания (UTC, миллисекунды)")

    model_config = {"frozen": True}

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Тикер хранится в верхнем регистре без пробелов"""
        if any(ch.isspace() for ch in v):
            raise ValueError(f"symbol must not contain whitespace, got {v!r}")
        return v.upper()

    @field_validator("price_history")
    @classmethod
    def validate_history_order(cls, v: tuple[PricePoint, ...]) -> tuple[PricePoint, ...]:
        """История упорядочена по времени (неубывающе)"""
        for prev, cur in zip(v, v[1:]):
            if cur.ts_utc_ms < prev.ts_utc_ms:
                raise ValueError(
                    f"price_history must be chronological: {cur.ts_utc_ms} < {prev.ts_utc_ms}"
                )
        return v

    @model_validator(mode="after")
    def validate_lifecycle(self) -> "Token":
        """Согласованность цены и флагов жизненного цикла"""
        if self.is_delisted:
            if self.is_active:
                raise ValueError("delisted token cannot be active")
            if self.current_price != 0:
                raise ValueError(
                    f"delisted token must have zero price, got {self.current_price}"
                )
        elif self.is_active and self.current_price <= 0:
            raise ValueError(
                f"active token must have positive price, got {self.current_price}"
            )
        return self

    # -------------------------------------------------------------------------
    # Вычисляемые метрики
    # -------------------------------------------------------------------------

    def is_tradable(self) -> bool:
        """Токен участвует в тике: активен и не делистнут."""
        return self.is_active and not self.is_delisted

    def price_change_pct(self) -> float:
        """
        Изменение цены относительно самого старого сэмпла истории (в процентах).

        Returns:
            0.0 если сэмплов меньше двух или самая старая цена равна 0
        """
        if len(self.price_history) < 2:
            return 0.0
        oldest = self.price_history[0].price
        if oldest <= 0:
            return 0.0
        return (self.current_price - oldest) / oldest * 100.0

    # -------------------------------------------------------------------------
    # Сериализация в формат хранилища
    # -------------------------------------------------------------------------

    def to_record(self) -> dict[str, Any]:
        """Плоский dict в формате контракта token_state."""
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Token":
        """
        Построение Token из сырой записи хранилища.

        Неизвестный или отсутствующий volatility_tier превращается в None
        вместо ошибки валидации; остальные поля валидируются строго.
        """
        data = dict(record)
        data["volatility_tier"] = VolatilityTier.parse(data.get("volatility_tier"))
        data["price_history"] = tuple(
            p if isinstance(p, PricePoint) else PricePoint(**p)
            for p in data.get("price_history") or ()
        )
        return cls(**data)
