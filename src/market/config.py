"""Конфигурация симуляции рынка.

Перечислимые (не free-form) параметры:
- per-tier: max_swing (максимальный размах за тик), rug_probability (вероятность делистинга за тик)
- global: drift, momentum_decay, momentum_weight, pressure_clamp_bound,
  history_capacity, trade_window_ms, price_floor,
  volume_turnover, volume_sensitivity, volume_jitter

Tier-инвариант: чем рискованнее tier, тем больше (или равен) max_swing и
rug_probability; blue_chip никогда не делистится.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from src.core.contracts import validate_market_config
from src.core.domain import VolatilityTier
from src.core.math import EPS_PRICE, validate_in_range, validate_non_negative, validate_positive


# Порядок tiers от наиболее рискового к наименее рисковому
TIER_RISK_ORDER: tuple[VolatilityTier, ...] = (
    VolatilityTier.MICRO,
    VolatilityTier.MID,
    VolatilityTier.LARGE,
    VolatilityTier.BLUE_CHIP,
)

TRADE_WINDOW_MS_DEFAULT = 10 * 60 * 1000


class UnknownTierPolicy(str, Enum):
    """Обработка токена с отсутствующим/неизвестным tier.

    FALLBACK: использовать MarketConfig.fallback_tier (с warning в логе)
    REJECT: пропустить токен в этом тике как MalformedTokenStateError
    """
    FALLBACK = "fallback"
    REJECT = "reject"


@dataclass(frozen=True)
class TierConfig:
    """Параметры одного tier."""
    max_swing: float
    rug_probability: float

    def __post_init__(self):
        validate_in_range(self.max_swing, "max_swing", 0.0, 1.0)
        validate_in_range(self.rug_probability, "rug_probability", 0.0, 1.0)


DEFAULT_TIER_CONFIGS: Mapping[VolatilityTier, TierConfig] = MappingProxyType({
    VolatilityTier.MICRO: TierConfig(max_swing=0.15, rug_probability=0.02),
    VolatilityTier.MID: TierConfig(max_swing=0.08, rug_probability=0.005),
    VolatilityTier.LARGE: TierConfig(max_swing=0.04, rug_probability=0.0),
    VolatilityTier.BLUE_CHIP: TierConfig(max_swing=0.02, rug_probability=0.0),
})


def _default_tiers() -> Mapping[VolatilityTier, TierConfig]:
    return DEFAULT_TIER_CONFIGS


@dataclass(frozen=True)
class MarketConfig:
    """Глобальная конфигурация тика.

    drift отрицательный: долгосрочное затухание экономики против инфляции цен.
    pressure_clamp_bound ограничивает влияние одной крупной сделки на цену.
    """
    tiers: Mapping[VolatilityTier, TierConfig] = field(default_factory=_default_tiers)
    drift: float = -0.005
    momentum_decay: float = 0.8
    momentum_weight: float = 0.3
    pressure_clamp_bound: float = 0.05
    history_capacity: int = 100
    trade_window_ms: int = TRADE_WINDOW_MS_DEFAULT
    price_floor: float = EPS_PRICE

    # Симулированный объём: market_cap * turnover * (1 + |total_change| * sensitivity), шум ±jitter
    volume_turnover: float = 0.1
    volume_sensitivity: float = 10.0
    volume_jitter: float = 0.2

    unknown_tier_policy: UnknownTierPolicy = UnknownTierPolicy.FALLBACK
    fallback_tier: VolatilityTier = VolatilityTier.MID

    # Размер пула воркеров для per-token обработки
    max_workers: int = 1

    def __post_init__(self):
        missing = [t.value for t in TIER_RISK_ORDER if t not in self.tiers]
        if missing:
            raise ValueError(f"tier configs missing for: {missing}")

        for riskier, safer in zip(TIER_RISK_ORDER, TIER_RISK_ORDER[1:]):
            hi, lo = self.tiers[riskier], self.tiers[safer]
            if lo.max_swing > hi.max_swing:
                raise ValueError(
                    f"max_swing of {safer.value} ({lo.max_swing}) exceeds "
                    f"{riskier.value} ({hi.max_swing})"
                )
            if lo.rug_probability > hi.rug_probability:
                raise ValueError(
                    f"rug_probability of {safer.value} ({lo.rug_probability}) exceeds "
                    f"{riskier.value} ({hi.rug_probability})"
                )
        if self.tiers[VolatilityTier.BLUE_CHIP].rug_probability != 0.0:
            raise ValueError("blue_chip rug_probability must be 0")

        validate_in_range(self.drift, "drift", -1.0, 1.0)
        validate_in_range(self.momentum_decay, "momentum_decay", 0.0, 1.0)
        validate_non_negative(self.momentum_weight, "momentum_weight")
        validate_in_range(self.pressure_clamp_bound, "pressure_clamp_bound", 0.0, 1.0)
        validate_positive(self.price_floor, "price_floor")
        validate_non_negative(self.volume_turnover, "volume_turnover")
        validate_non_negative(self.volume_sensitivity, "volume_sensitivity")
        validate_in_range(self.volume_jitter, "volume_jitter", 0.0, 0.99)
        if self.history_capacity < 1:
            raise ValueError(f"history_capacity must be >= 1, got {self.history_capacity}")
        if self.trade_window_ms < 1:
            raise ValueError(f"trade_window_ms must be >= 1, got {self.trade_window_ms}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    def tier_config(self, tier: VolatilityTier) -> TierConfig:
        """Параметры известного tier."""
        return self.tiers[tier]

    def momentum_bound(self, tier: VolatilityTier) -> float:
        """Максимальный |momentum_effect| за тик для tier."""
        return self.momentum_weight * self.tiers[tier].max_swing

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MarketConfig":
        """Построение конфигурации из plain mapping (например, JSON файла).

        Отсутствующие ключи берут значения по умолчанию; tiers мержатся
        поверх DEFAULT_TIER_CONFIGS.

        Raises:
            jsonschema.ValidationError: данные не соответствуют market_config контракту
            ValueError: нарушены инварианты конфигурации
        """
        validate_market_config(dict(data))

        kwargs: dict[str, Any] = {k: v for k, v in data.items() if k != "tiers"}

        tiers = dict(DEFAULT_TIER_CONFIGS)
        for tier_name, values in (data.get("tiers") or {}).items():
            tiers[VolatilityTier(tier_name)] = TierConfig(**values)
        kwargs["tiers"] = MappingProxyType(tiers)

        if "unknown_tier_policy" in kwargs:
            kwargs["unknown_tier_policy"] = UnknownTierPolicy(kwargs["unknown_tier_policy"])
        if "fallback_tier" in kwargs:
            kwargs["fallback_tier"] = VolatilityTier(kwargs["fallback_tier"])

        return cls(**kwargs)


def load_market_config(path: Optional[Path | str] = None) -> MarketConfig:
    """Загрузка конфигурации из JSON файла; без пути возвращает defaults."""
    if path is None:
        return MarketConfig()

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return MarketConfig.from_dict(data)
