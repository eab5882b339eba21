"""Price Evolution Model — следующее состояние цены токена за один тик.

Алгоритм:
1. base_volatility ~ U[-max_swing, +max_swing]
2. drift: постоянный отрицательный bias (затухание экономики)
3. player_impact = clamp(pressure / market_cap, ±pressure_clamp_bound)
4. new_momentum = clamp(prev_momentum * decay + base_volatility, -1, 1)
   momentum_effect = new_momentum * momentum_weight * max_swing
5. total_change = base_volatility + drift + player_impact + momentum_effect
6. new_price = max(price_floor, current_price * (1 + total_change))
7. new_market_cap = market_cap * new_price / current_price,
   new_volume = new_market_cap * turnover * (1 + |total_change| * sensitivity) * шум;
   объём привязан к капитализации и не накапливается от тика к тику

Порядок обращений к RNG фиксирован (base_volatility, затем шум объёма),
поэтому при одинаковом seed результат воспроизводим.
"""

from dataclasses import dataclass

from src.core.domain import PricePoint, Token
from src.core.math import (
    clamp,
    clamp_symmetric,
    denom_safe_unsigned,
    safe_divide,
    sanitize_float,
)
from src.market.config import MarketConfig, TierConfig
from src.market.history import append_sample
from src.market.ports import RandomSource


@dataclass(frozen=True)
class PriceEvolution:
    """Результат одного шага ценовой модели (все промежуточные термы)."""

    base_volatility: float
    drift: float
    player_impact: float
    new_momentum: float
    momentum_effect: float
    total_change: float
    new_price: float
    new_volume: float
    new_market_cap: float

    def apply(self, token: Token, ts_utc_ms: int, history_capacity: int) -> Token:
        """Новая версия токена с применённым шагом и сэмплом истории."""
        history = append_sample(
            token.price_history,
            PricePoint(ts_utc_ms=ts_utc_ms, price=self.new_price),
            history_capacity,
        )
        return token.model_copy(
            update={
                "current_price": self.new_price,
                "volume_24h": self.new_volume,
                "market_cap": self.new_market_cap,
                "trend_momentum": self.new_momentum,
                "price_history": history,
                "version": token.version + 1,
            }
        )


def compute_player_impact(pressure: float, market_cap: float, clamp_bound: float) -> float:
    """Относительное влияние сделок игроков, ограниченное ±clamp_bound.

    Нулевое давление даёт ровно 0. Нулевая капитализация не приводит к
    делению на ноль: знаменатель поднимается до epsilon и impact насыщается.
    """
    if pressure == 0:
        return 0.0
    ratio = safe_divide(pressure, denom_safe_unsigned(market_cap))
    return clamp_symmetric(ratio, clamp_bound)


def update_momentum(prev_momentum: float, base_volatility: float, decay: float) -> float:
    """Затухающий momentum, всегда в [-1, 1]."""
    raw = sanitize_float(prev_momentum * decay + base_volatility, fallback=0.0)
    return clamp(raw, -1.0, 1.0)


def evolve_price(
    token: Token,
    tier_config: TierConfig,
    pressure: float,
    config: MarketConfig,
    rng: RandomSource,
) -> PriceEvolution:
    """Один шаг ценовой модели для активного токена.

    Args:
        token: текущее состояние (активный токен, current_price > 0)
        tier_config: параметры tier токена
        pressure: net pressure сделок за окно (0, если сделок не было)
        config: глобальные константы модели
        rng: источник случайности

    Returns:
        PriceEvolution; new_price > 0 гарантированно

    Raises:
        ValueError: токен не активен
    """
    if not token.is_tradable():
        raise ValueError(f"cannot evolve price of inactive token {token.token_id}")

    max_swing = tier_config.max_swing

    base_volatility = rng.uniform(-max_swing, max_swing)
    drift = config.drift
    player_impact = compute_player_impact(pressure, token.market_cap, config.pressure_clamp_bound)

    new_momentum = update_momentum(token.trend_momentum, base_volatility, config.momentum_decay)
    momentum_effect = new_momentum * config.momentum_weight * max_swing

    total_change = base_volatility + drift + player_impact + momentum_effect

    new_price = max(
        config.price_floor,
        sanitize_float(token.current_price * (1 + total_change), fallback=config.price_floor),
    )

    volume_multiplier = (1 + abs(total_change) * config.volume_sensitivity) * rng.uniform(
        1 - config.volume_jitter, 1 + config.volume_jitter
    )
    new_market_cap = max(
        0.0,
        token.market_cap * safe_divide(new_price, token.current_price, fallback=1.0),
    )
    new_volume = max(
        0.0, sanitize_float(new_market_cap * config.volume_turnover * volume_multiplier)
    )

    return PriceEvolution(
        base_volatility=base_volatility,
        drift=drift,
        player_impact=player_impact,
        new_momentum=new_momentum,
        momentum_effect=momentum_effect,
        total_change=total_change,
        new_price=new_price,
        new_volume=new_volume,
        new_market_cap=new_market_cap,
    )


def price_bounds(
    current_price: float,
    tier_config: TierConfig,
    config: MarketConfig,
    include_pressure: bool = True,
) -> tuple[float, float]:
    """Замкнутый диапазон, в который попадает new_price за один тик.

    include_pressure=False: для токена без сделок в окне (player_impact = 0).
    """
    swing = tier_config.max_swing
    momentum_bound = config.momentum_weight * swing
    impact_bound = config.pressure_clamp_bound if include_pressure else 0.0

    low_change = -swing + config.drift - impact_bound - momentum_bound
    high_change = swing + config.drift + impact_bound + momentum_bound

    low = max(config.price_floor, current_price * (1 + low_change))
    high = max(config.price_floor, current_price * (1 + high_change))
    return low, high
