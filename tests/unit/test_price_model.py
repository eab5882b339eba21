"""Тесты Price Evolution Model.

Coverage:
- Точный расчёт шага при фиксированном RNG
- Clamp player impact и нулевой impact без сделок
- Ограниченность momentum и положительность цены на длинных прогонах
- Диапазон цены за тик (price_bounds)
"""

import random
from types import MappingProxyType

import pytest

from src.core.domain import PricePoint, Token, VolatilityTier
from src.market.config import DEFAULT_TIER_CONFIGS, MarketConfig, TierConfig
from src.market.price_model import (
    compute_player_impact,
    evolve_price,
    price_bounds,
    update_momentum,
)


class FixedRandom:
    """RNG с фиксированными значениями: uniform(a, b) = a + (b - a) * u."""

    def __init__(self, u: float = 0.5, roll: float = 0.5):
        self.u = u
        self.roll = roll

    def random(self) -> float:
        return self.roll

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self.u

    def getrandbits(self, k: int) -> int:
        return 0


def _token(**overrides) -> Token:
    data = {
        "token_id": "tok-1",
        "symbol": "MOIN417",
        "name": "Moon Inu 417",
        "current_price": 1.0,
        "volume_24h": 100_000.0,
        "market_cap": 1_000_000.0,
        "price_history": (PricePoint(ts_utc_ms=0, price=1.0),),
        "volatility_tier": VolatilityTier.MICRO,
        "trend_momentum": 0.0,
    }
    data.update(overrides)
    return Token(**data)


@pytest.fixture
def config():
    return MarketConfig()


@pytest.fixture
def micro(config):
    return config.tier_config(VolatilityTier.MICRO)


class TestEvolvePriceExact:
    """Шаг модели с детерминированным RNG."""

    def test_neutral_draw_applies_only_drift(self, config, micro):
        """base_volatility = 0, без сделок: цена меняется только на drift."""
        evolution = evolve_price(_token(), micro, 0.0, config, FixedRandom(u=0.5))

        assert evolution.base_volatility == 0.0
        assert evolution.player_impact == 0.0
        assert evolution.new_momentum == 0.0
        assert evolution.total_change == pytest.approx(-0.005)
        assert evolution.new_price == pytest.approx(0.995)
        assert evolution.new_market_cap == pytest.approx(995_000.0)
        # cap * turnover 0.1 * (1 + |−0.005| * 10), шум объёма = 1.0
        assert evolution.new_volume == pytest.approx(995_000.0 * 0.1 * 1.05)

    def test_lowest_draw(self, config, micro):
        """base = −max_swing, momentum усиливает падение."""
        evolution = evolve_price(_token(), micro, 0.0, config, FixedRandom(u=0.0))

        assert evolution.base_volatility == pytest.approx(-0.15)
        assert evolution.new_momentum == pytest.approx(-0.15)
        assert evolution.momentum_effect == pytest.approx(-0.15 * 0.3 * 0.15)
        assert evolution.total_change == pytest.approx(-0.16175)
        assert evolution.new_price == pytest.approx(0.83825)

    def test_prior_momentum_carries_over(self, config, micro):
        evolution = evolve_price(
            _token(trend_momentum=0.5), micro, 0.0, config, FixedRandom(u=0.5)
        )

        assert evolution.new_momentum == pytest.approx(0.4)
        assert evolution.momentum_effect == pytest.approx(0.4 * 0.3 * 0.15)

    def test_buy_pressure_raises_price(self, config, micro):
        """Pressure 20k на cap 1M: impact +2%."""
        evolution = evolve_price(_token(), micro, 20_000.0, config, FixedRandom(u=0.5))

        assert evolution.player_impact == pytest.approx(0.02)
        assert evolution.new_price == pytest.approx(1.0 * (1 - 0.005 + 0.02))

    def test_inactive_token_rejected(self, config, micro):
        delisted = _token(current_price=0.0, is_active=False, is_delisted=True)
        with pytest.raises(ValueError, match="inactive token"):
            evolve_price(delisted, micro, 0.0, config, FixedRandom())

    def test_apply_builds_next_state(self, config, micro):
        token = _token(version=3)
        evolution = evolve_price(token, micro, 0.0, config, FixedRandom(u=0.5))

        updated = evolution.apply(token, ts_utc_ms=60_000, history_capacity=100)

        assert updated.current_price == evolution.new_price
        assert updated.trend_momentum == evolution.new_momentum
        assert updated.version == 4
        assert updated.price_history[-1] == PricePoint(ts_utc_ms=60_000, price=evolution.new_price)
        assert len(updated.price_history) == 2
        # Исходный токен не изменился
        assert token.current_price == 1.0


class TestPlayerImpact:
    """Ограничение влияния сделок игроков."""

    def test_large_trade_clamps_to_bound(self):
        """500k pressure на 1M cap → ровно bound, а не 0.5."""
        assert compute_player_impact(500_000.0, 1_000_000.0, 0.05) == 0.05

    def test_large_sell_clamps_to_negative_bound(self):
        assert compute_player_impact(-500_000.0, 1_000_000.0, 0.05) == -0.05

    def test_zero_pressure_is_exactly_zero(self):
        assert compute_player_impact(0.0, 1_000_000.0, 0.05) == 0.0

    def test_zero_market_cap_saturates(self):
        assert compute_player_impact(10.0, 0.0, 0.05) == 0.05

    def test_empty_trade_window_has_no_impact(self, config, micro):
        evolution = evolve_price(_token(), micro, 0.0, config, random.Random(7))
        assert evolution.player_impact == 0.0


class TestMomentum:
    """Ограниченность momentum."""

    def test_momentum_clamped_high(self):
        assert update_momentum(1.0, 0.15, decay=1.0) == 1.0

    def test_momentum_clamped_low(self):
        assert update_momentum(-1.0, -0.15, decay=1.0) == -1.0

    def test_momentum_bounded_over_many_ticks(self, micro):
        """Без затухания momentum всё равно остаётся в [-1, 1]."""
        config = MarketConfig(momentum_decay=1.0)
        rng = random.Random(42)
        token = _token()

        for tick in range(1, 2_001):
            evolution = evolve_price(token, micro, 0.0, config, rng)
            token = evolution.apply(token, ts_utc_ms=tick, history_capacity=config.history_capacity)
            assert -1.0 <= token.trend_momentum <= 1.0
            assert token.current_price > 0


class TestPricePositivity:
    """Цена активного токена всегда > 0."""

    def test_floor_applies_on_crash(self):
        tiers = dict(DEFAULT_TIER_CONFIGS)
        tiers[VolatilityTier.MICRO] = TierConfig(max_swing=1.0, rug_probability=0.02)
        config = MarketConfig(tiers=MappingProxyType(tiers))

        evolution = evolve_price(
            _token(), config.tier_config(VolatilityTier.MICRO), -1e9, config, FixedRandom(u=0.0)
        )

        assert evolution.total_change < -1
        assert evolution.new_price == config.price_floor
        assert evolution.new_price > 0

    def test_price_at_floor_stays_positive(self, config, micro):
        token = _token(current_price=config.price_floor, market_cap=0.0)
        rng = random.Random(3)
        for _ in range(500):
            evolution = evolve_price(token, micro, -5_000.0, config, rng)
            assert evolution.new_price > 0


class TestPriceBounds:
    """Диапазон цены за один тик."""

    def test_micro_scenario_bounds(self, config, micro):
        """price=1.0, swing=0.15, drift=−0.005, без сделок."""
        low, high = price_bounds(1.0, micro, config, include_pressure=False)

        momentum_bound = 0.3 * 0.15
        assert low == pytest.approx(1.0 * (1 - 0.15 - 0.005 - momentum_bound))
        assert high == pytest.approx(1.0 * (1 + 0.15 - 0.005 + momentum_bound))

    def test_random_draws_within_bounds(self, config, micro):
        rng = random.Random(2024)
        low, high = price_bounds(1.0, micro, config, include_pressure=False)

        for _ in range(2_000):
            token = _token(trend_momentum=rng.uniform(-1.0, 1.0))
            evolution = evolve_price(token, micro, 0.0, config, rng)
            assert low - 1e-12 <= evolution.new_price <= high + 1e-12

    def test_bounds_with_pressure(self, config, micro):
        rng = random.Random(11)
        low, high = price_bounds(1.0, micro, config)

        for pressure in (-1e7, -1e3, 0.0, 1e3, 1e7):
            evolution = evolve_price(_token(), micro, pressure, config, rng)
            assert low - 1e-12 <= evolution.new_price <= high + 1e-12
