"""Тесты конфигурации симуляции рынка.

Coverage:
- Defaults и tier-инвариант (монотонность риска, blue_chip без делистинга)
- Валидация глобальных параметров
- from_dict / load_market_config
"""

import json
from types import MappingProxyType

import pytest
from jsonschema import ValidationError

from src.core.domain import VolatilityTier
from src.market.config import (
    DEFAULT_TIER_CONFIGS,
    TIER_RISK_ORDER,
    MarketConfig,
    TierConfig,
    UnknownTierPolicy,
    load_market_config,
)


def _tiers(**overrides):
    tiers = dict(DEFAULT_TIER_CONFIGS)
    for name, cfg in overrides.items():
        tiers[VolatilityTier(name)] = cfg
    return MappingProxyType(tiers)


class TestDefaults:
    """Значения по умолчанию."""

    def test_default_config_is_valid(self):
        config = MarketConfig()

        assert config.drift == -0.005
        assert config.pressure_clamp_bound == 0.05
        assert config.trade_window_ms == 600_000
        assert config.unknown_tier_policy == UnknownTierPolicy.FALLBACK
        assert config.fallback_tier == VolatilityTier.MID

    def test_micro_swing(self):
        assert MarketConfig().tier_config(VolatilityTier.MICRO).max_swing == 0.15

    def test_risk_is_monotonic(self):
        """Более рискованный tier: swing и rug_probability не меньше."""
        config = MarketConfig()
        for riskier, safer in zip(TIER_RISK_ORDER, TIER_RISK_ORDER[1:]):
            assert config.tiers[riskier].max_swing >= config.tiers[safer].max_swing
            assert config.tiers[riskier].rug_probability >= config.tiers[safer].rug_probability

    def test_large_and_blue_chip_never_rug(self):
        config = MarketConfig()
        assert config.tiers[VolatilityTier.LARGE].rug_probability == 0.0
        assert config.tiers[VolatilityTier.BLUE_CHIP].rug_probability == 0.0

    def test_momentum_bound(self):
        assert MarketConfig().momentum_bound(VolatilityTier.MICRO) == pytest.approx(0.045)


class TestValidation:
    """Нарушения инвариантов конфигурации."""

    def test_tier_config_range(self):
        with pytest.raises(ValueError, match="rug_probability must be <= 1.0"):
            TierConfig(max_swing=0.1, rug_probability=1.5)

    def test_missing_tier(self):
        tiers = dict(DEFAULT_TIER_CONFIGS)
        del tiers[VolatilityTier.LARGE]
        with pytest.raises(ValueError, match="tier configs missing"):
            MarketConfig(tiers=tiers)

    def test_safer_tier_cannot_swing_more(self):
        with pytest.raises(ValueError, match="max_swing of large"):
            MarketConfig(tiers=_tiers(large=TierConfig(max_swing=0.5, rug_probability=0.0)))

    def test_safer_tier_cannot_rug_more(self):
        with pytest.raises(ValueError, match="rug_probability of mid"):
            MarketConfig(tiers=_tiers(mid=TierConfig(max_swing=0.08, rug_probability=0.5)))

    def test_blue_chip_must_not_rug(self):
        tiers = _tiers(
            micro=TierConfig(max_swing=0.15, rug_probability=0.1),
            mid=TierConfig(max_swing=0.08, rug_probability=0.1),
            large=TierConfig(max_swing=0.04, rug_probability=0.1),
            blue_chip=TierConfig(max_swing=0.02, rug_probability=0.1),
        )
        with pytest.raises(ValueError, match="blue_chip rug_probability must be 0"):
            MarketConfig(tiers=tiers)

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"momentum_decay": 1.5}, "momentum_decay"),
            ({"pressure_clamp_bound": -0.1}, "pressure_clamp_bound"),
            ({"price_floor": 0.0}, "price_floor"),
            ({"history_capacity": 0}, "history_capacity"),
            ({"trade_window_ms": 0}, "trade_window_ms"),
            ({"max_workers": 0}, "max_workers"),
            ({"volume_turnover": -0.1}, "volume_turnover"),
        ],
    )
    def test_invalid_globals(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            MarketConfig(**kwargs)

    @pytest.mark.parametrize("name", ["momentum_weight", "volume_turnover", "volume_sensitivity"])
    def test_volume_and_weight_must_be_non_negative(self, name):
        MarketConfig(**{name: 0.0})
        with pytest.raises(ValueError, match=f"{name} must be non-negative"):
            MarketConfig(**{name: -0.5})
        with pytest.raises(ValueError, match="not NaN/Inf"):
            MarketConfig(**{name: float("nan")})


class TestFromDict:
    """Загрузка конфигурации из mapping / JSON файла."""

    def test_from_dict_merges_tiers(self):
        config = MarketConfig.from_dict(
            {
                "tiers": {"micro": {"max_swing": 0.2, "rug_probability": 0.05}},
                "drift": -0.01,
                "unknown_tier_policy": "reject",
                "fallback_tier": "large",
            }
        )

        assert config.tiers[VolatilityTier.MICRO].max_swing == 0.2
        assert config.tiers[VolatilityTier.MID] == DEFAULT_TIER_CONFIGS[VolatilityTier.MID]
        assert config.drift == -0.01
        assert config.unknown_tier_policy == UnknownTierPolicy.REJECT
        assert config.fallback_tier == VolatilityTier.LARGE

    def test_from_dict_schema_violation(self):
        with pytest.raises(ValidationError):
            MarketConfig.from_dict({"history_capacity": "many"})

    def test_from_dict_invariant_violation(self):
        with pytest.raises(ValueError, match="blue_chip rug_probability must be 0"):
            MarketConfig.from_dict(
                {
                    "tiers": {
                        name: {"max_swing": 0.1, "rug_probability": 0.1}
                        for name in ("micro", "mid", "large", "blue_chip")
                    }
                }
            )

    def test_load_market_config_file(self, tmp_path):
        path = tmp_path / "market.json"
        path.write_text(json.dumps({"history_capacity": 24, "max_workers": 4}), encoding="utf-8")

        config = load_market_config(path)

        assert config.history_capacity == 24
        assert config.max_workers == 4

    def test_load_market_config_defaults(self):
        assert load_market_config() == MarketConfig()
