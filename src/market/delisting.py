"""Delisting Policy — вероятностный rug-pull токена.

Для каждого активного токена до шага ценовой модели выполняется бросок
rng.random() < rug_probability[tier]. Tiers с rug_probability = 0 (large,
blue_chip) никогда не делистятся: random() в [0, 1) не бывает < 0.
"""

import logging
from typing import Optional

from src.core.domain import PricePoint, Token, TokenDelisted, VolatilityTier
from src.market.config import TierConfig
from src.market.history import append_sample
from src.market.ports import RandomSource

logger = logging.getLogger(__name__)


class DelistingPolicy:
    """Решение о делистинге и построение терминального состояния токена."""

    def should_delist(self, token: Token, tier_config: TierConfig, rng: RandomSource) -> bool:
        """Бросок против rug_probability tier.

        RNG вызывается ровно один раз независимо от вероятности, чтобы
        последовательность случайных чисел не зависела от конфигурации tiers.
        """
        roll = rng.random()
        return roll < tier_config.rug_probability

    def delist(
        self,
        token: Token,
        ts_utc_ms: int,
        history_capacity: int,
        tier: Optional[VolatilityTier] = None,
    ) -> tuple[Token, TokenDelisted]:
        """Терминальное состояние токена и событие TokenDelisted.

        Returns:
            (delisted_token, event): price = 0, is_active = False,
            is_delisted = True, momentum = 0, терминальный нулевой сэмпл истории
        """
        history = append_sample(
            token.price_history,
            PricePoint(ts_utc_ms=ts_utc_ms, price=0.0),
            history_capacity,
        )
        delisted = token.model_copy(
            update={
                "current_price": 0.0,
                "trend_momentum": 0.0,
                "is_active": False,
                "is_delisted": True,
                "price_history": history,
                "version": token.version + 1,
            }
        )
        event = TokenDelisted(
            token_id=token.token_id,
            symbol=token.symbol,
            ts_utc_ms=ts_utc_ms,
            last_price=token.current_price,
            tier=tier or token.volatility_tier,
        )
        logger.info(
            "Token delisted token=%s symbol=%s last_price=%s",
            token.token_id,
            token.symbol,
            token.current_price,
        )
        return delisted, event
