"""Token Factory — синтез новых токенов.

Замена делистнутого токена:
- name/symbol из комбинации двух слов + числовой дизамбигуатор
- стартовая цена смещена вниз: большинство в "penny" диапазоне, меньшинство дороже
- volume_24h и market_cap производные от стартовой цены со случайным множителем
- trend_momentum = 0, один genesis сэмпл истории, tier = micro, active

Также создаёт токены при genesis экономики (начальное наполнение рынка).
"""

import logging
import uuid
from typing import List, Optional, Sequence

from src.core.domain import PricePoint, Token, TokenSpawned, VolatilityTier
from src.market.ports import RandomSource

logger = logging.getLogger(__name__)


NAME_PREFIXES: tuple[str, ...] = (
    "Moon", "Doge", "Shiba", "Pepe", "Rocket", "Safe", "Baby", "Floki",
    "Degen", "Based", "Turbo", "Giga", "Wojak", "Chad", "Laser", "Neon",
)
NAME_SUFFIXES: tuple[str, ...] = (
    "Inu", "Coin", "Token", "Swap", "Cash", "Finance", "Chain", "Verse",
    "Pad", "Mars", "Gold", "Punk", "Labs", "Dao", "Fi", "Bits",
)

# Стартовая цена: PENNY_SHARE токенов в penny диапазоне, остальные выше
PENNY_SHARE = 0.7
PENNY_PRICE_RANGE: tuple[float, float] = (0.0001, 0.01)
PREMIUM_PRICE_RANGE: tuple[float, float] = (0.01, 1.0)

# Множители от стартовой цены
VOLUME_MULTIPLIER_RANGE: tuple[float, float] = (50_000.0, 500_000.0)
MARKET_CAP_MULTIPLIER_RANGE: tuple[float, float] = (1_000_000.0, 100_000_000.0)

DISAMBIGUATOR_MAX = 999


def _pick(rng: RandomSource, options: Sequence[str]) -> str:
    # random.Random.choice вне RandomSource протокола
    index = min(int(rng.random() * len(options)), len(options) - 1)
    return options[index]


def _token_id(rng: RandomSource) -> str:
    return uuid.UUID(int=rng.getrandbits(128), version=4).hex


class TokenFactory:
    """Фабрика токенов (замены и genesis)."""

    def __init__(
        self,
        prefixes: Sequence[str] = NAME_PREFIXES,
        suffixes: Sequence[str] = NAME_SUFFIXES,
    ):
        if not prefixes or not suffixes:
            raise ValueError("prefixes and suffixes must be non-empty")
        self.prefixes = tuple(prefixes)
        self.suffixes = tuple(suffixes)

    def generate_identity(self, rng: RandomSource) -> tuple[str, str]:
        """(name, symbol), например ("Moon Inu 417", "MOIN417")."""
        prefix = _pick(rng, self.prefixes)
        suffix = _pick(rng, self.suffixes)
        number = 1 + int(rng.random() * DISAMBIGUATOR_MAX)
        name = f"{prefix} {suffix} {number}"
        symbol = f"{prefix[:2]}{suffix[:2]}{number}".upper()
        return name, symbol

    def starting_price(self, rng: RandomSource) -> float:
        """Стартовая цена, смещённая в penny диапазон."""
        if rng.random() < PENNY_SHARE:
            low, high = PENNY_PRICE_RANGE
        else:
            low, high = PREMIUM_PRICE_RANGE
        return rng.uniform(low, high)

    def spawn_replacement(
        self,
        rng: RandomSource,
        ts_utc_ms: int,
        replaces: Optional[Token] = None,
    ) -> tuple[Token, TokenSpawned]:
        """Новый micro токен взамен делистнутого."""
        name, symbol = self.generate_identity(rng)
        price = self.starting_price(rng)
        volume = price * rng.uniform(*VOLUME_MULTIPLIER_RANGE)
        market_cap = price * rng.uniform(*MARKET_CAP_MULTIPLIER_RANGE)

        token = Token(
            token_id=_token_id(rng),
            symbol=symbol,
            name=name,
            current_price=price,
            volume_24h=volume,
            market_cap=market_cap,
            price_history=(PricePoint(ts_utc_ms=ts_utc_ms, price=price),),
            volatility_tier=VolatilityTier.MICRO,
            trend_momentum=0.0,
            is_active=True,
            is_delisted=False,
            version=0,
            created_ts_utc_ms=ts_utc_ms,
        )
        event = TokenSpawned(
            token_id=token.token_id,
            symbol=token.symbol,
            name=token.name,
            ts_utc_ms=ts_utc_ms,
            starting_price=price,
            replaces_token_id=replaces.token_id if replaces is not None else None,
        )
        logger.info(
            "Token spawned token=%s symbol=%s price=%s replaces=%s",
            token.token_id,
            token.symbol,
            price,
            event.replaces_token_id,
        )
        return token, event

    def genesis(
        self,
        symbol: str,
        name: str,
        price: float,
        tier: VolatilityTier,
        ts_utc_ms: int,
        volume_24h: float = 100_000.0,
        market_cap: float = 1_000_000.0,
        description: Optional[str] = None,
        token_id: Optional[str] = None,
        rng: Optional[RandomSource] = None,
    ) -> Token:
        """Токен начального наполнения рынка с заданными параметрами.

        Без явного token_id идентификатор берётся из rng, как у замен.

        Raises:
            ValueError: не передан ни token_id, ни rng
        """
        if token_id is None:
            if rng is None:
                raise ValueError("genesis requires token_id or rng")
            token_id = _token_id(rng)
        return Token(
            token_id=token_id,
            symbol=symbol,
            name=name,
            description=description,
            current_price=price,
            volume_24h=volume_24h,
            market_cap=market_cap,
            price_history=(PricePoint(ts_utc_ms=ts_utc_ms, price=price),),
            volatility_tier=tier,
            created_ts_utc_ms=ts_utc_ms,
        )

    def seed_population(self, count: int, rng: RandomSource, ts_utc_ms: int) -> List[Token]:
        """count случайных micro токенов для пустого рынка."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        return [self.spawn_replacement(rng, ts_utc_ms)[0] for _ in range(count)]
