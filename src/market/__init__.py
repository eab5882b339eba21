"""Market — движок симуляции синтетического рынка токенов.

- Trade Flow Aggregator: сделки игроков → pressure по токенам
- Price Evolution Model: волатильность + drift + pressure + momentum
- History Buffer Manager: ограниченная история цен
- Delisting Policy + Token Factory: rug-pull и замена токена
- Tick Orchestrator: один шаг симуляции по всем активным токенам
"""

from .config import (
    DEFAULT_TIER_CONFIGS,
    MarketConfig,
    TierConfig,
    UnknownTierPolicy,
    load_market_config,
)
from .delisting import DelistingPolicy
from .errors import (
    GlobalLoadError,
    MalformedTokenStateError,
    MarketEngineError,
    ReplacementPersistError,
    StaleWriteError,
    TickInProgressError,
    TransientStoreError,
)
from .history import append_sample
from .ports import (
    FixedClock,
    InMemoryNotificationFeed,
    InMemoryTokenRepository,
    InMemoryTradeLedger,
    SystemClock,
)
from .price_model import PriceEvolution, evolve_price, price_bounds
from .tick_orchestrator import (
    OutcomeStatus,
    TickOrchestrator,
    TickResult,
    TickStatus,
    TokenOutcome,
)
from .token_factory import TokenFactory
from .trade_flow import aggregate_trade_pressure

__all__ = [
    # Config
    "DEFAULT_TIER_CONFIGS",
    "MarketConfig",
    "TierConfig",
    "UnknownTierPolicy",
    "load_market_config",
    # Errors
    "MarketEngineError",
    "TransientStoreError",
    "StaleWriteError",
    "GlobalLoadError",
    "MalformedTokenStateError",
    "ReplacementPersistError",
    "TickInProgressError",
    # Components
    "aggregate_trade_pressure",
    "evolve_price",
    "price_bounds",
    "PriceEvolution",
    "append_sample",
    "DelistingPolicy",
    "TokenFactory",
    # Orchestration
    "TickOrchestrator",
    "TickResult",
    "TickStatus",
    "TokenOutcome",
    "OutcomeStatus",
    # Adapters
    "SystemClock",
    "FixedClock",
    "InMemoryTokenRepository",
    "InMemoryTradeLedger",
    "InMemoryNotificationFeed",
]
