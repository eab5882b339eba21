"""
Contract Validation Module

Модуль для валидации JSON контрактов симуляции рынка.
"""

from .validators import (
    ContractValidator,
    MarketConfigValidator,
    SchemaLoader,
    TickSummaryValidator,
    TokenStateValidator,
    validate_market_config,
    validate_tick_summary,
    validate_token_state,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "TokenStateValidator",
    "TickSummaryValidator",
    "MarketConfigValidator",
    # Functions
    "validate_token_state",
    "validate_tick_summary",
    "validate_market_config",
]
