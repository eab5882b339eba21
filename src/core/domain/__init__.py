"""
Domain models and value objects.

Contains fundamental domain entities like Token, PricePoint, TradeRecord
and the token lifecycle events.
"""

from src.core.domain.events import TokenDelisted, TokenSpawned
from src.core.domain.token import PricePoint, Token, VolatilityTier
from src.core.domain.trade_record import TradeDirection, TradeRecord

__all__ = [
    # Token model
    "Token",
    "PricePoint",
    "VolatilityTier",
    # Trade records
    "TradeRecord",
    "TradeDirection",
    # Lifecycle events
    "TokenDelisted",
    "TokenSpawned",
]
