"""
Domain events жизненного цикла токена

Делистинг и появление замены являются двумя отдельными событиями, а не два
разрозненных вызова хранилища. События неизменяемы и пригодны для
аудита и replay.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .token import VolatilityTier


class TokenDelisted(BaseModel):
    """Токен делистнут (rug-pull): цена обнулена, токен терминален."""

    token_id: str = Field(..., min_length=1, description="Идентификатор делистнутого токена")
    symbol: str = Field(..., min_length=1, description="Тикер делистнутого токена")
    ts_utc_ms: int = Field(..., ge=0, description="Время делистинга (UTC, миллисекунды)")
    last_price: float = Field(..., ge=0, description="Последняя цена перед делистингом")
    final_price: float = Field(0.0, ge=0, le=0, description="Цена после делистинга (всегда 0)")
    tier: Optional[VolatilityTier] = Field(None, description="Tier токена на момент делистинга")

    model_config = {"frozen": True}


class TokenSpawned(BaseModel):
    """Создан новый токен (genesis или замена делистнутого)."""

    token_id: str = Field(..., min_length=1, description="Идентификатор нового токена")
    symbol: str = Field(..., min_length=1, description="Тикер нового токена")
    name: str = Field(..., min_length=1, description="Имя нового токена")
    ts_utc_ms: int = Field(..., ge=0, description="Время создания (UTC, миллисекунды)")
    starting_price: float = Field(..., gt=0, description="Стартовая цена")
    replaces_token_id: Optional[str] = Field(
        None, description="Токен, который заменяет новый (None для genesis)"
    )

    model_config = {"frozen": True}
