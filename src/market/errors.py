"""Исключения движка симуляции рынка.

Таксономия отказов тика:
- TransientStoreError: сбой чтения/записи одного токена → токен пропускается
- StaleWriteError: запись устаревшей версии (пересечение тиков) → как transient
- GlobalLoadError: не удалось загрузить набор активных токенов → тик прерван
- MalformedTokenStateError: повреждённое состояние (tier) при политике REJECT
- ReplacementPersistError: делистинг применён, замена не сохранилась
- TickInProgressError: попытка запустить тик, пока идёт другой
"""

from typing import Optional


class MarketEngineError(Exception):
    """Базовое исключение движка."""


class TransientStoreError(MarketEngineError):
    """Сбой чтения/записи одного токена."""

    def __init__(self, message: str, token_id: Optional[str] = None):
        super().__init__(message)
        self.token_id = token_id


class StaleWriteError(TransientStoreError):
    """Compare-and-swap отклонил запись: версия в хранилище изменилась."""

    def __init__(self, token_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"stale write for token {token_id}: expected version "
            f"{expected_version}, store has {actual_version}",
            token_id=token_id,
        )
        self.expected_version = expected_version
        self.actual_version = actual_version


class GlobalLoadError(MarketEngineError):
    """Не удалось загрузить входные данные тика целиком."""


class MalformedTokenStateError(MarketEngineError):
    """Состояние токена не позволяет его обработать."""

    def __init__(self, message: str, token_id: Optional[str] = None):
        super().__init__(message)
        self.token_id = token_id


class ReplacementPersistError(MarketEngineError):
    """Токен-замена не сохранился после успешного делистинга."""

    def __init__(self, message: str, delisted_token_id: str):
        super().__init__(message)
        self.delisted_token_id = delisted_token_id


class TickInProgressError(MarketEngineError):
    """Другой тик уже выполняется (single-writer lock занят)."""
