"""Порты (внешние коллабораторы) движка и in-memory адаптеры.

Orchestrator зависит только от протоколов:
- TokenRepository: чтение активных токенов, compare-and-swap запись, вставка новых
- TradeLedger: сделки игроков начиная с момента времени
- NotificationFeed: события делистинга для уведомлений игроков
- Clock: текущее время (инжектируется для детерминированных тестов)
- RandomSource: seedable RNG (random.Random удовлетворяет протоколу)

In-memory адаптеры используются в тестах и при локальном прогоне симуляции.
"""

import threading
import time
from typing import Iterable, List, Optional, Protocol, Sequence

from src.core.domain import Token, TokenDelisted, TradeRecord
from src.market.errors import StaleWriteError, TransientStoreError


# =============================================================================
# PROTOCOLS
# =============================================================================


class RandomSource(Protocol):
    """Seedable источник случайности."""

    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...

    def getrandbits(self, k: int) -> int: ...


class Clock(Protocol):
    """Источник текущего времени (UTC, миллисекунды)."""

    def now_ms(self) -> int: ...


class TokenRepository(Protocol):
    """Хранилище состояния токенов."""

    def load_active(self) -> List[Token]:
        """Все токены с is_active=True и is_delisted=False."""
        ...

    def get(self, token_id: str) -> Optional[Token]: ...

    def save(self, token: Token, expected_version: int) -> None:
        """Запись новой версии токена.

        Raises:
            StaleWriteError: версия в хранилище != expected_version
            TransientStoreError: прочие сбои записи
        """
        ...

    def insert(self, token: Token) -> None:
        """Вставка нового токена."""
        ...


class TradeLedger(Protocol):
    """Журнал сделок игроков (read-only для движка)."""

    def load_trades_since(self, since_ts_utc_ms: int) -> Sequence[TradeRecord]: ...


class NotificationFeed(Protocol):
    """Лента событий для уведомлений игроков."""

    def publish(self, event: TokenDelisted) -> None: ...


# =============================================================================
# CLOCKS
# =============================================================================


class SystemClock:
    """Системное время."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class FixedClock:
    """Управляемое время для тестов и replay."""

    def __init__(self, now_ms: int = 0):
        if now_ms < 0:
            raise ValueError(f"now_ms must be non-negative, got {now_ms}")
        self._now_ms = now_ms

    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, delta_ms: int) -> int:
        """Сдвиг времени вперёд, возвращает новое значение."""
        if delta_ms < 0:
            raise ValueError(f"delta_ms must be non-negative, got {delta_ms}")
        self._now_ms += delta_ms
        return self._now_ms


# =============================================================================
# IN-MEMORY ADAPTERS
# =============================================================================


class InMemoryTokenRepository:
    """Thread-safe in-memory хранилище с optimistic concurrency по version."""

    def __init__(self, tokens: Iterable[Token] = ()):
        self._lock = threading.Lock()
        self._tokens: dict[str, Token] = {}
        for token in tokens:
            self.insert(token)

    def load_active(self) -> List[Token]:
        with self._lock:
            return [t for t in self._tokens.values() if t.is_tradable()]

    def get(self, token_id: str) -> Optional[Token]:
        with self._lock:
            return self._tokens.get(token_id)

    def all(self) -> List[Token]:
        """Все токены, включая делистнутые (в порядке вставки)."""
        with self._lock:
            return list(self._tokens.values())

    def save(self, token: Token, expected_version: int) -> None:
        with self._lock:
            current = self._tokens.get(token.token_id)
            if current is None:
                raise TransientStoreError(
                    f"token {token.token_id} not found", token_id=token.token_id
                )
            if current.version != expected_version:
                raise StaleWriteError(token.token_id, expected_version, current.version)
            self._tokens[token.token_id] = token

    def insert(self, token: Token) -> None:
        with self._lock:
            if token.token_id in self._tokens:
                raise TransientStoreError(
                    f"token {token.token_id} already exists", token_id=token.token_id
                )
            self._tokens[token.token_id] = token


class InMemoryTradeLedger:
    """In-memory журнал сделок."""

    def __init__(self, trades: Iterable[TradeRecord] = ()):
        self._lock = threading.Lock()
        self._trades: List[TradeRecord] = list(trades)

    def record(self, trade: TradeRecord) -> None:
        with self._lock:
            self._trades.append(trade)

    def load_trades_since(self, since_ts_utc_ms: int) -> Sequence[TradeRecord]:
        with self._lock:
            return tuple(t for t in self._trades if t.ts_utc_ms >= since_ts_utc_ms)


class InMemoryNotificationFeed:
    """Накапливает опубликованные события."""

    def __init__(self):
        self._lock = threading.Lock()
        self.events: List[TokenDelisted] = []

    def publish(self, event: TokenDelisted) -> None:
        with self._lock:
            self.events.append(event)
