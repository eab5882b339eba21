"""Tick Orchestrator — один шаг симуляции рынка.

Последовательность тика:
1. Single-writer lock: пересекающийся вызов получает TickInProgressError
2. Загрузка активных токенов (сбой → ABORTED)
3. Загрузка сделок окна и свёртка в pressure (сбой → ABORTED);
   pressure map замораживается до начала любых мутаций (read-phase barrier)
4. Per-token: бросок делистинга → делистинг + замена, иначе шаг ценовой
   модели + сэмпл истории; запись с compare-and-swap по version
5. Одно уведомление на каждый делистинг
6. TickResult: COMPLETED / PARTIAL (были per-token сбои) / ABORTED

Per-token обработка не имеет зависимостей между токенами и может идти в
пуле воркеров. Каждый токен получает свой дочерний RNG, выведенный из
master RNG в порядке загрузки, поэтому результат не зависит от max_workers.

Тик не идемпотентен: два вызова продвигают симуляцию на два шага.
"""

import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from src.core.contracts import validate_tick_summary
from src.core.domain import Token, TokenDelisted, TokenSpawned, VolatilityTier
from src.market.config import MarketConfig, UnknownTierPolicy
from src.market.delisting import DelistingPolicy
from src.market.errors import (
    GlobalLoadError,
    MalformedTokenStateError,
    MarketEngineError,
    ReplacementPersistError,
    TickInProgressError,
    TransientStoreError,
)
from src.market.lifecycle import check_transition
from src.market.ports import (
    Clock,
    NotificationFeed,
    RandomSource,
    TokenRepository,
    TradeLedger,
)
from src.market.price_model import evolve_price
from src.market.token_factory import TokenFactory
from src.market.trade_flow import aggregate_trade_pressure, window_start

logger = logging.getLogger(__name__)

TokenEvent = Union[TokenDelisted, TokenSpawned]


class TickStatus(str, Enum):
    """Итог тика."""
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    ABORTED = "ABORTED"


class OutcomeStatus(str, Enum):
    """Итог обработки одного токена."""
    UPDATED = "UPDATED"
    DELISTED = "DELISTED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class TokenOutcome:
    """Результат обработки одного токена (token_id, outcome)."""

    token_id: str
    symbol: str
    status: OutcomeStatus

    new_price: Optional[float] = None
    replacement_token_id: Optional[str] = None
    replacement_symbol: Optional[str] = None

    # FAILED: причина пропуска; DELISTED: причина несохранённой замены
    error: Optional[str] = None

    # Tier не распознан и был заменён fallback tier
    tier_fallback: bool = False

    events: tuple[TokenEvent, ...] = ()

    @property
    def replacement_failed(self) -> bool:
        return self.status == OutcomeStatus.DELISTED and self.replacement_token_id is None


@dataclass(frozen=True)
class TickResult:
    """Структурированный результат тика."""

    status: TickStatus
    timestamp: int
    outcomes: tuple[TokenOutcome, ...] = ()
    error: Optional[str] = None
    events: tuple[TokenEvent, ...] = field(default=())

    @property
    def processed(self) -> int:
        """Токены, обработанные без сбоя (обновлённые и делистнутые)."""
        return sum(1 for o in self.outcomes if o.status != OutcomeStatus.FAILED)

    @property
    def rugged(self) -> tuple[str, ...]:
        return tuple(o.symbol for o in self.outcomes if o.status == OutcomeStatus.DELISTED)

    @property
    def replacements(self) -> tuple[str, ...]:
        return tuple(
            o.replacement_symbol for o in self.outcomes if o.replacement_symbol is not None
        )

    @property
    def failures(self) -> tuple[TokenOutcome, ...]:
        """Пропущенные токены и делистинги без сохранённой замены."""
        return tuple(
            o for o in self.outcomes if o.status == OutcomeStatus.FAILED or o.replacement_failed
        )

    @property
    def aborted(self) -> bool:
        return self.status == TickStatus.ABORTED

    def to_summary(self) -> dict[str, Any]:
        """Сводка тика в формате tick_summary контракта."""
        summary = {
            "processed": self.processed,
            "rugged": list(self.rugged),
            "replacements": list(self.replacements),
            "timestamp": self.timestamp,
        }
        validate_tick_summary(summary)
        return summary


class TickOrchestrator:
    """Оркестратор тика симуляции рынка."""

    def __init__(
        self,
        repository: TokenRepository,
        ledger: TradeLedger,
        notifications: NotificationFeed,
        clock: Clock,
        rng: Optional[RandomSource] = None,
        config: Optional[MarketConfig] = None,
        delisting_policy: Optional[DelistingPolicy] = None,
        token_factory: Optional[TokenFactory] = None,
    ):
        self.repository = repository
        self.ledger = ledger
        self.notifications = notifications
        self.clock = clock
        self.rng = rng or random.Random()
        self.config = config or MarketConfig()
        self.delisting_policy = delisting_policy or DelistingPolicy()
        self.token_factory = token_factory or TokenFactory()

        self._tick_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def run_tick(self) -> TickResult:
        """Выполнение одного тика.

        Raises:
            TickInProgressError: другой тик этого orchestrator ещё выполняется
        """
        if not self._tick_lock.acquire(blocking=False):
            raise TickInProgressError("tick already in progress")
        try:
            return self._run_tick_locked()
        finally:
            self._tick_lock.release()

    # -------------------------------------------------------------------------
    # Tick phases
    # -------------------------------------------------------------------------

    def _run_tick_locked(self) -> TickResult:
        now = self.clock.now_ms()
        logger.info("Tick started ts=%s", now)

        try:
            tokens = [t for t in self.repository.load_active() if t.is_tradable()]
        except Exception as exc:
            return self._abort(now, GlobalLoadError(f"failed to load active tokens: {exc}"))

        try:
            since = window_start(now, self.config.trade_window_ms)
            trades = self.ledger.load_trades_since(since)
            pressure = MappingProxyType(
                aggregate_trade_pressure(trades, now, self.config.trade_window_ms)
            )
        except Exception as exc:
            return self._abort(now, GlobalLoadError(f"failed to load trade window: {exc}"))

        # Seeds выводятся последовательно до запуска воркеров
        work = [(token, self.rng.getrandbits(64)) for token in tokens]

        if self.config.max_workers == 1 or len(work) <= 1:
            outcomes = [self._process_token(t, seed, pressure, now) for t, seed in work]
        else:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                outcomes = list(
                    pool.map(lambda item: self._process_token(item[0], item[1], pressure, now), work)
                )

        self._publish_delistings(outcomes)

        events = tuple(e for o in outcomes for e in o.events)
        has_failures = any(
            o.status == OutcomeStatus.FAILED or o.replacement_failed for o in outcomes
        )
        result = TickResult(
            status=TickStatus.PARTIAL if has_failures else TickStatus.COMPLETED,
            timestamp=now,
            outcomes=tuple(outcomes),
            events=events,
        )
        logger.info(
            "Tick finished ts=%s status=%s processed=%s rugged=%s failures=%s",
            now,
            result.status.value,
            result.processed,
            len(result.rugged),
            len(result.failures),
        )
        return result

    def _abort(self, now: int, error: GlobalLoadError) -> TickResult:
        logger.error("Tick aborted ts=%s reason=%s", now, error)
        return TickResult(status=TickStatus.ABORTED, timestamp=now, error=str(error))

    def _process_token(
        self,
        token: Token,
        seed: int,
        pressure: Mapping[str, float],
        now: int,
    ) -> TokenOutcome:
        rng = random.Random(seed)
        tier_fallback = False
        try:
            tier, tier_fallback = self._resolve_tier(token)
            tier_config = self.config.tier_config(tier)

            if self.delisting_policy.should_delist(token, tier_config, rng):
                return self._delist_and_replace(token, tier, rng, now, tier_fallback)

            evolution = evolve_price(
                token, tier_config, pressure.get(token.token_id, 0.0), self.config, rng
            )
            updated = evolution.apply(token, now, self.config.history_capacity)
            check_transition(token, updated)
            self.repository.save(updated, expected_version=token.version)
        except (MarketEngineError, ValueError) as exc:
            return self._skip(token, exc, tier_fallback)
        except Exception as exc:
            # Ошибки драйвера хранилища (ConnectionError, OSError, ...)
            error = TransientStoreError(
                f"store failure for token {token.token_id}: {exc!r}", token_id=token.token_id
            )
            return self._skip(token, error, tier_fallback)

        return TokenOutcome(
            token_id=token.token_id,
            symbol=token.symbol,
            status=OutcomeStatus.UPDATED,
            new_price=updated.current_price,
            tier_fallback=tier_fallback,
        )

    def _skip(self, token: Token, error: Exception, tier_fallback: bool) -> TokenOutcome:
        logger.warning(
            "Token skipped token=%s symbol=%s reason=%s", token.token_id, token.symbol, error
        )
        return TokenOutcome(
            token_id=token.token_id,
            symbol=token.symbol,
            status=OutcomeStatus.FAILED,
            error=str(error),
            tier_fallback=tier_fallback,
        )

    def _resolve_tier(self, token: Token) -> tuple[VolatilityTier, bool]:
        """Tier токена с учётом политики для повреждённого состояния.

        Returns:
            (tier, fell_back)

        Raises:
            MalformedTokenStateError: tier не распознан и политика REJECT
        """
        if token.volatility_tier is not None:
            return token.volatility_tier, False

        if self.config.unknown_tier_policy == UnknownTierPolicy.REJECT:
            raise MalformedTokenStateError(
                f"token {token.token_id} has no recognised volatility tier",
                token_id=token.token_id,
            )

        logger.warning(
            "Token tier fallback token=%s symbol=%s fallback=%s",
            token.token_id,
            token.symbol,
            self.config.fallback_tier.value,
        )
        return self.config.fallback_tier, True

    def _delist_and_replace(
        self,
        token: Token,
        tier: VolatilityTier,
        rng: RandomSource,
        now: int,
        tier_fallback: bool,
    ) -> TokenOutcome:
        """Делистинг и замена: два независимо сохраняемых шага.

        Сбой записи делистинга пробрасывается (токен пропускается, замены нет).
        Сбой записи замены не откатывает делистинг: популяция уменьшается на один.
        """
        delisted, delisted_event = self.delisting_policy.delist(
            token, now, self.config.history_capacity, tier
        )
        check_transition(token, delisted)
        self.repository.save(delisted, expected_version=token.version)

        try:
            replacement, spawned_event = self.token_factory.spawn_replacement(
                rng, now, replaces=token
            )
            self.repository.insert(replacement)
        except Exception as exc:
            error = ReplacementPersistError(
                f"replacement for {token.symbol} not persisted: {exc}",
                delisted_token_id=token.token_id,
            )
            logger.error("Replacement failed token=%s error=%s", token.token_id, error)
            return TokenOutcome(
                token_id=token.token_id,
                symbol=token.symbol,
                status=OutcomeStatus.DELISTED,
                new_price=0.0,
                error=str(error),
                tier_fallback=tier_fallback,
                events=(delisted_event,),
            )

        return TokenOutcome(
            token_id=token.token_id,
            symbol=token.symbol,
            status=OutcomeStatus.DELISTED,
            new_price=0.0,
            replacement_token_id=replacement.token_id,
            replacement_symbol=replacement.symbol,
            tier_fallback=tier_fallback,
            events=(delisted_event, spawned_event),
        )

    def _publish_delistings(self, outcomes: list[TokenOutcome]) -> None:
        """Одно уведомление на делистинг; сбой ленты не валит тик."""
        for outcome in outcomes:
            for event in outcome.events:
                if not isinstance(event, TokenDelisted):
                    continue
                try:
                    self.notifications.publish(event)
                except Exception as exc:
                    logger.warning(
                        "Notification failed token=%s symbol=%s error=%s",
                        event.token_id,
                        event.symbol,
                        exc,
                    )
