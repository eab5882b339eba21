"""Token Lifecycle State Machine — допустимые переходы состояния токена за тик.

States:
- ACTIVE: токен участвует в тиках
- DELISTED: терминальное состояние (price = 0)

Transitions:
- ACTIVE --(tick, no rug)--> ACTIVE (mutated)
- ACTIVE --(tick, rug)--> DELISTED (+ отдельно созданный ACTIVE токен)

Других переходов нет: DELISTED никогда не возвращается в ACTIVE.
"""

from dataclasses import dataclass
from enum import Enum

from src.core.domain import Token


class LifecycleState(str, Enum):
    """Состояние жизненного цикла токена."""
    ACTIVE = "ACTIVE"
    DELISTED = "DELISTED"
    INACTIVE = "INACTIVE"  # is_active=False без делистинга (снят вручную)


class TransitionKind(str, Enum):
    """Вид перехода за тик."""
    PRICE_UPDATE = "price_update"
    DELISTING = "delisting"


_ALLOWED: dict[tuple[LifecycleState, LifecycleState], TransitionKind] = {
    (LifecycleState.ACTIVE, LifecycleState.ACTIVE): TransitionKind.PRICE_UPDATE,
    (LifecycleState.ACTIVE, LifecycleState.DELISTED): TransitionKind.DELISTING,
}


class IllegalTransitionError(ValueError):
    """Переход, не предусмотренный state machine."""


@dataclass(frozen=True)
class LifecycleTransition:
    """Проверенный переход токена."""
    token_id: str
    previous_state: LifecycleState
    new_state: LifecycleState
    kind: TransitionKind


def state_of(token: Token) -> LifecycleState:
    """Состояние токена по флагам."""
    if token.is_delisted:
        return LifecycleState.DELISTED
    if token.is_active:
        return LifecycleState.ACTIVE
    return LifecycleState.INACTIVE


def check_transition(before: Token, after: Token) -> LifecycleTransition:
    """Проверка перехода before → after.

    Raises:
        IllegalTransitionError: токены разные, версия не выросла или переход запрещён
    """
    if before.token_id != after.token_id:
        raise IllegalTransitionError(
            f"transition must keep identity: {before.token_id} -> {after.token_id}"
        )
    if after.version != before.version + 1:
        raise IllegalTransitionError(
            f"token {before.token_id} version must advance by one: "
            f"{before.version} -> {after.version}"
        )

    previous_state = state_of(before)
    new_state = state_of(after)
    kind = _ALLOWED.get((previous_state, new_state))
    if kind is None:
        raise IllegalTransitionError(
            f"token {before.token_id}: {previous_state.value} -> {new_state.value} is not allowed"
        )

    return LifecycleTransition(
        token_id=before.token_id,
        previous_state=previous_state,
        new_state=new_state,
        kind=kind,
    )
