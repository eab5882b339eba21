"""
Numerical Safeguards — безопасные математические примитивы симуляции рынка

Модуль обеспечивает численную устойчивость ценовой модели:
- Epsilon-параметры для цен и общих вычислений
- Безопасное деление (pressure / market_cap, new_price / current_price)
- NaN/Inf санитизация, чтобы сбойная итерация не отравила цену токена
- Ограничение значений (clamp) для momentum и player impact
- Валидация параметров конфигурации

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Деление на ноль никогда не происходит (возвращается fallback)
2. NaN/Inf никогда не пропагируют в состояние токена
3. clamp всегда возвращает значение внутри [min_value, max_value]
"""

import math
from typing import Final

# =============================================================================
# EPSILON-ПАРАМЕТРЫ
# =============================================================================

# Минимальная цена активного токена (price floor по умолчанию)
EPS_PRICE: Final[float] = 1e-8

# Epsilon для общих вычислений (делители, market cap)
EPS_CALC: Final[float] = 1e-12


# =============================================================================
# NaN/Inf САНИТИЗАЦИЯ
# =============================================================================


def is_valid_float(value: float) -> bool:
    """Проверка, что значение конечное (не NaN, не Inf)."""
    return math.isfinite(value)


def sanitize_float(value: float, fallback: float = 0.0) -> float:
    """
    Замена NaN/Inf на fallback значение.

    Args:
        value: Исходное значение
        fallback: Значение для замены NaN/Inf (default: 0.0)

    Returns:
        value если конечное, иначе fallback

    Examples:
        >>> sanitize_float(0.03)
        0.03
        >>> sanitize_float(float('nan'))
        0.0
        >>> sanitize_float(float('-inf'), fallback=1.0)
        1.0
    """
    if is_valid_float(value):
        return value
    return fallback


# =============================================================================
# БЕЗОПАСНОЕ ДЕЛЕНИЕ
# =============================================================================


def denom_safe_unsigned(value: float, eps: float = EPS_CALC) -> float:
    """
    Беззнаковый делитель с epsilon-защитой: max(abs(value), eps).

    Raises:
        ValueError: Если eps <= 0
    """
    if eps <= 0:
        raise ValueError(f"eps must be positive, got {eps}")

    return max(abs(value), eps)


def safe_divide(
    numerator: float,
    denominator: float,
    eps: float = EPS_CALC,
    fallback: float = 0.0,
) -> float:
    """
    Безопасное деление с защитой от нулевого знаменателя и NaN/Inf.

    Знаменатель, точно равный 0 (или NaN/Inf), даёт fallback.
    Малые ненулевые знаменатели поднимаются до eps с сохранением знака.

    Args:
        numerator: Числитель (например, net pressure в USD)
        denominator: Знаменатель (например, market cap)
        eps: Минимальный абсолютный порог знаменателя
        fallback: Результат при делении на ноль

    Returns:
        Результат деления или fallback

    Examples:
        >>> safe_divide(500_000.0, 1_000_000.0)
        0.5
        >>> safe_divide(10.0, 0.0)
        0.0
    """
    num_clean = sanitize_float(numerator, fallback=0.0)
    denom_raw = sanitize_float(denominator, fallback=0.0)

    if denom_raw == 0.0:
        return fallback

    denom_safe = math.copysign(denom_safe_unsigned(denom_raw, eps), denom_raw)

    return sanitize_float(num_clean / denom_safe, fallback=fallback)


# =============================================================================
# ОГРАНИЧЕНИЯ
# =============================================================================


def clamp(
    value: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """
    Ограничение значения в заданном диапазоне.

    Args:
        value: Исходное значение
        min_value: Минимальное допустимое значение (optional)
        max_value: Максимальное допустимое значение (optional)

    Returns:
        Значение, ограниченное диапазоном [min_value, max_value]

    Raises:
        ValueError: Если min_value > max_value

    Examples:
        >>> clamp(1.4, -1.0, 1.0)
        1.0
        >>> clamp(-0.02, -0.05, 0.05)
        -0.02
    """
    if min_value is not None and max_value is not None and min_value > max_value:
        raise ValueError(f"min_value {min_value} must be <= max_value {max_value}")

    result = value

    if min_value is not None:
        result = max(result, min_value)

    if max_value is not None:
        result = min(result, max_value)

    return result


def clamp_symmetric(value: float, bound: float) -> float:
    """
    Ограничение значения симметричным диапазоном [-bound, +bound].

    NaN трактуется как 0 (нейтральное значение для impact и momentum).

    Raises:
        ValueError: Если bound < 0
    """
    if bound < 0:
        raise ValueError(f"bound must be non-negative, got {bound}")

    return clamp(sanitize_float(value, fallback=0.0), -bound, bound)


# =============================================================================
# ВАЛИДАЦИЯ ПАРАМЕТРОВ
# =============================================================================


def validate_positive(value: float, name: str, eps: float = 0.0) -> None:
    """
    Валидация, что значение строго больше eps.

    Raises:
        ValueError: Если value <= eps или NaN/Inf
    """
    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if value <= eps:
        raise ValueError(f"{name} must be positive (> {eps}), got {value}")


def validate_non_negative(value: float, name: str) -> None:
    """
    Валидация, что значение неотрицательное.

    Raises:
        ValueError: Если value < 0 или NaN/Inf
    """
    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def validate_in_range(
    value: float,
    name: str,
    min_value: float | None = None,
    max_value: float | None = None,
) -> None:
    """
    Валидация, что значение лежит в [min_value, max_value].

    Raises:
        ValueError: Если value вне диапазона или NaN/Inf
    """
    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if min_value is not None and value < min_value:
        raise ValueError(f"{name} must be >= {min_value}, got {value}")

    if max_value is not None and value > max_value:
        raise ValueError(f"{name} must be <= {max_value}, got {value}")
