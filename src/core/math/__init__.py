"""
Core math modules симуляции рынка

Математические примитивы с гарантией численной стабильности.
"""

from src.core.math.numerical_safeguards import (
    # Epsilon constants
    EPS_CALC,
    EPS_PRICE,
    # Safe division
    denom_safe_unsigned,
    safe_divide,
    # NaN/Inf sanitization
    is_valid_float,
    sanitize_float,
    # Bounds
    clamp,
    clamp_symmetric,
    # Validation
    validate_in_range,
    validate_non_negative,
    validate_positive,
)

__all__ = [
    "EPS_CALC",
    "EPS_PRICE",
    "denom_safe_unsigned",
    "safe_divide",
    "is_valid_float",
    "sanitize_float",
    "clamp",
    "clamp_symmetric",
    "validate_in_range",
    "validate_non_negative",
    "validate_positive",
]
