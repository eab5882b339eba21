"""History Buffer Manager — ограниченное окно сэмплов цены.

Ring-buffer семантика поверх упорядоченной последовательности: ровно один
сэмпл за тик добавляется в конец, самые старые отбрасываются, пока длина
не станет <= capacity. История остаётся хронологической: сэмпл
с timestamp раньше последнего отклоняется.
"""

from typing import Sequence

from src.core.domain import PricePoint


def append_sample(
    history: Sequence[PricePoint],
    sample: PricePoint,
    capacity: int,
) -> tuple[PricePoint, ...]:
    """Добавление сэмпла с обрезкой с начала.

    Входная история может быть длиннее capacity (например, после уменьшения
    конфигурации): результат всё равно содержит не более capacity сэмплов.

    Raises:
        ValueError: capacity < 1 или сэмпл раньше последнего в истории
    """
    if capacity < 1:
        raise ValueError(f"capacity must be >= 1, got {capacity}")
    if history and sample.ts_utc_ms < history[-1].ts_utc_ms:
        raise ValueError(
            f"sample at {sample.ts_utc_ms} precedes last history sample at {history[-1].ts_utc_ms}"
        )

    updated = tuple(history) + (sample,)
    if len(updated) > capacity:
        updated = updated[-capacity:]
    return updated
