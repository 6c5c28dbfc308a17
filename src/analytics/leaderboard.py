from __future__ import annotations

from decimal import Decimal
from typing import Callable, Iterable, List, Tuple, TypeVar, Union

T = TypeVar("T")

Number = Union[int, float, Decimal]


def rank_entities(
    entities: Iterable[T],
    metric: Callable[[T], Number],
    entity_id: Callable[[T], str],
    tie_mode: str = "sequential",
) -> List[Tuple[int, T]]:
    """Rank entities by a metric, highest first.

    Ties are ordered by entity id so the output is deterministic. With
    ``tie_mode="sequential"`` every row gets its position in that order;
    ``"competition"`` lets tied rows share a rank and skips the following
    positions (1, 1, 3).
    """
    ordered = sorted(entities, key=lambda item: (-metric(item), entity_id(item)))
    ranked: List[Tuple[int, T]] = []
    previous_value: Number | None = None
    previous_rank = 0
    for index, item in enumerate(ordered):
        value = metric(item)
        if tie_mode == "competition" and previous_value is not None and value == previous_value:
            rank = previous_rank
        else:
            rank = index + 1
        ranked.append((rank, item))
        previous_value = value
        previous_rank = rank
    return ranked
