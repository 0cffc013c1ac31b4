#!/usr/bin/env python3
"""
Ordering rules for clipboard items.

Display order is a total order over items:

1. pinned items before unpinned items
2. ascending order key (missing or non-finite keys sort last)
3. descending updated_at
4. descending created_at
5. ascending id, so any input multiset sorts the same way

Order keys need not be contiguous or unique. New items take a key below
the current minimum of the unpinned partition; pinning moves an item
above every pinned item; unpinning moves it below every unpinned item.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Protocol, Sequence, TypeVar


class Orderable(Protocol):
    id: str
    order: float
    pinned: bool
    created_at: int
    updated_at: int


T = TypeVar("T", bound=Orderable)


def normalize_order(value: Any) -> float:
    """
    Coerce a stored order key to a number.

    Args:
        value: Raw order value from a document.

    Returns:
        The numeric value, or +inf when missing, non-numeric or non-finite.
    """
    if isinstance(value, bool) or value is None:
        return math.inf
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.inf
    if not math.isfinite(number):
        return math.inf
    if number.is_integer():
        return int(number)
    return number


def normalize_timestamp(value: Any) -> float:
    """Coerce a stored timestamp to a number, using 0 for anything invalid."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return number if math.isfinite(number) else 0


def sort_key(item: Orderable) -> tuple:
    """Return the display sort key for an item."""
    return (
        0 if item.pinned else 1,
        normalize_order(item.order),
        -normalize_timestamp(item.updated_at),
        -normalize_timestamp(item.created_at),
        item.id,
    )


def sort_items(items: Iterable[T]) -> list[T]:
    """Return items in display order."""
    return sorted(items, key=sort_key)


def _finite_orders(items: Iterable[Orderable]) -> list[float]:
    orders = (normalize_order(item.order) for item in items)
    return [order for order in orders if math.isfinite(order)]


def insertion_order(items: Sequence[Orderable]) -> float:
    """
    Compute the order key for a new unpinned item.

    Args:
        items: All current items.

    Returns:
        One less than the minimum finite order of the unpinned partition,
        or 0 when that partition has no finite order.
    """
    orders = _finite_orders(item for item in items if not item.pinned)
    if not orders:
        return 0
    return min(orders) - 1


def pinned_order(items: Sequence[Orderable]) -> float:
    """
    Compute the order key for an item being pinned.

    Args:
        items: All current items.

    Returns:
        One less than the minimum finite order among pinned items; -1 when
        nothing is pinned yet.
    """
    orders = _finite_orders(item for item in items if item.pinned)
    return (min(orders) if orders else 0) - 1


def unpinned_order(items: Sequence[Orderable], item_id: str) -> float:
    """
    Compute the order key for an item being unpinned.

    Args:
        items: All current items.
        item_id: Id of the item being unpinned, excluded from the scan.

    Returns:
        One more than the maximum finite order among unpinned items; 1 when
        there are none.
    """
    orders = _finite_orders(
        item for item in items if not item.pinned and item.id != item_id
    )
    return (max(orders) if orders else 0) + 1
