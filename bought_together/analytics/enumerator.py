"""
Itemset Enumerator

Lazy, iterative generation of every itemset of size 1..K for one order.
"""

from itertools import chain, combinations
from math import comb
from typing import Iterable, Iterator

from bought_together.analytics.models import CanonicalItem, ItemsetKey


def itemset_count(n_items: int, max_size: int) -> int:
    """Number of itemsets enumerate_itemsets() yields: sum of C(n, k) for k = 1..K"""
    return sum(comb(n_items, k) for k in range(1, min(max_size, n_items) + 1))


def enumerate_itemsets(items: Iterable[CanonicalItem], max_size: int) -> Iterator[ItemsetKey]:
    """
    Yield sorted key tuples for all combinations of size 1..min(K, n).

    Keys are sorted before combining, so the same combination always yields
    the same tuple regardless of line-item order. Smaller itemsets come first.

    Args:
        items: Canonical items of one order (unique keys)
        max_size: Largest itemset size K

    Raises:
        ValueError: If max_size is below 1
    """
    if max_size < 1:
        raise ValueError(f"max_size must be at least 1, got {max_size}")

    keys = sorted(item.key for item in items)
    return chain.from_iterable(
        combinations(keys, size) for size in range(1, min(max_size, len(keys)) + 1)
    )
