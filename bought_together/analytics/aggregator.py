"""
Co-occurrence Aggregator

Accumulates, per itemset, the number of eligible orders containing it, a
breakdown by facet-qualified variant combination, per-facet tallies for
consolidation groups, and a bounded first-seen list of sample orders.

Counting is presence based: an order contributes at most once per itemset.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import structlog

from bought_together.analytics.enumerator import enumerate_itemsets, itemset_count
from bought_together.analytics.models import (
    CanonicalItem,
    ItemKey,
    ItemsetKey,
    Order,
    SampleOrder,
)
from bought_together.analytics.policy import AnalysisConfig
from bought_together.analytics.resolver import get_resolver

logger = structlog.get_logger(__name__)

SAMPLE_CAPACITY = 6
COMBO_SEPARATOR = " | "

Resolver = Callable[[Order], List[CanonicalItem]]
Enumerator = Callable[[Iterable[CanonicalItem], int], Iterator[ItemsetKey]]


@dataclass
class AggregateRecord:
    """Aggregated statistics for one itemset"""
    items: Tuple[CanonicalItem, ...]
    count: int = 0
    variant_breakdown: Dict[str, int] = field(default_factory=dict)
    facet_counts: Dict[str, int] = field(default_factory=dict)
    sample_orders: List[SampleOrder] = field(default_factory=list)

    @property
    def key(self) -> ItemsetKey:
        return tuple(item.key for item in self.items)

    @property
    def size(self) -> int:
        return len(self.items)

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(item.label for item in self.items)

    @property
    def label(self) -> str:
        return COMBO_SEPARATOR.join(self.labels)

    def add(self, items: Sequence[CanonicalItem], sample: SampleOrder) -> None:
        """Record one order's occurrence of this itemset"""
        self.count += 1

        combo = COMBO_SEPARATOR.join(item.variant_part() for item in items)
        self.variant_breakdown[combo] = self.variant_breakdown.get(combo, 0) + 1

        for item in items:
            for facet in item.group_facets:
                self.facet_counts[facet] = self.facet_counts.get(facet, 0) + 1

        if len(self.sample_orders) < SAMPLE_CAPACITY:
            self.sample_orders.append(sample)


class CooccurrenceAggregator:
    """
    Itemset counter for a single computation pass.

    Instances are not shared between runs or threads; create one per
    analysis.

    Example:
        aggregator = CooccurrenceAggregator(config)
        aggregator.accumulate(eligible_orders)
        record = aggregator.get((key_a, key_b))
    """

    def __init__(
        self,
        config: AnalysisConfig,
        resolver: Optional[Resolver] = None,
        enumerator: Enumerator = enumerate_itemsets,
        max_size: Optional[int] = None,
    ):
        self.config = config
        self.max_size = max_size or config.max_bundle_size
        self._resolve = resolver or get_resolver(config.consolidation).resolve
        self._enumerate = enumerator
        self.records: Dict[ItemsetKey, AggregateRecord] = {}
        self.labels: Dict[ItemKey, str] = {}
        self.total_eligible_orders = 0
        self.skipped_orders: List[object] = []

    def add_order(self, order: Order) -> bool:
        """
        Count one eligible order.

        Orders whose itemset count at the configured bundle size exceeds the
        per-order budget are flagged and left out of the analysis universe
        entirely, even when this pass enumerates fewer sizes.

        Returns:
            True if the order was counted
        """
        items = self._resolve(order)
        cost = itemset_count(len(items), self.config.max_bundle_size)
        if cost > self.config.max_itemsets_per_order:
            logger.warning(
                "Skipping outlier order",
                order_id=order.id,
                items=len(items),
                itemsets=cost,
                budget=self.config.max_itemsets_per_order,
            )
            self.skipped_orders.append(order.id)
            return False

        self.total_eligible_orders += 1
        if not items:
            return True

        by_key = {item.key: item for item in items}
        for item in items:
            self.labels[item.key] = item.label

        resolved_date = order.resolve_date(self.config.eligibility.date_fields)
        sample = SampleOrder(
            id=order.id,
            date=resolved_date.isoformat() if resolved_date else None,
        )

        for itemset in self._enumerate(items, self.max_size):
            members = tuple(by_key[key] for key in itemset)
            record = self.records.get(itemset)
            if record is None:
                record = self.records[itemset] = AggregateRecord(items=members)
            record.add(members, sample)

        return True

    def accumulate(self, orders: Iterable[Order]) -> Dict[ItemsetKey, AggregateRecord]:
        """Count every order in ``orders`` (already filtered for eligibility)"""
        for order in orders:
            self.add_order(order)
        return self.records

    def count(self, itemset: Iterable[ItemKey]) -> int:
        """Occurrences of an itemset (any key order); 0 if never seen"""
        record = self.records.get(tuple(sorted(itemset)))
        return record.count if record else 0

    def get(self, itemset: Iterable[ItemKey]) -> Optional[AggregateRecord]:
        return self.records.get(tuple(sorted(itemset)))

    def records_of_size(self, size: int) -> Iterator[AggregateRecord]:
        """Records with exactly ``size`` items, in first-seen order"""
        return (record for record in self.records.values() if record.size == size)
