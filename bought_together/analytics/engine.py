"""
Bought-Together Analytics Engine

Single entry point tying the pipeline together:

    raw orders -> eligibility -> identity resolution -> itemset enumeration
               -> co-occurrence aggregation -> metrics -> ranking

Each run is a synchronous, run-to-completion batch computation over a
read-only snapshot. State lives in a fresh aggregator per run, so concurrent
callers with different policies never share mutable data.
"""

from dataclasses import dataclass
from operator import itemgetter
import time
from typing import Any, Iterator, List, Optional, Sequence, Tuple, Union

from prometheus_client import Counter, Histogram
import structlog

from bought_together.analytics.aggregator import AggregateRecord, CooccurrenceAggregator
from bought_together.analytics.eligibility import filter_eligible
from bought_together.analytics.metrics import (
    PairMetrics,
    confidence,
    lift,
    pair_metrics,
    support_pct,
)
from bought_together.analytics.models import ItemKey, Order, parse_orders
from bought_together.analytics.policy import AnalysisConfig
from bought_together.analytics.ranking import (
    BundleSummary,
    QueryOptions,
    SortKey,
    rank_bundles,
    rank_pairs,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

ANALYSIS_RUNS = Counter(
    "bought_together_analysis_runs_total",
    "Total number of analysis runs",
    ["group_mode"],
)

ANALYSIS_DURATION = Histogram(
    "bought_together_analysis_seconds",
    "Time spent aggregating an order snapshot",
    ["group_mode"],
)

OUTLIER_ORDERS = Counter(
    "bought_together_outlier_orders_total",
    "Orders skipped for exceeding the per-order itemset budget",
)


@dataclass(frozen=True)
class AlsoBought:
    """A partner product for one selected item"""
    key: ItemKey
    label: str
    support: int
    confidence: float
    lift: float


class AnalysisResult:
    """
    Aggregated counts of one run plus the derived, on-demand views.

    Example:
        result = BoughtTogetherEngine(config).run(orders)
        top_pairs = result.pairs(QueryOptions(sort_by=SortKey.LIFT, top_n=20))
        bundles = result.bundles(QueryOptions(min_size=3))
    """

    def __init__(self, config: AnalysisConfig, aggregator: CooccurrenceAggregator, total_orders: int):
        self.config = config
        self.total_orders = total_orders
        self._aggregator = aggregator

    @property
    def total_eligible_orders(self) -> int:
        return self._aggregator.total_eligible_orders

    @property
    def skipped_orders(self) -> List[Any]:
        return list(self._aggregator.skipped_orders)

    @property
    def records(self):
        return self._aggregator.records

    def count(self, *keys: ItemKey) -> int:
        return self._aggregator.count(keys)

    def label_for(self, key: ItemKey) -> str:
        return self._aggregator.labels.get(key, str(key))

    def find_key(self, text: str) -> Optional[ItemKey]:
        """Look up an item key from its display form (``str(key)``)"""
        for key in self._aggregator.labels:
            if str(key) == text:
                return key
        return None

    def catalog(self) -> List[Tuple[ItemKey, str]]:
        """Every seen item as (key, label), sorted by label"""
        return sorted(self._aggregator.labels.items(), key=lambda kv: (kv[1].lower(), kv[0]))

    def pair_metrics(self) -> Iterator[PairMetrics]:
        """Unfiltered pair metrics in first-seen order"""
        n = self.total_eligible_orders
        for record in self._aggregator.records_of_size(2):
            key_a, key_b = record.key
            yield pair_metrics(
                key_a=key_a,
                key_b=key_b,
                label_a=self.label_for(key_a),
                label_b=self.label_for(key_b),
                joint_count=record.count,
                count_a=self._aggregator.count((key_a,)),
                count_b=self._aggregator.count((key_b,)),
                total_orders=n,
            )

    def pairs(self, options: Optional[QueryOptions] = None) -> List[PairMetrics]:
        """Ranked pair metrics"""
        if self._aggregator.max_size < 2:
            logger.warning("Pair metrics requested from a run enumerating single items only")
        return rank_pairs(self.pair_metrics(), options or QueryOptions())

    def summarize(self, record: AggregateRecord) -> BundleSummary:
        return BundleSummary(
            key=record.key,
            labels=record.labels,
            count=record.count,
            support_pct=support_pct(record.count, self.total_eligible_orders),
            variant_breakdown=sorted(record.variant_breakdown.items(), key=itemgetter(1), reverse=True),
            facet_counts=sorted(record.facet_counts.items(), key=itemgetter(1), reverse=True),
            sample_orders=list(record.sample_orders),
        )

    def bundles(self, options: Optional[QueryOptions] = None) -> List[BundleSummary]:
        """Ranked bundle summaries across the requested size range"""
        summaries = (self.summarize(record) for record in self._aggregator.records.values())
        return rank_bundles(summaries, options or QueryOptions())

    def also_bought(
        self,
        key: Union[ItemKey, str],
        min_count: int = 1,
        sort_by: SortKey = SortKey.SUPPORT,
    ) -> List[AlsoBought]:
        """
        Products co-occurring with one item, with directional confidence.

        Args:
            key: Item key or its display form
            min_count: Minimum pair support
            sort_by: support, lift or confAtoB (confidence from the selected item)
        """
        if isinstance(key, str):
            key = self.find_key(key)
            if key is None:
                return []

        n = self.total_eligible_orders
        own_count = self._aggregator.count((key,))
        partners = []
        for record in self._aggregator.records_of_size(2):
            if key not in record.key or record.count < min_count:
                continue
            other = record.key[1] if record.key[0] == key else record.key[0]
            other_count = self._aggregator.count((other,))
            partners.append(
                AlsoBought(
                    key=other,
                    label=self.label_for(other),
                    support=record.count,
                    confidence=confidence(record.count, own_count),
                    lift=lift(record.count, own_count, other_count, n),
                )
            )

        metric = {
            SortKey.LIFT: lambda p: p.lift,
            SortKey.CONFIDENCE_A_TO_B: lambda p: p.confidence,
        }.get(sort_by, lambda p: p.support)
        return sorted(partners, key=metric, reverse=True)


class BoughtTogetherEngine:
    """
    Parameterized market-basket engine.

    One engine instance holds one AnalysisConfig; every call to run()
    recomputes from scratch.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()

    def run(
        self,
        orders: Union[Sequence[Order], Sequence[dict], Any],
        max_size: Optional[int] = None,
    ) -> AnalysisResult:
        """
        Aggregate a snapshot of orders.

        Args:
            orders: Parsed orders or raw order dicts. A non-list value is a
                malformed dataset and is analyzed as empty.
            max_size: Largest itemset size to enumerate in this pass
                (defaults to config.max_bundle_size). The outlier budget is
                always checked at config.max_bundle_size, so every view of
                the same config shares one analysis universe.

        Returns:
            AnalysisResult

        Raises:
            ValueError: If no dataset is given at all
        """
        if orders is None:
            raise ValueError("An order dataset is required")

        if not isinstance(orders, (list, tuple)):
            logger.warning("Malformed order dataset, analyzing as empty", type=type(orders).__name__)
        parsed = parse_orders(orders)

        started = time.perf_counter()
        logger.info(
            "Analysis started",
            orders=len(parsed),
            config_version=self.config.version,
            max_bundle_size=self.config.max_bundle_size,
            enumerated_size=max_size or self.config.max_bundle_size,
            statuses=list(self.config.eligibility.accepted_statuses),
            group_mode=self.config.consolidation.mode.value,
        )

        aggregator = CooccurrenceAggregator(self.config, max_size=max_size)
        aggregator.accumulate(filter_eligible(parsed, self.config.eligibility))
        duration = time.perf_counter() - started

        mode = self.config.consolidation.mode.value
        ANALYSIS_RUNS.labels(group_mode=mode).inc()
        ANALYSIS_DURATION.labels(group_mode=mode).observe(duration)
        OUTLIER_ORDERS.inc(len(aggregator.skipped_orders))

        logger.info(
            "Analysis completed",
            eligible_orders=aggregator.total_eligible_orders,
            skipped_orders=len(aggregator.skipped_orders),
            itemsets=len(aggregator.records),
            duration_ms=round(duration * 1000, 2),
        )
        return AnalysisResult(self.config, aggregator, total_orders=len(parsed))


def analyze_pairs(
    orders: Any,
    config: AnalysisConfig,
    options: Optional[QueryOptions] = None,
) -> Tuple[AnalysisResult, List[PairMetrics]]:
    """
    Pair report; enumerates only itemsets of size 1 and 2.

    config.max_bundle_size still sets the size at which outlier orders are
    measured, so pairs and bundles agree on total_eligible_orders.
    """
    result = BoughtTogetherEngine(config).run(orders, max_size=2)
    return result, result.pairs(options)


def analyze_bundles(
    orders: Any,
    config: AnalysisConfig,
    options: Optional[QueryOptions] = None,
) -> Tuple[AnalysisResult, List[BundleSummary]]:
    """Bundle report for sizes 1..config.max_bundle_size"""
    result = BoughtTogetherEngine(config).run(orders)
    return result, result.bundles(options)
