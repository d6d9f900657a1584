"""
Ranking and Query Layer

Filters, sorts and truncates aggregated results for a caller:
1. Drop rows below the minimum count
2. Optional case-insensitive label substring filter
3. Stable descending sort on the chosen metric (ties keep first-seen order)
4. Truncate to top-N
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bought_together.analytics.metrics import PairMetrics
from bought_together.analytics.models import ItemsetKey, SampleOrder

T = TypeVar("T")


class SortKey(str, Enum):
    """Metric used to order results"""
    SUPPORT = "support"
    SUPPORT_PCT = "supportPct"
    LIFT = "lift"
    CONFIDENCE_A_TO_B = "confAtoB"


class QueryOptions(BaseModel):
    """Caller-side filtering, sorting and truncation"""

    model_config = ConfigDict(frozen=True)

    min_count: int = Field(default=2, ge=0)
    sort_by: SortKey = SortKey.SUPPORT
    label_filter: Optional[str] = None
    top_n: Optional[int] = Field(default=None, ge=1)
    min_size: int = Field(default=1, ge=1, description="Smallest bundle size (bundles only)")
    max_size: Optional[int] = Field(default=None, ge=1, description="Largest bundle size (bundles only)")

    @model_validator(mode="after")
    def check_sizes(self) -> "QueryOptions":
        if self.max_size is not None and self.max_size < self.min_size:
            raise ValueError("max_size must not be below min_size")
        return self

    @property
    def needle(self) -> str:
        return (self.label_filter or "").strip().lower()


@dataclass(frozen=True)
class BundleSummary:
    """Ranked view of one aggregated itemset"""
    key: ItemsetKey
    labels: Tuple[str, ...]
    count: int
    support_pct: float
    variant_breakdown: List[Tuple[str, int]] = field(default_factory=list)
    facet_counts: List[Tuple[str, int]] = field(default_factory=list)
    sample_orders: List[SampleOrder] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.key)

    @property
    def label(self) -> str:
        return " | ".join(self.labels)

    @property
    def key_label(self) -> str:
        return " | ".join(str(k) for k in self.key)

    def top_variants(self, limit: int = 5) -> List[Tuple[str, int]]:
        return self.variant_breakdown[:limit]

    def to_dict(self) -> dict:
        return {
            "itemset_label": self.label,
            "itemset_key": self.key_label,
            "size": self.size,
            "count": self.count,
            "support_pct": self.support_pct,
            "variant_breakdown": [{"combo": combo, "count": c} for combo, c in self.variant_breakdown],
            "facet_counts": [{"facet": facet, "count": c} for facet, c in self.facet_counts],
            "sample_orders": [{"id": s.id, "date": s.date} for s in self.sample_orders],
        }


def _pair_metric(sort_by: SortKey) -> Callable[[PairMetrics], float]:
    return {
        SortKey.SUPPORT: lambda p: p.support,
        SortKey.SUPPORT_PCT: lambda p: p.support_pct,
        SortKey.LIFT: lambda p: p.lift,
        SortKey.CONFIDENCE_A_TO_B: lambda p: p.conf_a_to_b,
    }[sort_by]


def _bundle_metric(sort_by: SortKey) -> Callable[[BundleSummary], float]:
    if sort_by == SortKey.SUPPORT:
        return lambda b: b.count
    if sort_by == SortKey.SUPPORT_PCT:
        return lambda b: b.support_pct
    raise ValueError(f"Sort key '{sort_by.value}' is only defined for pairs")


def _rank(
    rows: Iterable[T],
    options: QueryOptions,
    count_of: Callable[[T], int],
    labels_of: Callable[[T], Sequence[str]],
    metric: Callable[[T], float],
) -> List[T]:
    needle = options.needle
    kept = [
        row for row in rows
        if count_of(row) >= options.min_count
        and (not needle or any(needle in label.lower() for label in labels_of(row)))
    ]

    # sorted() keeps equal elements in input order even with reverse=True
    ranked = sorted(kept, key=metric, reverse=True)

    if options.top_n is not None:
        ranked = ranked[:options.top_n]
    return ranked


def rank_pairs(pairs: Iterable[PairMetrics], options: QueryOptions) -> List[PairMetrics]:
    """Filter, sort and truncate pair metrics"""
    return _rank(
        pairs,
        options,
        count_of=lambda p: p.support,
        labels_of=lambda p: p.labels,
        metric=_pair_metric(options.sort_by),
    )


def rank_bundles(bundles: Iterable[BundleSummary], options: QueryOptions) -> List[BundleSummary]:
    """
    Filter by size range, then filter, sort and truncate bundle summaries.

    Raises:
        ValueError: If the sort key is pair-only (lift, confAtoB)
    """
    metric = _bundle_metric(options.sort_by)
    in_range = (
        b for b in bundles
        if b.size >= options.min_size and (options.max_size is None or b.size <= options.max_size)
    )
    return _rank(
        in_range,
        options,
        count_of=lambda b: b.count,
        labels_of=lambda b: b.labels,
        metric=metric,
    )
