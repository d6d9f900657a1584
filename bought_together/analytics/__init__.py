"""
Bought-Together Analytics Engine
"""
from .aggregator import AggregateRecord, CooccurrenceAggregator
from .eligibility import filter_eligible, is_eligible
from .engine import AlsoBought, AnalysisResult, BoughtTogetherEngine, analyze_bundles, analyze_pairs
from .enumerator import enumerate_itemsets, itemset_count
from .metrics import PairMetrics, confidence, lift, pair_metrics, support_pct
from .models import CanonicalItem, ItemKey, LineItem, Order, parse_orders
from .policy import (
    AnalysisConfig,
    ConsolidationPolicy,
    EligibilityPolicy,
    GroupDetector,
    GroupMode,
    IdentityMode,
)
from .ranking import BundleSummary, QueryOptions, SortKey, rank_bundles, rank_pairs
from .resolver import ItemResolver, resolve_items

__all__ = [
    "AggregateRecord",
    "CooccurrenceAggregator",
    "filter_eligible",
    "is_eligible",
    "AlsoBought",
    "AnalysisResult",
    "BoughtTogetherEngine",
    "analyze_bundles",
    "analyze_pairs",
    "enumerate_itemsets",
    "itemset_count",
    "PairMetrics",
    "confidence",
    "lift",
    "pair_metrics",
    "support_pct",
    "CanonicalItem",
    "ItemKey",
    "LineItem",
    "Order",
    "parse_orders",
    "AnalysisConfig",
    "ConsolidationPolicy",
    "EligibilityPolicy",
    "GroupDetector",
    "GroupMode",
    "IdentityMode",
    "BundleSummary",
    "QueryOptions",
    "SortKey",
    "rank_bundles",
    "rank_pairs",
    "ItemResolver",
    "resolve_items",
]
