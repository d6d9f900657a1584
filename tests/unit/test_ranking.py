"""
Unit Tests - Ranking and Query Options
"""
import pytest
from pydantic import ValidationError

from bought_together.analytics import (
    BundleSummary,
    ItemKey,
    QueryOptions,
    SortKey,
    pair_metrics,
    rank_bundles,
    rank_pairs,
)


def _key(ident):
    return ItemKey("product", ident, "0")


def _pair(a, b, support, count_a, count_b, n=10):
    return pair_metrics(_key(a), _key(b), a, b, support, count_a, count_b, n)


def _bundle(*labels, count):
    return BundleSummary(
        key=tuple(_key(label) for label in labels),
        labels=tuple(labels),
        count=count,
        support_pct=count * 10.0,
    )


class TestQueryOptions:

    def test_defaults(self):
        options = QueryOptions()

        assert options.min_count == 2
        assert options.sort_by == SortKey.SUPPORT
        assert options.top_n is None

    def test_size_range_validated(self):
        with pytest.raises(ValidationError):
            QueryOptions(min_size=4, max_size=2)


class TestRankPairs:

    def test_min_count_filters_before_sort(self):
        rare = _pair("Rare", "Gem", support=1, count_a=1, count_b=1)
        common = _pair("Coffee", "Mug", support=3, count_a=5, count_b=5)

        ranked = rank_pairs([rare, common], QueryOptions(min_count=2, sort_by=SortKey.LIFT))

        assert ranked == [common]

    def test_sort_by_lift(self):
        low = _pair("A", "B", support=2, count_a=5, count_b=5)
        high = _pair("C", "D", support=2, count_a=2, count_b=2)

        ranked = rank_pairs([low, high], QueryOptions(sort_by=SortKey.LIFT))

        assert ranked == [high, low]

    def test_ties_keep_input_order(self):
        pairs = [_pair(f"P{i}", f"Q{i}", support=2, count_a=4, count_b=4) for i in range(5)]

        ranked = rank_pairs(pairs, QueryOptions())

        assert ranked == pairs

    def test_top_n_applied_after_sort(self):
        pairs = [_pair(f"P{i}", f"Q{i}", support=i, count_a=9, count_b=9) for i in range(2, 7)]

        ranked = rank_pairs(pairs, QueryOptions(top_n=2))

        assert [p.support for p in ranked] == [6, 5]

    def test_label_filter_case_insensitive(self):
        coffee = _pair("Coffee", "Mug", support=2, count_a=2, count_b=2)
        tea = _pair("Tea", "Cup", support=2, count_a=2, count_b=2)

        ranked = rank_pairs([coffee, tea], QueryOptions(label_filter="  MUG "))

        assert ranked == [coffee]


class TestRankBundles:

    def test_size_range(self):
        bundles = [_bundle("A", count=5), _bundle("A", "B", count=4), _bundle("A", "B", "C", count=3)]

        ranked = rank_bundles(bundles, QueryOptions(min_size=2, max_size=2))

        assert [b.size for b in ranked] == [2]

    def test_sorted_by_count(self):
        bundles = [_bundle("A", "B", count=2), _bundle("C", "D", count=7)]

        ranked = rank_bundles(bundles, QueryOptions(sort_by=SortKey.SUPPORT_PCT))

        assert [b.count for b in ranked] == [7, 2]

    @pytest.mark.parametrize("sort_by", [SortKey.LIFT, SortKey.CONFIDENCE_A_TO_B])
    def test_pair_only_sort_keys_rejected(self, sort_by):
        with pytest.raises(ValueError):
            rank_bundles([_bundle("A", count=3)], QueryOptions(sort_by=sort_by))

    def test_to_dict(self):
        bundle = BundleSummary(
            key=(_key("A"), _key("B")),
            labels=("A", "B"),
            count=3,
            support_pct=30.0,
            variant_breakdown=[("A | B", 3)],
        )

        data = bundle.to_dict()

        assert data["itemset_label"] == "A | B"
        assert data["itemset_key"] == "A::0 | B::0"
        assert data["variant_breakdown"] == [{"combo": "A | B", "count": 3}]
        assert data["sample_orders"] == []
