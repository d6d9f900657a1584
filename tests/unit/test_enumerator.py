"""
Unit Tests - Itemset Enumeration
"""
import pytest

from bought_together.analytics import CanonicalItem, ItemKey, enumerate_itemsets, itemset_count


def _items(*idents):
    return [CanonicalItem(key=ItemKey("product", ident, "0"), label=ident) for ident in idents]


class TestEnumerateItemsets:

    def test_all_sizes_up_to_k(self):
        itemsets = list(enumerate_itemsets(_items("a", "b", "c"), 2))

        assert [len(s) for s in itemsets] == [1, 1, 1, 2, 2, 2]

    def test_k_larger_than_order(self):
        itemsets = list(enumerate_itemsets(_items("a", "b"), 7))

        assert len(itemsets) == 3

    def test_keys_sorted_regardless_of_input_order(self):
        forward = list(enumerate_itemsets(_items("a", "b", "c"), 3))
        backward = list(enumerate_itemsets(_items("c", "b", "a"), 3))

        assert forward == backward
        assert all(list(s) == sorted(s) for s in forward)

    def test_empty_order(self):
        assert list(enumerate_itemsets([], 5)) == []

    def test_invalid_k(self):
        with pytest.raises(ValueError):
            enumerate_itemsets(_items("a"), 0)

    def test_lazy(self):
        itemsets = enumerate_itemsets(_items(*[f"p{i:02d}" for i in range(40)]), 10)

        assert len(next(itemsets)) == 1


class TestItemsetCount:

    @pytest.mark.parametrize("n,k,expected", [
        (0, 7, 0),
        (3, 2, 6),
        (4, 7, 15),
        (10, 3, 175),
    ])
    def test_matches_enumeration_size(self, n, k, expected):
        assert itemset_count(n, k) == expected

    def test_agrees_with_enumerator(self):
        items = _items("a", "b", "c", "d", "e")

        assert itemset_count(len(items), 3) == sum(1 for _ in enumerate_itemsets(items, 3))
