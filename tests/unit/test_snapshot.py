"""
Unit Tests - Order Snapshot Loading
"""
import json
import os

import pytest

from bought_together.ingestion import (
    OrderSnapshotStore,
    SnapshotNotFoundError,
    load_order_snapshot,
)


class TestLoadOrderSnapshot:

    def test_loads_orders(self, snapshot_file):
        orders = load_order_snapshot(snapshot_file)

        assert [o.id for o in orders] == [101, 102, 103, 104, 105, 106]
        assert orders[0].line_items[0].name == "Coffee Beans Dark Roast"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotNotFoundError):
            load_order_snapshot(tmp_path / "missing.json")

    def test_invalid_json_is_empty(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text("{not json", encoding="utf-8")

        assert load_order_snapshot(path) == []

    def test_non_array_is_empty(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps({"orders": []}), encoding="utf-8")

        assert load_order_snapshot(path) == []


class TestOrderSnapshotStore:

    def test_cached_until_file_changes(self, snapshot_file, make_order, make_line):
        store = OrderSnapshotStore(snapshot_file)
        first = store.get()

        assert store.get() is first

        snapshot_file.write_text(json.dumps([make_order(1, [make_line(1, "Tea")])]), encoding="utf-8")
        stat = snapshot_file.stat()
        os.utime(snapshot_file, (stat.st_atime, stat.st_mtime + 10))

        reloaded = store.get()

        assert reloaded is not first
        assert [o.id for o in reloaded] == [1]

    def test_availability(self, tmp_path, snapshot_file):
        assert OrderSnapshotStore(snapshot_file).is_available()

        missing = OrderSnapshotStore(tmp_path / "missing.json")

        assert not missing.is_available()
        with pytest.raises(SnapshotNotFoundError):
            missing.get()
