"""
Order Snapshot Ingestion Module
"""
from .snapshot import (
    OrderSnapshotStore,
    SnapshotNotFoundError,
    get_snapshot_store,
    load_order_snapshot,
)

__all__ = [
    "OrderSnapshotStore",
    "SnapshotNotFoundError",
    "get_snapshot_store",
    "load_order_snapshot",
]
