"""
Order Snapshot Loader

Reads the JSON order snapshot written by the ingestion job. The snapshot is
treated as read-only; malformed content degrades to an empty dataset.
"""

import json
from pathlib import Path
import threading
from typing import List, Optional, Tuple, Union

import structlog

from bought_together.analytics.models import Order, parse_orders
from bought_together.config import get_settings

logger = structlog.get_logger(__name__)


class SnapshotNotFoundError(FileNotFoundError):
    """Raised when the snapshot file does not exist"""


def load_order_snapshot(path: Union[str, Path], encoding: str = "utf-8") -> List[Order]:
    """
    Load and parse an order snapshot.

    Args:
        path: JSON file containing an array of orders
        encoding: File encoding

    Returns:
        Parsed orders; empty if the file is unparsable or not an array

    Raises:
        SnapshotNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.is_file():
        raise SnapshotNotFoundError(f"Order snapshot not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding=encoding))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Order snapshot is not valid JSON, using empty dataset", path=str(path), error=str(e))
        return []

    if not isinstance(raw, list):
        logger.warning("Order snapshot is not an array, using empty dataset", path=str(path), type=type(raw).__name__)
        return []

    orders = parse_orders(raw)
    logger.info("Order snapshot loaded", path=str(path), orders=len(orders), skipped=len(raw) - len(orders))
    return orders


class OrderSnapshotStore:
    """
    Snapshot cache keyed on file modification time.

    The file is re-read only after the ingestion job rewrites it.

    Example:
        store = OrderSnapshotStore("public/data/orders.json")
        orders = store.get()
    """

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding
        self._cached: Optional[Tuple[float, List[Order]]] = None
        self._lock = threading.Lock()

    def get(self) -> List[Order]:
        """Current orders, reloading if the file changed"""
        try:
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            raise SnapshotNotFoundError(f"Order snapshot not found: {self.path}")

        with self._lock:
            if self._cached is None or self._cached[0] != mtime:
                self._cached = (mtime, load_order_snapshot(self.path, self.encoding))
            return self._cached[1]

    def is_available(self) -> bool:
        return self.path.is_file()


_store: Optional[OrderSnapshotStore] = None


def get_snapshot_store() -> OrderSnapshotStore:
    """Process-wide store for the configured snapshot path"""
    global _store
    settings = get_settings()
    if _store is None or _store.path != Path(settings.data.orders_path):
        _store = OrderSnapshotStore(settings.data.orders_path, settings.data.encoding)
    return _store
