"""
Test Suite Configuration
"""
import json
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from bought_together.analytics import (
    AnalysisConfig,
    ConsolidationPolicy,
    GroupDetector,
    GroupMode,
)
from bought_together.config import Settings, get_settings


def line(
    product_id: Any,
    name: str,
    variation_id: Any = 0,
    quantity: Any = 1,
    total: Any = "10.00",
    meta: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Raw line item as exported by the store"""
    return {
        "product_id": product_id,
        "variation_id": variation_id,
        "name": name,
        "quantity": quantity,
        "subtotal": total,
        "total": total,
        "meta_data": [{"key": k, "value": v} for k, v in (meta or {}).items()],
    }


def raw_order(
    order_id: Any,
    items: List[Dict[str, Any]],
    status: str = "completed",
    total: Any = "100.00",
    total_refunded: Any = "0.00",
    **dates: str,
) -> Dict[str, Any]:
    """Raw order record; dates default to a single date_created"""
    if not dates:
        dates = {"date_created": "2025-01-15T10:00:00"}
    return {
        "id": order_id,
        "status": status,
        "total": total,
        "total_refunded": total_refunded,
        "line_items": items,
        **dates,
    }


@pytest.fixture
def make_line() -> Callable[..., Dict[str, Any]]:
    return line


@pytest.fixture
def make_order() -> Callable[..., Dict[str, Any]]:
    return raw_order


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def gummies() -> GroupDetector:
    return GroupDetector(
        name="gummies",
        label="Gummies",
        keywords=["gummi", "gummies"],
        facets=["grape", "mango", "watermelon"],
    )


@pytest.fixture
def consolidated_policy(gummies) -> ConsolidationPolicy:
    return ConsolidationPolicy(groups=(gummies,), mode=GroupMode.CONSOLIDATED)


@pytest.fixture
def exploded_policy(gummies) -> ConsolidationPolicy:
    return ConsolidationPolicy(groups=(gummies,), mode=GroupMode.EXPLODED)


@pytest.fixture
def pair_config() -> AnalysisConfig:
    """Plain product identity, pairs only"""
    return AnalysisConfig(max_bundle_size=2)


@pytest.fixture
def sample_orders() -> List[Dict[str, Any]]:
    """
    Small snapshot:
    - orders 1-3: coffee + mug (order 3 also a filter)
    - order 4: coffee only
    - order 5: pending, ignored under the default policy
    - order 6: fully refunded
    """
    coffee = line(1, "Coffee Beans Dark Roast")
    mug = line(2, "Ceramic Mug")
    filters = line(3, "Paper Filters")
    return [
        raw_order(101, [coffee, mug]),
        raw_order(102, [mug, coffee]),
        raw_order(103, [coffee, mug, filters]),
        raw_order(104, [coffee]),
        raw_order(105, [coffee, filters], status="pending"),
        raw_order(106, [coffee, filters], total="20.00", total_refunded="20.00"),
    ]


@pytest.fixture
def snapshot_file(tmp_path, sample_orders):
    """Order snapshot written to a temporary JSON file"""
    path = tmp_path / "orders.json"
    path.write_text(json.dumps(sample_orders), encoding="utf-8")
    return path


@pytest.fixture
def client(snapshot_file, monkeypatch):
    """API client reading the temporary snapshot"""
    monkeypatch.setenv("DATA_ORDERS_PATH", str(snapshot_file))
    monkeypatch.setenv("LOG_FORMAT", "text")
    get_settings.cache_clear()

    from bought_together.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client

    get_settings.cache_clear()
