"""
Analytics Data Models

Immutable order records parsed defensively from the ingestion snapshot, and
the canonical identities the engine aggregates on.

Parsing never raises for data-quality problems:
- absent or unparsable numbers default to 0
- absent or unparsable dates become None
- absent names and ids produce synthetic labels and keys
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Tuple

DATE_FIELDS = (
    "date_paid",
    "date_completed",
    "date_created",
    "date_created_gmt",
    "date_modified",
)


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce a JSON number or numeric string, falling back to ``default``"""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into a naive UTC datetime"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _to_identifier(value: Any) -> Optional[str]:
    """Normalize a product/variation id; 0 and blanks mean "absent" """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    if not text or text == "0":
        return None
    return text


def _meta_pairs(raw_meta: Any) -> Tuple[Tuple[str, str], ...]:
    """Keep scalar metadata values as (key, value) strings"""
    if not isinstance(raw_meta, list):
        return ()

    pairs = []
    for entry in raw_meta:
        if not isinstance(entry, Mapping):
            continue
        value = entry.get("value")
        if value is None or isinstance(value, (dict, list)):
            continue
        pairs.append((str(entry.get("key") or ""), str(value)))
    return tuple(pairs)


class ItemKey(NamedTuple):
    """
    Structural identity of a canonical item.

    Tuples compare field by field, so two keys are equal only when namespace,
    identifier and variant all match; no string concatenation is involved.
    """
    namespace: str  # product | name | label | group
    ident: str
    variant: str = ""

    def __str__(self) -> str:
        if self.namespace == "label":
            return self.ident
        return f"{self.ident}::{self.variant}"


ItemsetKey = Tuple[ItemKey, ...]


@dataclass(frozen=True)
class LineItem:
    """Single order line as exported by the store"""
    product_id: Optional[str]
    variation_id: str
    name: str
    quantity: float
    subtotal: Optional[float]
    total: Optional[float]
    meta_data: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "LineItem":
        total = raw.get("total")
        subtotal = raw.get("subtotal")
        return cls(
            product_id=_to_identifier(raw.get("product_id")),
            variation_id=_to_identifier(raw.get("variation_id")) or "0",
            name=str(raw.get("name") or "").strip(),
            quantity=to_float(raw.get("quantity")),
            subtotal=None if subtotal is None else to_float(subtotal),
            total=None if total is None else to_float(total),
            meta_data=_meta_pairs(raw.get("meta_data")),
        )

    @property
    def line_value(self) -> float:
        """Line total, falling back to subtotal"""
        if self.total is not None:
            return self.total
        if self.subtotal is not None:
            return self.subtotal
        return 0.0

    @property
    def meta_values(self) -> Tuple[str, ...]:
        return tuple(value for _, value in self.meta_data)


@dataclass(frozen=True)
class Order:
    """Order record; read-only input to the engine"""
    id: Any
    status: str
    total: float
    total_refunded: float
    dates: Dict[str, Optional[datetime]] = field(default_factory=dict, hash=False, compare=False)
    line_items: Tuple[LineItem, ...] = ()

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "Order":
        raw_items = raw.get("line_items")
        items = tuple(
            LineItem.from_raw(li)
            for li in (raw_items if isinstance(raw_items, list) else [])
            if isinstance(li, Mapping)
        )
        return cls(
            id=raw.get("id"),
            status=str(raw.get("status") or "").strip().lower(),
            total=to_float(raw.get("total")),
            total_refunded=abs(to_float(raw.get("total_refunded"))),
            dates={name: parse_datetime(raw.get(name)) for name in DATE_FIELDS},
            line_items=items,
        )

    def resolve_date(self, preference: Tuple[str, ...]) -> Optional[datetime]:
        """First date in ``preference`` that is present and parsable"""
        for name in preference:
            value = self.dates.get(name)
            if value is not None:
                return value
        return None


@dataclass(frozen=True)
class CanonicalItem:
    """
    Analytic identity of one or more line items within a single order.

    ``facets`` carries detected variant values (flavors for consolidated
    groups, the variant name for plain products). ``group`` names the
    consolidation group the item came from, if any.
    """
    key: ItemKey
    label: str
    facets: FrozenSet[str] = frozenset()
    group: Optional[str] = None

    def merged(self, other: "CanonicalItem") -> "CanonicalItem":
        return replace(self, facets=self.facets | other.facets)

    def variant_part(self) -> str:
        """Facet-qualified representation, e.g. ``Gummies(Grape,Mango)``"""
        if not self.facets:
            return self.label
        return f"{self.label}({','.join(sorted(self.facets))})"

    @property
    def group_facets(self) -> FrozenSet[str]:
        """Facets tallied for group breakdowns (exploded items carry theirs in the key)"""
        if self.group is None:
            return frozenset()
        return self.facets or frozenset({self.key.variant})


@dataclass(frozen=True)
class SampleOrder:
    """Order reference kept for debugging a bundle"""
    id: Any
    date: Optional[str]


def parse_orders(raw: Any) -> List[Order]:
    """
    Parse a decoded snapshot into orders.

    Anything other than a list is a malformed dataset and yields no orders;
    non-object entries are skipped. Already-parsed Order instances pass
    through unchanged.
    """
    if not isinstance(raw, (list, tuple)):
        return []
    orders = []
    for entry in raw:
        if isinstance(entry, Order):
            orders.append(entry)
        elif isinstance(entry, Mapping):
            orders.append(Order.from_raw(entry))
    return orders
