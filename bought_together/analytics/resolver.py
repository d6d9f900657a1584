"""
Item Identity Resolver

Maps an order's raw line items to a deduplicated list of canonical items.

Handles:
- Skipping zero-quantity and zero-value lines
- Product identity (product_id::variation_id) or label identity
- Consolidation groups in consolidated or exploded mode
- Facet (flavor/variant) detection from names and metadata
"""

from functools import lru_cache
import re
from typing import Dict, List, Optional, Pattern, Set, Tuple

from bought_together.analytics.models import CanonicalItem, ItemKey, LineItem, Order
from bought_together.analytics.policy import (
    ConsolidationPolicy,
    GroupDetector,
    GroupMode,
    IdentityMode,
)

CONSOLIDATED_VARIANT = "consolidated"

_FALLBACK_SPLIT = re.compile(r"[,|\\/]+")


def short_label(name: str, product_id: Optional[str] = None) -> str:
    """First two words of the item name, with synthetic fallbacks"""
    words = name.split()
    label = " ".join(words[:2]) or name
    if label:
        return label
    if product_id:
        return f"product-{product_id}"
    return "Unknown"


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


class ItemResolver:
    """
    Resolver bound to one consolidation policy.

    Regexes for facet detection and variant metadata are compiled once per
    policy and reused for every order.

    Example:
        resolver = ItemResolver(policy)
        items = resolver.resolve(order)
    """

    def __init__(self, policy: ConsolidationPolicy):
        self.policy = policy
        self._variant_meta: Pattern = re.compile(policy.variant_meta_pattern, re.IGNORECASE)
        self._facet_patterns: Dict[str, List[Tuple[str, Pattern]]] = {
            detector.name: [
                (_capitalize(facet), re.compile(rf"\b{re.escape(facet)}\b", re.IGNORECASE))
                for facet in detector.facets
            ]
            for detector in policy.groups
        }

    def match_group(self, line: LineItem) -> Optional[GroupDetector]:
        """First group whose keywords appear in the line name (or metadata)"""
        name = line.name.lower()
        for detector in self.policy.groups:
            if any(keyword in name for keyword in detector.keywords):
                return detector
            if detector.match_metadata:
                values = [value.lower() for value in line.meta_values]
                if any(keyword in value for value in values for keyword in detector.keywords):
                    return detector
        return None

    def detect_facets(self, detector: GroupDetector, line: LineItem) -> Set[str]:
        """Facet values mentioned in the line name or any metadata value"""
        texts = [line.name, *line.meta_values]
        found = {
            facet
            for facet, pattern in self._facet_patterns[detector.name]
            if any(pattern.search(text) for text in texts)
        }

        if not found and detector.metadata_fallback:
            for value in line.meta_values:
                found.update(part.strip() for part in _FALLBACK_SPLIT.split(value) if part.strip())

        return found

    def variant_name(self, line: LineItem) -> str:
        """Variant from attribute-like metadata, else the words after the label"""
        for key, value in line.meta_data:
            if self._variant_meta.search(key) and value.strip():
                return value.strip()
        return " ".join(line.name.split()[2:])

    def product_item(self, line: LineItem) -> CanonicalItem:
        label = short_label(line.name, line.product_id)

        if self.policy.identity == IdentityMode.LABEL:
            key = ItemKey("label", label)
        elif line.product_id is not None:
            key = ItemKey("product", line.product_id, line.variation_id)
        else:
            key = ItemKey("name", line.name.lower() or "unknown", line.variation_id)

        variant = self.variant_name(line)
        return CanonicalItem(
            key=key,
            label=label,
            facets=frozenset({variant}) if variant else frozenset(),
        )

    def group_items(self, detector: GroupDetector, facets: Set[str]) -> List[CanonicalItem]:
        if self.policy.mode == GroupMode.CONSOLIDATED:
            return [
                CanonicalItem(
                    key=ItemKey("group", detector.name, CONSOLIDATED_VARIANT),
                    label=detector.label,
                    facets=frozenset(facets or {detector.unspecified_facet}),
                    group=detector.name,
                )
            ]

        return [
            CanonicalItem(
                key=ItemKey("group", detector.name, facet),
                label=f"{detector.label}({facet})",
                group=detector.name,
            )
            for facet in (sorted(facets) or [detector.unspecified_facet])
        ]

    def resolve(self, order: Order) -> List[CanonicalItem]:
        """
        Resolve an order's line items.

        Returns:
            Canonical items with unique keys, in first-seen order
        """
        resolved: Dict[ItemKey, CanonicalItem] = {}
        group_hits: Dict[str, Tuple[GroupDetector, Set[str]]] = {}

        def add(item: CanonicalItem) -> None:
            existing = resolved.get(item.key)
            if existing is None:
                resolved[item.key] = item
            elif item.key.variant == CONSOLIDATED_VARIANT and item.group is not None:
                resolved[item.key] = existing.merged(item)

        for line in order.line_items:
            if line.quantity <= 0 or line.line_value <= 0:
                continue

            detector = self.match_group(line)
            if detector is not None:
                _, facets = group_hits.setdefault(detector.name, (detector, set()))
                facets.update(self.detect_facets(detector, line))
                continue

            add(self.product_item(line))

        for detector, facets in group_hits.values():
            for item in self.group_items(detector, facets):
                add(item)

        return list(resolved.values())


@lru_cache(maxsize=32)
def get_resolver(policy: ConsolidationPolicy) -> ItemResolver:
    """Cached resolver per (hashable, frozen) policy"""
    return ItemResolver(policy)


def resolve_items(order: Order, policy: ConsolidationPolicy) -> List[CanonicalItem]:
    """Resolve an order's line items into unique canonical items"""
    return get_resolver(policy).resolve(order)
