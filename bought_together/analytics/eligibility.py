"""
Order Eligibility Filter

Decides whether an order belongs to the analysis universe. Rules run in order
and short-circuit on the first failure:
1. Status is in the policy's accepted set (case-insensitive)
2. Total is non-zero and the refunded amount is strictly below it
3. The resolved date, when present, lies inside the configured range
"""

from typing import Iterable, Iterator

from bought_together.analytics.models import Order
from bought_together.analytics.policy import EligibilityPolicy


def is_eligible(order: Order, policy: EligibilityPolicy) -> bool:
    """
    Check a single order against the eligibility policy.

    Orders without any resolvable date stay eligible even when a date range
    is configured.

    Args:
        order: Parsed order
        policy: Accepted statuses, optional date range, date preference

    Returns:
        True if the order counts toward the analysis
    """
    if not policy.accepts_status(order.status):
        return False

    if order.total == 0 or order.total_refunded >= order.total:
        return False

    if policy.has_date_range:
        resolved = order.resolve_date(policy.date_fields)
        if resolved is None:
            return True
        if policy.date_from is not None and resolved < policy.date_from:
            return False
        if policy.date_to is not None and resolved > policy.date_to:
            return False

    return True


def filter_eligible(orders: Iterable[Order], policy: EligibilityPolicy) -> Iterator[Order]:
    """Lazily yield the eligible orders"""
    return (order for order in orders if is_eligible(order, policy))
