"""
Association Metrics

Support, support percentage, confidence and lift derived from raw counts.

Every zero denominator yields 0.0: missing co-occurrence data is reported as
"no measurable association", never as an error, NaN or infinity.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict

from bought_together.analytics.models import ItemKey


def support_pct(count: int, total_orders: int) -> float:
    """Percentage of eligible orders containing the itemset"""
    if total_orders <= 0:
        return 0.0
    return 100.0 * count / total_orders


def confidence(joint_count: int, antecedent_count: int) -> float:
    """P(consequent | antecedent) = count({A,B}) / count({A})"""
    if antecedent_count <= 0:
        return 0.0
    return joint_count / antecedent_count


def lift(joint_count: int, count_a: int, count_b: int, total_orders: int) -> float:
    """
    Observed over expected co-occurrence under independence.

    Computed as N * count({A,B}) / (count({A}) * count({B})) so that only one
    rounding step happens; symmetric in A and B.
    """
    if total_orders <= 0 or count_a <= 0 or count_b <= 0:
        return 0.0
    return (total_orders * joint_count) / (count_a * count_b)


@dataclass(frozen=True)
class PairMetrics:
    """Association statistics for one unordered pair"""
    key_a: ItemKey
    key_b: ItemKey
    label_a: str
    label_b: str
    support: int
    support_pct: float
    count_a: int
    count_b: int
    conf_a_to_b: float
    conf_b_to_a: float
    lift: float

    @property
    def labels(self):
        return (self.label_a, self.label_b)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["key_a"] = str(self.key_a)
        data["key_b"] = str(self.key_b)
        return data


def pair_metrics(
    key_a: ItemKey,
    key_b: ItemKey,
    label_a: str,
    label_b: str,
    joint_count: int,
    count_a: int,
    count_b: int,
    total_orders: int,
) -> PairMetrics:
    """Build the full metric set for a pair from raw counts"""
    return PairMetrics(
        key_a=key_a,
        key_b=key_b,
        label_a=label_a,
        label_b=label_b,
        support=joint_count,
        support_pct=support_pct(joint_count, total_orders),
        count_a=count_a,
        count_b=count_b,
        conf_a_to_b=confidence(joint_count, count_a),
        conf_b_to_a=confidence(joint_count, count_b),
        lift=lift(joint_count, count_a, count_b, total_orders),
    )
