"""
Delimited Export

Projects ranked pair and bundle results onto flat tables and writes CSV with
every non-numeric field quoted (embedded quotes doubled).
"""

from typing import Sequence

import polars as pl
import structlog

from bought_together.analytics.metrics import PairMetrics
from bought_together.analytics.ranking import BundleSummary

logger = structlog.get_logger(__name__)

PAIR_SCHEMA = {
    "A_key": pl.Utf8,
    "A_label": pl.Utf8,
    "B_key": pl.Utf8,
    "B_label": pl.Utf8,
    "support": pl.Int64,
    "countA": pl.Int64,
    "countB": pl.Int64,
    "confAtoB": pl.Float64,
    "confBtoA": pl.Float64,
    "lift": pl.Float64,
    "supportPct": pl.Float64,
}

BUNDLE_SCHEMA = {
    "size": pl.Int64,
    "bundle": pl.Utf8,
    "bundle_key": pl.Utf8,
    "count": pl.Int64,
    "supportPct": pl.Float64,
    "top_variants": pl.Utf8,
}

TOP_VARIANTS = 5


def pairs_frame(pairs: Sequence[PairMetrics]) -> pl.DataFrame:
    """Pair results as a DataFrame (ratios rounded to 4 places, support % to 3)"""
    rows = [
        (
            str(p.key_a),
            p.label_a,
            str(p.key_b),
            p.label_b,
            p.support,
            p.count_a,
            p.count_b,
            p.conf_a_to_b,
            p.conf_b_to_a,
            p.lift,
            p.support_pct,
        )
        for p in pairs
    ]
    df = pl.DataFrame(rows, schema=PAIR_SCHEMA, orient="row")
    return df.with_columns(
        pl.col("confAtoB").round(4),
        pl.col("confBtoA").round(4),
        pl.col("lift").round(4),
        pl.col("supportPct").round(3),
    )


def bundles_frame(bundles: Sequence[BundleSummary]) -> pl.DataFrame:
    """Bundle results as a DataFrame with the top variant combinations inlined"""
    rows = [
        (
            b.size,
            b.label,
            b.key_label,
            b.count,
            b.support_pct,
            "; ".join(f"{combo} ({count})" for combo, count in b.top_variants(TOP_VARIANTS)),
        )
        for b in bundles
    ]
    df = pl.DataFrame(rows, schema=BUNDLE_SCHEMA, orient="row")
    return df.with_columns(pl.col("supportPct").round(3))


def pairs_to_csv(pairs: Sequence[PairMetrics]) -> str:
    df = pairs_frame(pairs)
    logger.debug("Exporting pairs", rows=df.height)
    return df.write_csv(quote_style="non_numeric")


def bundles_to_csv(bundles: Sequence[BundleSummary]) -> str:
    df = bundles_frame(bundles)
    logger.debug("Exporting bundles", rows=df.height)
    return df.write_csv(quote_style="non_numeric")
