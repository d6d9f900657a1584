"""
Bought-Together API Endpoints

REST API over the analytics engine: ranked pairs, bundles, also-bought
partners, the product catalog, and CSV exports. Every request recomputes
from the current order snapshot with the policy given in the query string.
"""

from datetime import date
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ValidationError
import structlog

from bought_together.analytics import (
    AnalysisConfig,
    BoughtTogetherEngine,
    GroupMode,
    IdentityMode,
    Order,
    QueryOptions,
    SortKey,
    analyze_bundles,
    analyze_pairs,
)
from bought_together.config import get_settings
from bought_together.export import bundles_to_csv, pairs_to_csv
from bought_together.ingestion import SnapshotNotFoundError, get_snapshot_store

router = APIRouter()
logger = structlog.get_logger(__name__)


class PairRow(BaseModel):
    """Pair metrics"""
    item_a: str
    item_b: str
    key_a: str
    key_b: str
    support: int
    support_pct: float
    count_a: int
    count_b: int
    confidence_a_to_b: float
    confidence_b_to_a: float
    lift: float


class VariantCount(BaseModel):
    combo: str
    count: int


class FacetCount(BaseModel):
    facet: str
    count: int


class SampleOrderRef(BaseModel):
    id: Optional[Union[str, int]]
    date: Optional[str]


class BundleRow(BaseModel):
    """Bundle (itemset) statistics"""
    itemset_label: str
    itemset_key: str
    size: int
    count: int
    support_pct: float
    variant_breakdown: List[VariantCount]
    facet_counts: List[FacetCount]
    sample_orders: List[SampleOrderRef]


class AlsoBoughtRow(BaseModel):
    key: str
    label: str
    support: int
    confidence: float
    lift: float


class ProductRow(BaseModel):
    key: str
    label: str
    count: int


class AnalysisSummary(BaseModel):
    """Universe the results were computed over"""
    total_orders: int
    total_eligible_orders: int
    skipped_orders: int
    config_version: str


class PairsResponse(AnalysisSummary):
    pairs: List[PairRow]


class BundlesResponse(AnalysisSummary):
    bundles: List[BundleRow]


class AlsoBoughtResponse(AnalysisSummary):
    product_key: str
    product_label: Optional[str]
    partners: List[AlsoBoughtRow]


class ProductsResponse(AnalysisSummary):
    products: List[ProductRow]


def get_orders() -> List[Order]:
    """Current order snapshot"""
    try:
        return get_snapshot_store().get()
    except SnapshotNotFoundError as e:
        logger.error("Order snapshot unavailable", error=str(e))
        raise HTTPException(status_code=503, detail=str(e))


def get_analysis_config(
    status: Optional[List[str]] = Query(None, description="Accepted order statuses (repeatable)"),
    date_from: Optional[date] = Query(None, description="Inclusive start date"),
    date_to: Optional[date] = Query(None, description="Inclusive end date"),
    identity: Optional[IdentityMode] = Query(None, description="product or label identity"),
    group_mode: Optional[GroupMode] = Query(None, description="consolidated or exploded groups"),
    bundle_size: Optional[int] = Query(None, ge=1, description="Largest itemset size"),
) -> AnalysisConfig:
    """Analysis policy from configured defaults plus request overrides"""
    try:
        return get_settings().analytics.to_config(
            accepted_statuses=status,
            date_from=date_from,
            date_to=date_to,
            identity=identity,
            group_mode=group_mode,
            max_bundle_size=bundle_size,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))


def get_query_options(
    min_count: Optional[int] = Query(None, ge=0, description="Minimum itemset count"),
    sort_by: SortKey = Query(SortKey.SUPPORT, description="support | supportPct | lift | confAtoB"),
    q: Optional[str] = Query(None, description="Case-insensitive label filter"),
    top_n: Optional[int] = Query(None, ge=1, description="Result limit"),
    min_size: int = Query(1, ge=1, description="Smallest bundle size"),
    max_size: Optional[int] = Query(None, ge=1, description="Largest bundle size"),
) -> QueryOptions:
    defaults = get_settings().analytics
    try:
        return QueryOptions(
            min_count=defaults.min_count if min_count is None else min_count,
            sort_by=sort_by,
            label_filter=q,
            top_n=top_n or defaults.top_n,
            min_size=min_size,
            max_size=max_size,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))


def _summary(result) -> dict:
    return {
        "total_orders": result.total_orders,
        "total_eligible_orders": result.total_eligible_orders,
        "skipped_orders": len(result.skipped_orders),
        "config_version": result.config.version,
    }


def _bundles_or_422(orders, config, options):
    try:
        return analyze_bundles(orders, config, options)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/pairs", response_model=PairsResponse)
def get_pairs(
    orders: List[Order] = Depends(get_orders),
    config: AnalysisConfig = Depends(get_analysis_config),
    options: QueryOptions = Depends(get_query_options),
) -> PairsResponse:
    """
    Ranked product pairs with support, confidence (both directions) and lift.

    Only pairs are enumerated; bundle_size sets the itemset size at which
    outlier orders are measured, as it does for /bundles.
    """
    result, pairs = analyze_pairs(orders, config, options)
    return PairsResponse(
        **_summary(result),
        pairs=[
            PairRow(
                item_a=p.label_a,
                item_b=p.label_b,
                key_a=str(p.key_a),
                key_b=str(p.key_b),
                support=p.support,
                support_pct=p.support_pct,
                count_a=p.count_a,
                count_b=p.count_b,
                confidence_a_to_b=p.conf_a_to_b,
                confidence_b_to_a=p.conf_b_to_a,
                lift=p.lift,
            )
            for p in pairs
        ],
    )


@router.get("/bundles", response_model=BundlesResponse)
def get_bundles(
    orders: List[Order] = Depends(get_orders),
    config: AnalysisConfig = Depends(get_analysis_config),
    options: QueryOptions = Depends(get_query_options),
) -> BundlesResponse:
    """
    Ranked itemsets of size min_size..max_size with variant breakdowns and
    sample orders. Only support and supportPct are valid sort keys.
    """
    result, bundles = _bundles_or_422(orders, config, options)
    return BundlesResponse(
        **_summary(result),
        bundles=[BundleRow(**b.to_dict()) for b in bundles],
    )


@router.get("/also-bought", response_model=AlsoBoughtResponse)
def get_also_bought(
    product_key: str = Query(..., description="Item key, e.g. 123::0 or gummies::consolidated"),
    min_count: int = Query(1, ge=1),
    sort_by: SortKey = Query(SortKey.SUPPORT),
    orders: List[Order] = Depends(get_orders),
    config: AnalysisConfig = Depends(get_analysis_config),
) -> AlsoBoughtResponse:
    """Products most often bought with the selected one."""
    result = BoughtTogetherEngine(config).run(orders, max_size=2)
    key = result.find_key(product_key)
    if key is None:
        raise HTTPException(status_code=404, detail=f"Unknown product key: {product_key}")

    partners = result.also_bought(key, min_count=min_count, sort_by=sort_by)
    return AlsoBoughtResponse(
        **_summary(result),
        product_key=product_key,
        product_label=result.label_for(key),
        partners=[
            AlsoBoughtRow(key=str(p.key), label=p.label, support=p.support, confidence=p.confidence, lift=p.lift)
            for p in partners
        ],
    )


@router.get("/products", response_model=ProductsResponse)
def get_products(
    orders: List[Order] = Depends(get_orders),
    config: AnalysisConfig = Depends(get_analysis_config),
) -> ProductsResponse:
    """Every product seen in eligible orders, sorted by label."""
    result = BoughtTogetherEngine(config).run(orders, max_size=1)
    return ProductsResponse(
        **_summary(result),
        products=[
            ProductRow(key=str(key), label=label, count=result.count(key))
            for key, label in result.catalog()
        ],
    )


@router.get("/pairs/export")
def export_pairs(
    orders: List[Order] = Depends(get_orders),
    config: AnalysisConfig = Depends(get_analysis_config),
    options: QueryOptions = Depends(get_query_options),
) -> Response:
    """Ranked pairs as CSV."""
    _, pairs = analyze_pairs(orders, config, options)
    return Response(
        content=pairs_to_csv(pairs),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="pairs.csv"'},
    )


@router.get("/bundles/export")
def export_bundles(
    orders: List[Order] = Depends(get_orders),
    config: AnalysisConfig = Depends(get_analysis_config),
    options: QueryOptions = Depends(get_query_options),
) -> Response:
    """Ranked bundles as CSV."""
    _, bundles = _bundles_or_422(orders, config, options)
    return Response(
        content=bundles_to_csv(bundles),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="bundles.csv"'},
    )
