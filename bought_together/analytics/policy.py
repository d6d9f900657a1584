"""
Analysis Policy Models

Explicit, versioned configuration handed to the engine on every run:
- Eligibility policy (accepted statuses, date range, date preference)
- Consolidation policy (identity mode, group detectors, group mode)
- Bundle size and per-order enumeration budget
"""

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CONFIG_VERSION = "1"

# Hard ceiling for the itemset size; C(n, k) grows too quickly beyond it
MAX_BUNDLE_SIZE = 10

DEFAULT_DATE_FIELDS: Tuple[str, ...] = (
    "date_paid",
    "date_completed",
    "date_created",
    "date_created_gmt",
)

DEFAULT_VARIANT_META_PATTERN = r"flavor|flavour|size|color|variant|attribute"

DateBound = Union[date, datetime, str]


class IdentityMode(str, Enum):
    """How a line item's canonical key is built"""
    PRODUCT = "product"  # product_id::variation_id
    LABEL = "label"  # two-word display label


class GroupMode(str, Enum):
    """How lines matching a consolidation group are represented"""
    CONSOLIDATED = "consolidated"  # one item per group, facets accumulated
    EXPLODED = "exploded"  # one item per detected facet


def _normalize_bound(value: Optional[DateBound], end_of_day: bool) -> Optional[datetime]:
    """Turn a date or datetime bound into a naive UTC datetime"""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        text = value.strip()
        value = date.fromisoformat(text) if len(text) == 10 else datetime.fromisoformat(text)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime.combine(value, time.max if end_of_day else time.min)


class EligibilityPolicy(BaseModel):
    """Which orders count toward the analysis universe"""

    model_config = ConfigDict(frozen=True)

    accepted_statuses: Tuple[str, ...] = Field(default=("completed",), description="Accepted order statuses")
    date_from: Optional[datetime] = Field(default=None, description="Inclusive lower bound")
    date_to: Optional[datetime] = Field(default=None, description="Inclusive upper bound")
    date_fields: Tuple[str, ...] = Field(default=DEFAULT_DATE_FIELDS, description="Date field preference order")

    @field_validator("accepted_statuses", mode="before")
    @classmethod
    def normalize_statuses(cls, v) -> Tuple[str, ...]:
        if isinstance(v, str):
            v = [v]
        statuses = tuple(dict.fromkeys(str(s).strip().lower() for s in v if str(s).strip()))
        if not statuses:
            raise ValueError("At least one accepted status is required")
        return statuses

    @field_validator("date_from", mode="before")
    @classmethod
    def normalize_date_from(cls, v):
        return _normalize_bound(v, end_of_day=False)

    @field_validator("date_to", mode="before")
    @classmethod
    def normalize_date_to(cls, v):
        return _normalize_bound(v, end_of_day=True)

    @field_validator("date_fields")
    @classmethod
    def require_date_fields(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if not v:
            raise ValueError("At least one date field is required")
        return v

    @model_validator(mode="after")
    def check_range(self) -> "EligibilityPolicy":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    @property
    def has_date_range(self) -> bool:
        return self.date_from is not None or self.date_to is not None

    def accepts_status(self, status: str) -> bool:
        return status.lower() in self.accepted_statuses


class GroupDetector(BaseModel):
    """
    A family of related products analyzed as one entity.

    Lines whose name contains one of ``keywords`` belong to the group. Facet
    values (e.g. flavors) are detected with word-boundary matches against the
    line name and its metadata values.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Synthetic key namespace")
    label: str = Field(..., min_length=1, description="Display label")
    keywords: Tuple[str, ...] = Field(..., min_length=1, description="Case-insensitive name keywords")
    facets: Tuple[str, ...] = Field(default=(), description="Known facet values")
    match_metadata: bool = Field(default=False, description="Also match keywords in metadata values")
    metadata_fallback: bool = Field(default=False, description="Use raw metadata text when no facet matches")
    unspecified_facet: str = Field(default="Unspecified", description="Sentinel facet")

    @field_validator("keywords", "facets", mode="before")
    @classmethod
    def lower_terms(cls, v):
        return tuple(str(t).strip().lower() for t in v if str(t).strip())


class ConsolidationPolicy(BaseModel):
    """How raw line items map to canonical items"""

    model_config = ConfigDict(frozen=True)

    identity: IdentityMode = IdentityMode.PRODUCT
    mode: GroupMode = GroupMode.CONSOLIDATED
    groups: Tuple[GroupDetector, ...] = ()
    variant_meta_pattern: str = DEFAULT_VARIANT_META_PATTERN


class AnalysisConfig(BaseModel):
    """Complete configuration for one engine run"""

    model_config = ConfigDict(frozen=True)

    version: str = CONFIG_VERSION
    eligibility: EligibilityPolicy = Field(default_factory=EligibilityPolicy)
    consolidation: ConsolidationPolicy = Field(default_factory=ConsolidationPolicy)
    max_bundle_size: int = Field(default=7, ge=1, le=MAX_BUNDLE_SIZE)
    max_itemsets_per_order: int = Field(default=50_000, gt=0)
