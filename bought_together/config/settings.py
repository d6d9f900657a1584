"""
Bought-Together Analytics
Centralized Configuration Management

Pydantic settings with environment variable support. Every analysis policy
(accepted statuses, date preference, consolidation groups, bundle size) is
declared here and handed to the engine as an explicit AnalysisConfig.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bought_together.analytics.policy import (
    DEFAULT_DATE_FIELDS,
    AnalysisConfig,
    ConsolidationPolicy,
    EligibilityPolicy,
    GroupDetector,
    GroupMode,
    IdentityMode,
    MAX_BUNDLE_SIZE,
)


def _default_groups() -> List[GroupDetector]:
    return [
        GroupDetector(
            name="gummies",
            label="Gummies",
            keywords=["gummi", "gummies"],
            facets=["grape", "mango", "watermelon", "blueberry", "lemon", "pineapple"],
            metadata_fallback=True,
        )
    ]


class DataSettings(BaseSettings):
    """Order snapshot location"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    orders_path: str = Field(default="./public/data/orders.json", description="Order snapshot JSON file")
    encoding: str = Field(default="utf-8", description="Snapshot file encoding")


class AnalyticsSettings(BaseSettings):
    """Default analysis policy"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    accepted_statuses: List[str] = Field(default=["completed"], description="Order statuses counted as eligible")
    date_fields: List[str] = Field(default=list(DEFAULT_DATE_FIELDS), description="Date field preference order")
    max_bundle_size: int = Field(default=7, ge=1, le=MAX_BUNDLE_SIZE, description="Largest itemset size")
    max_itemsets_per_order: int = Field(default=50_000, gt=0, description="Per-order enumeration budget")
    min_count: int = Field(default=2, ge=1, description="Default minimum itemset count")
    top_n: int = Field(default=100, ge=1, description="Default result limit")
    identity: IdentityMode = Field(default=IdentityMode.PRODUCT, description="product or label identity")
    group_mode: GroupMode = Field(default=GroupMode.CONSOLIDATED, description="consolidated or exploded groups")
    groups: List[GroupDetector] = Field(default_factory=_default_groups, description="Consolidation groups (JSON)")

    def to_config(self, **overrides) -> AnalysisConfig:
        """
        Build the engine configuration from these defaults.

        Args:
            **overrides: Per-request values (accepted_statuses, date_from,
                date_to, max_bundle_size, identity, group_mode)

        Returns:
            AnalysisConfig: Validated, immutable configuration
        """
        eligibility = EligibilityPolicy(
            accepted_statuses=overrides.get("accepted_statuses") or self.accepted_statuses,
            date_from=overrides.get("date_from"),
            date_to=overrides.get("date_to"),
            date_fields=self.date_fields,
        )
        consolidation = ConsolidationPolicy(
            identity=overrides.get("identity") or self.identity,
            mode=overrides.get("group_mode") or self.group_mode,
            groups=self.groups,
        )
        return AnalysisConfig(
            eligibility=eligibility,
            consolidation=consolidation,
            max_bundle_size=overrides.get("max_bundle_size") or self.max_bundle_size,
            max_itemsets_per_order=self.max_itemsets_per_order,
        )


class SecuritySettings(BaseSettings):
    """HTTP surface configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="bought-together", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    api_workers: int = Field(default=2, alias="API_WORKERS", description="API workers")

    version: str = Field(default="1.0.0", description="Application version")

    data: DataSettings = Field(default_factory=DataSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
