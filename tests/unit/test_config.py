"""
Unit Tests - Settings and Analysis Configuration
"""
import logging

import pytest
from pydantic import ValidationError

from bought_together.analytics import AnalysisConfig, GroupMode, IdentityMode, Order, resolve_items
from bought_together.config import AnalyticsSettings, Settings
from bought_together.config.logging import configure_logging


class TestSettings:

    def test_test_settings(self, test_settings):
        assert test_settings.app_env == "testing"
        assert test_settings.debug is True
        assert not test_settings.is_production

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(app_env="moon")

    def test_analytics_from_environment(self, monkeypatch):
        monkeypatch.setenv("ANALYTICS_MAX_BUNDLE_SIZE", "3")
        monkeypatch.setenv("ANALYTICS_ACCEPTED_STATUSES", '["completed", "processing"]')
        monkeypatch.setenv("ANALYTICS_GROUP_MODE", "exploded")

        config = AnalyticsSettings().to_config()

        assert config.max_bundle_size == 3
        assert config.eligibility.accepted_statuses == ("completed", "processing")
        assert config.consolidation.mode == GroupMode.EXPLODED


class TestAnalysisConfig:

    def test_defaults_from_settings(self):
        config = AnalyticsSettings().to_config()

        assert config.version == "1"
        assert config.max_bundle_size == 7
        assert config.eligibility.accepted_statuses == ("completed",)
        assert [g.name for g in config.consolidation.groups] == ["gummies"]

    def test_request_overrides(self):
        config = AnalyticsSettings().to_config(
            accepted_statuses=["processing"],
            identity=IdentityMode.LABEL,
            max_bundle_size=4,
            date_from="2025-01-01",
        )

        assert config.eligibility.accepted_statuses == ("processing",)
        assert config.consolidation.identity == IdentityMode.LABEL
        assert config.max_bundle_size == 4
        assert config.eligibility.date_from is not None

    @pytest.mark.parametrize("size", [0, 11])
    def test_bundle_size_bounds(self, size):
        with pytest.raises(ValidationError):
            AnalysisConfig(max_bundle_size=size)

    def test_default_preset_falls_back_to_metadata_text(self):
        config = AnalyticsSettings().to_config()
        order = Order.from_raw({
            "id": 1,
            "status": "completed",
            "total": "12.00",
            "line_items": [{
                "product_id": 10,
                "name": "Vitamin Gummies",
                "quantity": 1,
                "total": "12.00",
                "meta_data": [{"key": "Flavour", "value": "Strawberry, Cherry"}],
            }],
        })

        items = resolve_items(order, config.consolidation)

        assert config.consolidation.groups[0].metadata_fallback is True
        assert items[0].facets == frozenset({"Strawberry", "Cherry"})

    def test_frozen(self):
        config = AnalysisConfig()

        with pytest.raises(ValidationError):
            config.max_bundle_size = 3


class TestLogging:

    def test_server_loggers_share_root_handler(self):
        configure_logging(log_level="warning", log_format="json")

        root = logging.getLogger()
        access = logging.getLogger("uvicorn.access")

        assert root.level == logging.WARNING
        assert access.handlers == root.handlers
        assert access.propagate is False

    def test_unknown_level_falls_back_to_info(self):
        configure_logging(log_level="chatty", log_format="text")

        assert logging.getLogger().level == logging.INFO
