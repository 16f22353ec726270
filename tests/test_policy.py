"""Tests for window policy, surface patterns and attribution config."""

import pytest
from pydantic import ValidationError

from attribution_kernel.models import (
    ActionCategory,
    AttributionConfig,
    SurfacePatternTable,
    WindowPolicy,
)


class TestWindowPolicy:
    @pytest.mark.parametrize("metric", ["LCP", "CLS", "INP"])
    def test_fast_metrics(self, metric):
        policy = WindowPolicy()
        assert policy.tier_for(metric) == "fast"
        assert policy.window_hours(metric) == 6

    @pytest.mark.parametrize(
        "metric", ["crawl_health", "clicks", "sessions", "pages_losing_traffic"]
    )
    def test_standard_metrics(self, metric):
        assert WindowPolicy().window_hours(metric) == 24

    @pytest.mark.parametrize("metric", ["indexing_coverage", "domain_authority"])
    def test_slow_metrics(self, metric):
        assert WindowPolicy().window_hours(metric) == 336

    def test_unknown_metric_defaults_to_standard(self):
        policy = WindowPolicy()
        assert policy.tier_for("bounce_rate") == "standard"
        assert policy.window_hours("bounce_rate") == 24

    def test_override(self):
        policy = WindowPolicy(metric_tiers={"bounce_rate": "fast"})
        assert policy.window_hours("bounce_rate") == 6
        # Overriding the map replaces the defaults
        assert policy.window_hours("LCP") == 24

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValidationError):
            WindowPolicy(metric_tiers={"LCP": "glacial"})

    def test_unknown_default_tier_rejected(self):
        with pytest.raises(ValidationError):
            WindowPolicy(default_tier="glacial")


class TestSurfacePatternTable:
    def test_deploy_surfaces(self):
        table = SurfacePatternTable()
        assert table.metrics_for("deploy") == frozenset({"LCP", "CLS", "INP", "crawl_health"})

    def test_content_update_surfaces(self):
        table = SurfacePatternTable()
        assert table.metrics_for(ActionCategory.CONTENT_UPDATE.value) == frozenset(
            {"clicks", "sessions", "pages_losing_traffic"}
        )

    def test_every_known_category_has_surfaces(self):
        table = SurfacePatternTable()
        for category in ActionCategory:
            assert table.metrics_for(category.value)

    def test_unknown_category_is_empty(self):
        assert SurfacePatternTable().metrics_for("run_started") == frozenset()

    def test_surfaces(self):
        table = SurfacePatternTable()
        assert table.surfaces("crawl", "indexing_coverage")
        assert not table.surfaces("crawl", "clicks")


class TestAttributionConfig:
    def test_defaults(self):
        config = AttributionConfig()
        assert config.time_weight == 0.4
        assert config.surface_weight == 0.6
        assert config.surface_fallback_score == 0.3
        assert config.min_record_confidence == 0.3
        assert config.min_knowledge_confidence == 0.6
        assert config.active_knowledge_confidence == 0.8
        assert config.sweep_interval_seconds == 3600

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError):
            AttributionConfig(time_weight=0.5, surface_weight=0.6)

    def test_thresholds_must_be_ordered(self):
        with pytest.raises(ValidationError):
            AttributionConfig(min_knowledge_confidence=0.9)

    def test_round_trip(self):
        config = AttributionConfig(window_policy=WindowPolicy(default_tier="slow"))
        restored = AttributionConfig.model_validate_json(config.model_dump_json())
        assert restored.window_policy.window_hours("unknown") == 336
