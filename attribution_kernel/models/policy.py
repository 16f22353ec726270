"""
Attribution configuration — observation windows, change surfaces and
the thresholds that gate persistence.

All of it is plain data injected into the Attributor, so a deployment
can override any table without touching engine code.
"""

from typing import Dict, FrozenSet, List

from pydantic import BaseModel, Field, model_validator


DEFAULT_WINDOW_TIERS: Dict[str, float] = {
    "fast": 6,          # Core Web Vitals, build errors, UI regressions
    "standard": 24,     # crawl health, traffic
    "slow": 336,        # indexing, domain authority (14 days)
}

DEFAULT_METRIC_TIERS: Dict[str, str] = {
    "LCP": "fast",
    "CLS": "fast",
    "INP": "fast",
    "crawl_health": "standard",
    "clicks": "standard",
    "sessions": "standard",
    "pages_losing_traffic": "standard",
    "indexing_coverage": "slow",
    "domain_authority": "slow",
}

DEFAULT_SURFACES: Dict[str, List[str]] = {
    "crawl": ["crawl_health", "indexing_coverage"],
    "deploy": ["LCP", "CLS", "INP", "crawl_health"],
    "content_update": ["clicks", "sessions", "pages_losing_traffic"],
    "config_change": ["crawl_health", "indexing_coverage"],
    "integration_setup": ["crawl_health", "indexing_coverage"],
    "run": ["crawl_health", "LCP", "CLS", "INP"],
}


class WindowPolicy(BaseModel):
    """Maps a metric key to how long after an action its effect may show up."""

    tiers: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_WINDOW_TIERS))
    metric_tiers: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_METRIC_TIERS))
    default_tier: str = "standard"

    @model_validator(mode="after")
    def _check_tiers(self) -> "WindowPolicy":
        unknown = {t for t in self.metric_tiers.values() if t not in self.tiers}
        if self.default_tier not in self.tiers:
            unknown.add(self.default_tier)
        if unknown:
            raise ValueError(f"Unknown window tier(s): {sorted(unknown)}")
        return self

    def tier_for(self, metric_key: str) -> str:
        return self.metric_tiers.get(metric_key, self.default_tier)

    def window_hours(self, metric_key: str) -> float:
        return self.tiers[self.tier_for(metric_key)]


class SurfacePatternTable(BaseModel):
    """Maps an action type to the metrics it is known to influence."""

    patterns: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_SURFACES.items()}
    )

    def metrics_for(self, action_type: str) -> FrozenSet[str]:
        return frozenset(self.patterns.get(action_type, ()))

    def surfaces(self, action_type: str, metric_key: str) -> bool:
        return metric_key in self.metrics_for(action_type)


class AttributionConfig(BaseModel):
    """Scoring weights and persistence thresholds for the Attributor."""

    window_policy: WindowPolicy = Field(default_factory=WindowPolicy)
    surface_patterns: SurfacePatternTable = Field(default_factory=SurfacePatternTable)

    time_weight: float = Field(ge=0, le=1, default=0.4)
    surface_weight: float = Field(ge=0, le=1, default=0.6)
    surface_fallback_score: float = Field(ge=0, le=1, default=0.3)

    min_record_confidence: float = Field(ge=0, le=1, default=0.3)
    min_knowledge_confidence: float = Field(ge=0, le=1, default=0.6)
    active_knowledge_confidence: float = Field(ge=0, le=1, default=0.8)

    sweep_interval_seconds: int = 3600

    @model_validator(mode="after")
    def _check_weights(self) -> "AttributionConfig":
        if abs(self.time_weight + self.surface_weight - 1.0) > 1e-9:
            raise ValueError("time_weight and surface_weight must sum to 1")
        if not (
            self.min_record_confidence
            <= self.min_knowledge_confidence
            <= self.active_knowledge_confidence
        ):
            raise ValueError(
                "Thresholds must satisfy record <= knowledge <= active"
            )
        return self
