"""Tests for settings and the scheduled sweep entry point."""

from datetime import datetime, timedelta

from attribution_kernel.event_store.sqlite import SQLiteEventStore
from attribution_kernel.models.events import AgentAction, OutcomeEvent
from attribution_kernel.scheduler import build_sweeper
from attribution_kernel.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ATTRIBUTION_DB_PATH", raising=False)
        monkeypatch.delenv("ATTRIBUTION_ENV", raising=False)
        settings = Settings(_env_file=None)
        assert settings.db_path == ":memory:"
        assert settings.sweep_interval_seconds == 3600
        assert settings.env == "prod"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ATTRIBUTION_SWEEP_INTERVAL_SECONDS", "60")
        monkeypatch.setenv("ATTRIBUTION_LOG_LEVEL", "DEBUG")
        settings = Settings(_env_file=None)
        assert settings.sweep_interval_seconds == 60
        assert settings.log_level == "DEBUG"


class TestBuildSweeper:
    def test_interval_flows_into_config(self):
        sweeper = build_sweeper(Settings(_env_file=None, sweep_interval_seconds=120))
        assert sweeper.attributor.config.sweep_interval_seconds == 120
        sweeper.store.close()

    def test_sweeps_given_store(self):
        now = datetime(2026, 3, 1, 12, 0, 0)
        store = SQLiteEventStore(":memory:")
        store.append_agent_action(AgentAction(
            action_id="act_1",
            site_id="site_1",
            action_type="config_change",
            timestamp_start=now - timedelta(hours=4),
        ))
        store.append_outcome_event(OutcomeEvent(
            event_id="evt_1",
            site_id="site_1",
            metric_key="crawl_health",
            event_type="regression",
            timestamp=now,
        ))

        summaries = build_sweeper(Settings(_env_file=None), store=store).sweep_all_sites()

        assert summaries["site_1"].to_dict() == {"processed": 1, "attributions": 1, "learnings": 1}
        store.close()
