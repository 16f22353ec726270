"""Tests for the agent Action Logger."""

from datetime import datetime, timedelta

import pytest

from attribution_kernel.action_log import ActionLogger
from attribution_kernel.errors import StoreWriteError
from attribution_kernel.event_store.sqlite import SQLiteEventStore

NOW = datetime(2026, 3, 1, 9, 30, 0)


class RejectingStore(SQLiteEventStore):
    def append_agent_action(self, action):
        raise StoreWriteError("disk full")


@pytest.fixture
def store():
    s = SQLiteEventStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def action_logger(store):
    return ActionLogger(store, env="prod", clock=lambda: NOW)


class TestActionLogger:
    def test_run_started(self, store, action_logger):
        action = action_logger.log_run_started("site_1", "crawler", "run_1", {"url": "/"})

        assert action.action_type == "run_started"
        assert action.action_id.startswith("run_started_")
        assert action.timestamp_start == NOW
        assert action.timestamp_end is None
        assert action.targets == {"url": "/"}
        assert action.risk_level == "low"

        stored = store.get_actions_by_time_window("site_1", NOW - timedelta(hours=1), NOW)
        assert [a.action_id for a in stored] == [action.action_id]

    def test_terminal_events_have_end_time(self, action_logger):
        action = action_logger.log_run_completed("site_1", "crawler", "run_1", "success", {"pages": 12})
        assert action.timestamp_end == NOW
        assert action.expected_impact == {"pages": 12}

    def test_run_inputs_become_targets(self, action_logger):
        action = action_logger.log_run_inputs("site_1", "crawler", "run_1", {"urls": ["/", "/blog"]})
        assert action.action_type == "run_inputs"
        assert action.targets == {"urls": ["/", "/blog"]}
        assert action.expected_impact is None
        assert action.timestamp_end is None

    def test_run_outputs_become_expected_impact(self, action_logger):
        action = action_logger.log_run_outputs("site_1", "crawler", "run_1", {"pages_crawled": 40})
        assert action.action_type == "run_outputs"
        assert action.expected_impact == {"pages_crawled": 40}
        assert action.targets is None

    def test_metrics_take_precedence_over_outputs(self, action_logger):
        action = action_logger.log_agent_event(
            "site_1", "crawler", "run_outputs", run_id="run_1",
            outputs={"pages_crawled": 40}, metrics={"duration_ms": 900},
        )
        assert action.expected_impact == {"duration_ms": 900}

    def test_run_error_is_high_risk(self, action_logger):
        action = action_logger.log_run_error("site_1", "crawler", "run_1", "TIMEOUT", "took too long")
        assert action.risk_level == "high"
        assert action.notes == "took too long"
        assert action.timestamp_end == NOW

    def test_recommendations_count(self, action_logger):
        recs = [{"id": "r1", "type": "fix", "title": "Compress images", "severity": "high"}]
        action = action_logger.log_recommendations_emitted("site_1", "vitals", "run_1", recs)
        assert action.expected_impact["suggestions_count"] == 1

    def test_unknown_event_type_rejected(self, action_logger):
        with pytest.raises(ValueError):
            action_logger.log_agent_event("site_1", "crawler", "run_exploded")

    def test_store_failure_does_not_raise(self):
        store = RejectingStore(":memory:")
        result = ActionLogger(store).log_run_started("site_1", "crawler", "run_1", {})
        assert result is None
        store.close()
