"""
Action Log — records agent run lifecycle steps as AgentActions so later
outcome events can be attributed to them.

Logging an action must never break the agent run that emits it, so store
failures are logged here and not raised.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from attribution_kernel.errors import StoreWriteError
from attribution_kernel.models.events import AgentAction

logger = logging.getLogger(__name__)

RUN_EVENT_TYPES = (
    "run_started",
    "run_inputs",
    "run_outputs",
    "recommendations_emitted",
    "run_error",
    "run_completed",
)

_TERMINAL_EVENTS = ("run_completed", "run_error")


class ActionLogger:
    """Appends agent lifecycle actions to the event store."""

    def __init__(
        self,
        store,
        env: str = "dev",
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.env = env
        self._clock = clock

    def log_agent_event(
        self,
        site_id: str,
        agent_id: str,
        event_type: str,
        run_id: Optional[str] = None,
        inputs: Optional[dict] = None,
        outputs: Optional[dict] = None,
        error_detail: Optional[str] = None,
        metrics: Optional[dict] = None,
    ) -> Optional[AgentAction]:
        """
        Record one lifecycle step. Returns None if the store rejected it.

        Inputs become the action's targets; metrics, when given, take the
        place of outputs as its expected impact.
        """
        if event_type not in RUN_EVENT_TYPES:
            raise ValueError(f"Unknown agent event type: {event_type}")

        now = self._clock()
        action = AgentAction(
            action_id=f"{event_type}_{uuid4()}",
            site_id=site_id,
            env=self.env,
            action_type=event_type,
            timestamp_start=now,
            timestamp_end=now if event_type in _TERMINAL_EVENTS else None,
            targets=inputs,
            agent_id=agent_id,
            run_id=run_id,
            expected_impact=metrics if metrics is not None else outputs,
            notes=error_detail,
            risk_level="high" if event_type == "run_error" else "low",
        )

        try:
            self.store.append_agent_action(action)
        except StoreWriteError:
            logger.exception("Failed to log %s for %s on %s", event_type, agent_id, site_id)
            return None

        logger.debug("Logged %s for %s (site=%s run=%s)", event_type, agent_id, site_id, run_id)
        return action

    def log_run_started(self, site_id: str, agent_id: str, run_id: str, inputs: dict):
        return self.log_agent_event(site_id, agent_id, "run_started", run_id=run_id, inputs=inputs)

    def log_run_inputs(self, site_id: str, agent_id: str, run_id: str, inputs: dict):
        return self.log_agent_event(site_id, agent_id, "run_inputs", run_id=run_id, inputs=inputs)

    def log_run_outputs(self, site_id: str, agent_id: str, run_id: str, outputs: dict):
        return self.log_agent_event(site_id, agent_id, "run_outputs", run_id=run_id, outputs=outputs)

    def log_recommendations_emitted(
        self, site_id: str, agent_id: str, run_id: str, recommendations: List[Dict]
    ):
        return self.log_agent_event(
            site_id, agent_id, "recommendations_emitted", run_id=run_id,
            outputs={
                "recommendations": recommendations,
                "suggestions_count": len(recommendations),
            },
        )

    def log_run_error(
        self, site_id: str, agent_id: str, run_id: str, error_code: str, error_detail: str
    ):
        return self.log_agent_event(
            site_id, agent_id, "run_error", run_id=run_id,
            outputs={"error_code": error_code, "status": "failed"},
            error_detail=error_detail,
        )

    def log_run_completed(
        self, site_id: str, agent_id: str, run_id: str, status: str, metrics: dict
    ):
        return self.log_agent_event(
            site_id, agent_id, "run_completed", run_id=run_id,
            outputs={"status": status}, metrics=metrics,
        )
