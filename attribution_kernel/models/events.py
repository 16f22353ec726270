"""Outcome events and agent actions — the two logs attribution reads from."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OutcomeKind(str, Enum):
    REGRESSION = "regression"
    IMPROVEMENT = "improvement"


class ActionCategory(str, Enum):
    """Known action vocabulary. Stores may carry other strings."""
    CRAWL = "crawl"
    DEPLOY = "deploy"
    CONTENT_UPDATE = "content_update"
    CONFIG_CHANGE = "config_change"
    INTEGRATION_SETUP = "integration_setup"
    RUN = "run"


class OutcomeEvent(BaseModel):
    """One observed, unexpected change in a tracked metric."""

    model_config = ConfigDict(frozen=True)

    event_id: str
    site_id: str
    env: str = "prod"
    metric_key: str                         # e.g., "LCP", "clicks"
    event_type: str                         # OutcomeKind value, free string allowed
    old_value: Optional[float] = None
    new_value: Optional[float] = None
    delta: Optional[float] = None
    timestamp: datetime


class AgentAction(BaseModel):
    """One thing the system did that could have affected metrics."""

    model_config = ConfigDict(frozen=True)

    action_id: str
    site_id: str
    env: str = "prod"
    action_type: str                        # ActionCategory value
    timestamp_start: datetime
    timestamp_end: Optional[datetime] = None
    targets: Optional[dict] = None
    agent_id: Optional[str] = None
    run_id: Optional[str] = None
    expected_impact: Optional[dict] = None
    notes: Optional[str] = None
    risk_level: Optional[str] = None        # "low" | "medium" | "high"
