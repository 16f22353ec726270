"""Attribution results and the persisted audit record."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from attribution_kernel.models.events import AgentAction


class AttributionResult(BaseModel):
    """Evaluation of one outcome event against its candidate actions. Never persisted."""

    event_id: str
    window_hours: float
    candidate_actions: List[AgentAction]
    time_proximity_score: float = Field(ge=0, le=1)
    change_surface_score: float = Field(ge=0, le=1)
    confidence: float = Field(ge=0, le=1)
    explanation: str

    @property
    def candidate_action_ids(self) -> List[str]:
        return [a.action_id for a in self.candidate_actions]

    @property
    def action_types(self) -> List[str]:
        """Distinct candidate action types, in first-seen order."""
        return list(dict.fromkeys(a.action_type for a in self.candidate_actions))


class AttributionRecord(BaseModel):
    """
    Append-only claim that an outcome event is explained, with some
    confidence, by a set of candidate actions.

    historical_likelihood_score and confounders are reserved for a future
    frequency-based prior and always hold their defaults.
    """

    attribution_id: str
    site_id: str
    env: str
    event_id: str
    candidate_action_ids: List[str]
    time_proximity_score: float = Field(ge=0, le=1)
    change_surface_score: float = Field(ge=0, le=1)
    historical_likelihood_score: float = 0.0
    confounders: List[str] = []
    confidence: float = Field(ge=0, le=1)
    explanation: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ProcessResult(BaseModel):
    """Identifiers written by one process_attribution call."""

    attribution_id: str
    kb_id: Optional[str] = None
    confidence: float


class SweepSummary(BaseModel):
    """Aggregate counts for one batch sweep of a site."""

    site_id: str
    processed: int = 0
    attributions: int = 0
    learnings: int = 0
    failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "processed": self.processed,
            "attributions": self.attributions,
            "learnings": self.learnings,
        }
