"""Knowledge entries — lessons promoted from high-confidence attributions."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class KnowledgeStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"


class ContextScope(BaseModel):
    """Where a lesson applies."""

    metric_keys: List[str]
    site_id: str
    env: str


class KnowledgeEvidence(BaseModel):
    event_ids: List[str]
    action_ids: List[str]
    attribution_id: Optional[str] = None


class KnowledgeEntry(BaseModel):
    """
    A human/agent-readable lesson derived from an attribution.

    Only written when the attribution's confidence clears the knowledge
    threshold; downstream reviewers may later promote or demote it.
    """

    kb_id: str
    title: str
    problem_statement: str
    context_scope: ContextScope
    trigger_pattern: str
    root_cause_hypothesis: str
    evidence: KnowledgeEvidence
    recommended_action: Optional[str] = None
    avoid_action: Optional[str] = None
    guardrail: Optional[str] = None
    confidence: float = Field(ge=0, le=1)
    status: KnowledgeStatus = KnowledgeStatus.DRAFT
    tags: List[str] = []
    created_at: datetime = Field(default_factory=datetime.utcnow)
