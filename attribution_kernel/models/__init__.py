"""Attribution kernel data models."""

from attribution_kernel.models.attribution import (
    AttributionRecord,
    AttributionResult,
    ProcessResult,
    SweepSummary,
)
from attribution_kernel.models.events import (
    ActionCategory,
    AgentAction,
    OutcomeEvent,
    OutcomeKind,
)
from attribution_kernel.models.knowledge import (
    ContextScope,
    KnowledgeEntry,
    KnowledgeEvidence,
    KnowledgeStatus,
)
from attribution_kernel.models.policy import (
    AttributionConfig,
    SurfacePatternTable,
    WindowPolicy,
)

__all__ = [
    "ActionCategory",
    "AgentAction",
    "AttributionConfig",
    "AttributionRecord",
    "AttributionResult",
    "ContextScope",
    "KnowledgeEntry",
    "KnowledgeEvidence",
    "KnowledgeStatus",
    "OutcomeEvent",
    "OutcomeKind",
    "ProcessResult",
    "SurfacePatternTable",
    "SweepSummary",
    "WindowPolicy",
]
