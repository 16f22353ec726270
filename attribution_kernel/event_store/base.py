"""
Event Store interface — what the attribution engine needs from the
storage layer that owns the outcome-event and agent-action logs.
"""

from datetime import datetime
from typing import List, Protocol, runtime_checkable

from attribution_kernel.models.attribution import AttributionRecord
from attribution_kernel.models.events import AgentAction, OutcomeEvent
from attribution_kernel.models.knowledge import KnowledgeEntry


@runtime_checkable
class EventStore(Protocol):
    """
    Reads raise StoreReadError and writes raise StoreWriteError on failure.
    """

    def get_actions_by_time_window(
        self, site_id: str, start: datetime, end: datetime
    ) -> List[AgentAction]:
        """All actions for a site whose start timestamp lies in [start, end]."""
        ...

    def get_unattributed_outcome_events(self, site_id: str) -> List[OutcomeEvent]:
        """All outcome events for a site that no attribution record references."""
        ...

    def create_attribution_record(self, record: AttributionRecord) -> AttributionRecord:
        ...

    def create_knowledge_entry(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        ...
