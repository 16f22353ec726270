"""
Attributor — links an outcome event to the recent actions that plausibly
caused it.

For each event:
  1. Resolve the metric's observation window (fast / standard / slow).
  2. Pull every action for the site that started inside
     [event.timestamp - window, event.timestamp], in one query.
  3. Score each candidate on time proximity and change surface, keeping
     the best of each across the whole candidate set.
  4. confidence = time_weight * best_time + surface_weight * best_surface

Persistence is threshold-gated:
  confidence <  0.3  → nothing written
  confidence >= 0.3  → AttributionRecord
  confidence >= 0.6  → + KnowledgeEntry (draft)
  confidence >= 0.8  → + KnowledgeEntry (active)

The best scores are taken across all candidates rather than per action,
so the record says "something in this window explains the change", not
"this specific action did".
"""

import logging
from datetime import timedelta
from typing import Optional
from uuid import uuid4

from attribution_kernel.attribution.scorer import (
    combine_confidence,
    surface_match_score,
    time_proximity_score,
)
from attribution_kernel.errors import KnowledgeWriteError, StoreWriteError
from attribution_kernel.event_store.base import EventStore
from attribution_kernel.models.attribution import (
    AttributionRecord,
    AttributionResult,
    ProcessResult,
)
from attribution_kernel.models.events import OutcomeEvent, OutcomeKind
from attribution_kernel.models.knowledge import (
    ContextScope,
    KnowledgeEntry,
    KnowledgeEvidence,
    KnowledgeStatus,
)
from attribution_kernel.models.policy import AttributionConfig

logger = logging.getLogger(__name__)

REGRESSION_RECOMMENDATION = "Review recent changes and consider rollback"


class Attributor:
    """Scores outcome events against candidate actions and records the result."""

    def __init__(self, store: EventStore, config: Optional[AttributionConfig] = None):
        self.store = store
        self.config = config or AttributionConfig()

    def attribute(self, event: OutcomeEvent) -> Optional[AttributionResult]:
        """
        Evaluate one outcome event. Writes nothing.
        Returns None when no action falls inside the event's window.
        """
        window_hours = self.config.window_policy.window_hours(event.metric_key)
        start = event.timestamp - timedelta(hours=window_hours)

        candidates = self.store.get_actions_by_time_window(
            event.site_id, start, event.timestamp
        )
        if not candidates:
            logger.debug(
                "No actions within %sh of event %s (%s)",
                window_hours, event.event_id, event.metric_key,
            )
            return None

        best_time = 0.0
        best_surface = 0.0
        for action in candidates:
            time_score = time_proximity_score(
                event.timestamp, action.timestamp_start, window_hours
            )
            surface_score = surface_match_score(
                event.metric_key,
                self.config.surface_patterns.metrics_for(action.action_type),
                fallback=self.config.surface_fallback_score,
            )
            best_time = max(best_time, time_score)
            best_surface = max(best_surface, surface_score)

        confidence = combine_confidence(
            best_time,
            best_surface,
            time_weight=self.config.time_weight,
            surface_weight=self.config.surface_weight,
        )

        action_types = ", ".join(dict.fromkeys(a.action_type for a in candidates))
        explanation = (
            f"{len(candidates)} action(s) found within {window_hours:g}h window. "
            f"Action types: {action_types}. "
            f"Time proximity: {best_time:.0%}, Surface match: {best_surface:.0%}"
        )

        logger.debug(
            "Event %s: %d candidate(s), time=%.3f surface=%.3f confidence=%.3f",
            event.event_id, len(candidates), best_time, best_surface, confidence,
        )

        return AttributionResult(
            event_id=event.event_id,
            window_hours=window_hours,
            candidate_actions=candidates,
            time_proximity_score=best_time,
            change_surface_score=best_surface,
            confidence=confidence,
            explanation=explanation,
        )

    def process_attribution(self, event: OutcomeEvent) -> Optional[ProcessResult]:
        """
        Attribute an event and persist the result.

        Returns None when nothing was written. Raises StoreWriteError if the
        attribution record cannot be written, and KnowledgeWriteError if the
        record was written but its knowledge entry was not.
        """
        result = self.attribute(event)
        if result is None or result.confidence < self.config.min_record_confidence:
            return None

        record = AttributionRecord(
            attribution_id=str(uuid4()),
            site_id=event.site_id,
            env=event.env,
            event_id=event.event_id,
            candidate_action_ids=result.candidate_action_ids,
            time_proximity_score=result.time_proximity_score,
            change_surface_score=result.change_surface_score,
            confidence=result.confidence,
            explanation=result.explanation,
        )
        self.store.create_attribution_record(record)
        logger.info(
            "Attributed event %s (%s) to %d action(s), confidence %.2f",
            event.event_id, event.metric_key,
            len(record.candidate_action_ids), record.confidence,
        )

        kb_id = None
        if result.confidence >= self.config.min_knowledge_confidence:
            entry = self._build_knowledge_entry(event, result, record.attribution_id)
            try:
                self.store.create_knowledge_entry(entry)
            except StoreWriteError as exc:
                raise KnowledgeWriteError(
                    f"Attribution {record.attribution_id} written but knowledge "
                    f"entry {entry.kb_id} failed: {exc}",
                    attribution_id=record.attribution_id,
                    kb_id=entry.kb_id,
                ) from exc
            kb_id = entry.kb_id
            logger.info(
                "Recorded %s learning %s for %s on %s",
                entry.status.value, kb_id, event.event_type, event.metric_key,
            )

        return ProcessResult(
            attribution_id=record.attribution_id,
            kb_id=kb_id,
            confidence=result.confidence,
        )

    def _build_knowledge_entry(
        self,
        event: OutcomeEvent,
        result: AttributionResult,
        attribution_id: str,
    ) -> KnowledgeEntry:
        """Turn a qualifying attribution into a lesson."""
        if result.confidence >= self.config.active_knowledge_confidence:
            status = KnowledgeStatus.ACTIVE
        else:
            status = KnowledgeStatus.DRAFT

        recommended = None
        if event.event_type == OutcomeKind.REGRESSION.value:
            recommended = REGRESSION_RECOMMENDATION

        tags = list(dict.fromkeys([event.metric_key, event.event_type, *result.action_types]))

        return KnowledgeEntry(
            kb_id=str(uuid4()),
            title=f"{event.event_type} detected in {event.metric_key}",
            problem_statement=(
                f"{event.metric_key} changed from {event.old_value} to "
                f"{event.new_value} (delta: {event.delta})"
            ),
            context_scope=ContextScope(
                metric_keys=[event.metric_key],
                site_id=event.site_id,
                env=event.env,
            ),
            trigger_pattern=f"{event.event_type} on {event.metric_key}",
            root_cause_hypothesis=result.explanation,
            evidence=KnowledgeEvidence(
                event_ids=[event.event_id],
                action_ids=result.candidate_action_ids,
                attribution_id=attribution_id,
            ),
            recommended_action=recommended,
            avoid_action=None,
            guardrail=None,
            confidence=result.confidence,
            status=status,
            tags=tags,
        )
