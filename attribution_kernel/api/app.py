"""
Attribution Kernel API — FastAPI endpoints.

Exposes the attribution engine to schedulers and the dashboard backend:
- Outcome event and agent action ingestion
- Agent run lifecycle logging
- Dry-run attribution of a single event
- Persisted attribution and batch sweeps
- Attribution record and knowledge entry queries
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from attribution_kernel.action_log import ActionLogger
from attribution_kernel.attribution.attributor import Attributor
from attribution_kernel.attribution.sweeper import BatchSweeper
from attribution_kernel.errors import KnowledgeWriteError, StoreError
from attribution_kernel.event_store.sqlite import SQLiteEventStore
from attribution_kernel.models.events import AgentAction, OutcomeEvent
from attribution_kernel.models.knowledge import KnowledgeStatus
from attribution_kernel.models.policy import AttributionConfig
from attribution_kernel.settings import Settings

logger = logging.getLogger(__name__)


# --- Request Models ---

class OutcomeEventCreateRequest(BaseModel):
    metric_key: str
    event_type: str
    old_value: Optional[float] = None
    new_value: Optional[float] = None
    delta: Optional[float] = None
    timestamp: datetime
    env: Optional[str] = None
    event_id: Optional[str] = None


class AgentActionCreateRequest(BaseModel):
    action_type: str
    timestamp_start: datetime
    timestamp_end: Optional[datetime] = None
    targets: Optional[dict] = None
    agent_id: Optional[str] = None
    run_id: Optional[str] = None
    env: Optional[str] = None
    action_id: Optional[str] = None


class AgentEventRequest(BaseModel):
    agent_id: str
    event_type: str
    run_id: Optional[str] = None
    inputs: Optional[dict] = None
    outputs: Optional[dict] = None
    metrics: Optional[dict] = None
    error_detail: Optional[str] = None


class SweepRequest(BaseModel):
    max_workers: Optional[int] = None


# --- Application Factory ---

def create_app(
    store: Optional[SQLiteEventStore] = None,
    config: Optional[AttributionConfig] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Attribution Kernel API",
        description="Outcome attribution for agent actions",
        version="0.1.0",
    )

    settings = settings or Settings()
    es = store or SQLiteEventStore(settings.db_path)
    attributor = Attributor(es, config)
    sweeper = BatchSweeper(attributor, es)
    action_logger = ActionLogger(es, env=settings.env)

    app.state.settings = settings
    app.state.store = es
    app.state.attributor = attributor
    app.state.sweeper = sweeper
    app.state.action_logger = action_logger

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error("Store failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    # === INGESTION ===

    @app.post("/sites/{site_id}/outcome-events")
    def record_outcome_event(site_id: str, req: OutcomeEventCreateRequest):
        """Append an outcome event (normally written by the anomaly detector)."""
        event = OutcomeEvent(
            event_id=req.event_id or f"evt_{uuid4().hex[:12]}",
            site_id=site_id,
            env=req.env or settings.env,
            metric_key=req.metric_key,
            event_type=req.event_type,
            old_value=req.old_value,
            new_value=req.new_value,
            delta=req.delta,
            timestamp=req.timestamp,
        )
        es.append_outcome_event(event)
        return {"status": "recorded", "event_id": event.event_id}

    @app.post("/sites/{site_id}/actions")
    def record_action(site_id: str, req: AgentActionCreateRequest):
        """Append an agent action."""
        action = AgentAction(
            action_id=req.action_id or f"act_{uuid4().hex[:12]}",
            site_id=site_id,
            env=req.env or settings.env,
            action_type=req.action_type,
            timestamp_start=req.timestamp_start,
            timestamp_end=req.timestamp_end,
            targets=req.targets,
            agent_id=req.agent_id,
            run_id=req.run_id,
        )
        es.append_agent_action(action)
        return {"status": "recorded", "action_id": action.action_id}

    @app.post("/sites/{site_id}/agent-events")
    def record_agent_event(site_id: str, req: AgentEventRequest):
        """Log an agent run lifecycle step as an action."""
        try:
            action = action_logger.log_agent_event(
                site_id,
                req.agent_id,
                req.event_type,
                run_id=req.run_id,
                inputs=req.inputs,
                outputs=req.outputs,
                error_detail=req.error_detail,
                metrics=req.metrics,
            )
        except ValueError as exc:
            raise HTTPException(422, str(exc))
        if action is None:
            return {"status": "dropped", "action_id": None}
        return {"status": "recorded", "action_id": action.action_id}

    @app.get("/sites/{site_id}/outcome-events/unattributed")
    def list_unattributed(site_id: str):
        return [e.model_dump(mode="json") for e in es.get_unattributed_outcome_events(site_id)]

    # === ATTRIBUTION ===

    def _load_event(event_id: str) -> OutcomeEvent:
        event = es.get_outcome_event(event_id)
        if not event:
            raise HTTPException(404, "Outcome event not found")
        return event

    @app.post("/outcome-events/{event_id}/attribute")
    def attribute_event(event_id: str):
        """Dry run: score the event without writing anything."""
        result = attributor.attribute(_load_event(event_id))
        if result is None:
            return {"event_id": event_id, "attributed": False}
        return {
            "event_id": event_id,
            "attributed": True,
            "result": result.model_dump(mode="json"),
        }

    @app.post("/outcome-events/{event_id}/process")
    def process_event(event_id: str):
        """Attribute the event and persist the record (and learning, if any)."""
        event = _load_event(event_id)
        if es.get_attribution_for_event(event_id):
            raise HTTPException(409, "Outcome event already attributed")
        try:
            result = attributor.process_attribution(event)
        except KnowledgeWriteError as exc:
            return {
                "event_id": event_id,
                "attribution_id": exc.attribution_id,
                "kb_id": None,
                "partial": True,
            }
        if result is None:
            return {"event_id": event_id, "attribution_id": None, "kb_id": None}
        return {"event_id": event_id, **result.model_dump(mode="json")}

    @app.post("/sites/{site_id}/attribution/sweep")
    def sweep_site(site_id: str, req: Optional[SweepRequest] = None):
        """Attribute every unattributed outcome event for a site."""
        max_workers = req.max_workers if req and req.max_workers else settings.sweep_max_workers
        summary = sweeper.process_unattributed_events(site_id, max_workers=max_workers)
        return summary.to_dict()

    # === QUERIES ===

    @app.get("/sites/{site_id}/attributions")
    def list_attributions(site_id: str):
        return [r.model_dump(mode="json") for r in es.list_attribution_records(site_id)]

    @app.get("/knowledge")
    def list_knowledge(site_id: Optional[str] = None, status: Optional[KnowledgeStatus] = None):
        entries = es.list_knowledge_entries(site_id=site_id, status=status)
        return [e.model_dump(mode="json") for e in entries]

    @app.get("/config")
    def get_config():
        """Active window tiers, change surfaces and thresholds."""
        return attributor.config.model_dump(mode="json")

    @app.get("/health")
    def health():
        return {"status": "ok", "sweeper": sweeper.status}

    return app
