"""
Batch Sweeper — attributes every outcome event a site has not yet explained.

Each event is processed on its own: any failure on one event is logged and
the sweep moves on. Only aggregate counts are reported back.
Events already covered by an attribution record are never fetched, so an
immediate second sweep writes nothing.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

from attribution_kernel.attribution.attributor import Attributor
from attribution_kernel.errors import KnowledgeWriteError
from attribution_kernel.models.attribution import ProcessResult, SweepSummary
from attribution_kernel.models.events import OutcomeEvent

logger = logging.getLogger(__name__)


class BatchSweeper:
    """Runs process_attribution over the unattributed backlog of a site."""

    def __init__(self, attributor: Attributor, store=None):
        self.attributor = attributor
        self.store = store if store is not None else attributor.store
        self._running = False

    @property
    def status(self) -> str:
        return "running" if self._running else "stopped"

    def process_unattributed_events(
        self, site_id: str, max_workers: Optional[int] = None
    ) -> SweepSummary:
        """
        Attribute all unattributed outcome events for a site.

        A failure to fetch the backlog propagates; per-event failures do not.
        With max_workers > 1 events are processed on a thread pool.
        """
        events = self.store.get_unattributed_outcome_events(site_id)
        summary = SweepSummary(site_id=site_id, processed=len(events))

        if max_workers and max_workers > 1 and len(events) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                outcomes = list(pool.map(self._process_one, events))
        else:
            outcomes = [self._process_one(e) for e in events]

        for attributed, learned, failed in outcomes:
            summary.attributions += int(attributed)
            summary.learnings += int(learned)
            summary.failures += int(failed)

        logger.info(
            "Sweep of %s: %d processed, %d attributions, %d learnings, %d failed",
            site_id, summary.processed, summary.attributions,
            summary.learnings, summary.failures,
        )
        return summary

    def _process_one(self, event: OutcomeEvent) -> tuple:
        """Returns (attribution written, learning written, failed)."""
        try:
            result: Optional[ProcessResult] = self.attributor.process_attribution(event)
        except KnowledgeWriteError:
            logger.warning(
                "Partial attribution for event %s: record kept, learning not written",
                event.event_id, exc_info=True,
            )
            return True, False, True
        except Exception:
            logger.exception("Attribution failed for event %s", event.event_id)
            return False, False, True

        if result is None:
            return False, False, False
        return True, result.kb_id is not None, False

    def sweep_all_sites(self, max_workers: Optional[int] = None) -> Dict[str, SweepSummary]:
        """Sweep every site the store knows about. One site's failure does not stop the rest."""
        summaries: Dict[str, SweepSummary] = {}
        sites: List[str] = self.store.list_sites()
        for site_id in sites:
            try:
                summaries[site_id] = self.process_unattributed_events(
                    site_id, max_workers=max_workers
                )
            except Exception:
                logger.exception("Sweep failed for site %s", site_id)
        return summaries

    async def run_async(
        self,
        stop_event: Optional[asyncio.Event] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        """Sweep all sites every sweep_interval_seconds until stop_event is set."""
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()

        try:
            while not stop_event.is_set():
                try:
                    self.sweep_all_sites(max_workers=max_workers)
                except Exception:
                    logger.exception("Attribution sweep failed; retrying next interval")
                try:
                    await asyncio.wait_for(
                        stop_event.wait(),
                        timeout=self.attributor.config.sweep_interval_seconds,
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False
