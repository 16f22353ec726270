"""
Scheduled sweep entry point — runs the batch sweeper over every site on a
fixed interval (hourly by default).
"""

import asyncio
import logging
from typing import Optional

from attribution_kernel.attribution.attributor import Attributor
from attribution_kernel.attribution.sweeper import BatchSweeper
from attribution_kernel.event_store.sqlite import SQLiteEventStore
from attribution_kernel.models.policy import AttributionConfig
from attribution_kernel.settings import Settings, configure_logging

logger = logging.getLogger(__name__)


def build_sweeper(
    settings: Settings, store: Optional[SQLiteEventStore] = None
) -> BatchSweeper:
    store = store or SQLiteEventStore(settings.db_path)
    config = AttributionConfig(sweep_interval_seconds=settings.sweep_interval_seconds)
    return BatchSweeper(Attributor(store, config), store)


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)
    sweeper = build_sweeper(settings)
    logger.info(
        "Starting attribution sweeps every %ss against %s",
        settings.sweep_interval_seconds, settings.db_path,
    )
    try:
        asyncio.run(sweeper.run_async(max_workers=settings.sweep_max_workers))
    except KeyboardInterrupt:
        logger.info("Attribution sweeps stopped")


if __name__ == "__main__":
    main()
