"""Periodic lifecycle compaction for the meal ledger."""

import asyncio
import logging
from dataclasses import dataclass, field

from macro_planner.services.ledger import MealLedger
from macro_planner.services.lifecycle import CompactionReport

DAY_SECONDS = 24 * 60 * 60

_logger = logging.getLogger(__name__)


@dataclass
class LifecycleRunner:
    """Runs ledger compaction now and then on a fixed interval.

    A run that starts while another is in flight is skipped.
    """

    ledger: MealLedger
    interval_seconds: float = DAY_SECONDS
    _running: bool = field(default=False, init=False)

    @property
    def running(self) -> bool:
        return self._running

    def run_once(self) -> CompactionReport | None:
        """Compact the ledger; returns None when skipped or failed."""
        if self._running:
            _logger.info("Lifecycle run already in progress, skipping")
            return None
        self._running = True
        try:
            return self.ledger.run_lifecycle()
        except Exception:
            _logger.exception("Lifecycle run failed")
            return None
        finally:
            self._running = False

    async def run_forever(self, stop_event: asyncio.Event) -> None:
        """Run immediately, then every ``interval_seconds`` until stopped."""
        while not stop_event.is_set():
            self.run_once()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue
        _logger.info("Lifecycle runner stopped")
