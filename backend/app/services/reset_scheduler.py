"""Reset Scheduler — periodic recurring-task resets using asyncio.

The first pass runs right after startup so cycles that elapsed while the
server was down are reset before the first interval has passed.

Usage:
    scheduler = ResetScheduler(service=TaskResetService(), check_interval_minutes=60)
    await scheduler.start()
    # ... app runs ...
    scheduler.stop()
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from app.services.task_reset import TaskResetService

logger = logging.getLogger(__name__)

# Upper bound on the wait before retrying a failed pass
_RETRY_SECONDS = 60.0


class ResetScheduler:
    """Runs TaskResetService.reset_eligible_tasks on a fixed interval.

    Single-process: one asyncio background task per application instance.
    """

    def __init__(
        self,
        service: TaskResetService,
        check_interval_minutes: float = 60.0,
        enabled: bool = True,
    ) -> None:
        self.service = service
        self.interval_seconds = check_interval_minutes * 60
        self.enabled = enabled
        self._task: asyncio.Task | None = None
        self.last_run_at: datetime | None = None
        self.last_reset_count = 0
        self.last_error: str | None = None

    async def start(self) -> None:
        """Schedule recurring-task resets in the background."""
        if not self.enabled:
            logger.info("Recurring task resets disabled (RESET_ENABLED=false)")
            return
        if self.is_running:
            return

        self._task = asyncio.create_task(self._loop(), name="recurring-task-resets")
        logger.info("Recurring task resets checked every %.1f minutes", self.interval_seconds / 60)

    def stop(self) -> None:
        """Cancel the background task, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.info("Recurring task resets stopped")
        self._task = None

    async def _loop(self) -> None:
        delay = 0.0
        while True:
            await asyncio.sleep(delay)
            try:
                count = await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.last_error = str(e)
                delay = min(self.interval_seconds, _RETRY_SECONDS)
                logger.error("Reset pass failed, retrying in %.0fs: %s", delay, e, exc_info=True)
                continue
            if count:
                logger.info("Reset pass started a new cycle for %d task(s)", count)
            delay = self.interval_seconds

    async def run_once(self) -> int:
        """Run one reset pass in the default executor; returns the number of tasks reset."""
        loop = asyncio.get_running_loop()
        count = await loop.run_in_executor(None, self.service.reset_eligible_tasks)
        self.last_run_at = datetime.now(timezone.utc)
        self.last_reset_count = count
        self.last_error = None
        return count

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def get_status(self) -> dict:
        """Get scheduler status for health checks."""
        return {
            "enabled": self.enabled,
            "running": self.is_running,
            "interval_minutes": self.interval_seconds / 60,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_reset_count": self.last_reset_count,
            "last_error": self.last_error,
        }
