"""
Base Worker Classes
Pacing, outcome counting and timed logging shared by batch jobs.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-interval ticker.

    ``wait()`` returns at most once per ``interval`` seconds across all
    callers sharing the limiter.
    """

    def __init__(self, interval: float):
        self.interval = max(interval, 0.0)
        self._lock = asyncio.Lock()
        self._next_slot = 0.0

    async def wait(self) -> None:
        if self.interval <= 0:
            return
        async with self._lock:
            now = time.monotonic()
            delay = self._next_slot - now
            if delay > 0:
                await asyncio.sleep(delay)
                now = time.monotonic()
            self._next_slot = now + self.interval


@dataclass
class BatchResult:
    """Per-outcome counts for one batch run."""
    total: int = 0
    synced: int = 0
    removed: int = 0
    skipped: int = 0
    failed: int = 0
    failures: List[Dict[str, str]] = field(default_factory=list)

    def record_failure(self, member_id: str, error: Exception) -> None:
        self.failed += 1
        self.failures.append({"id": member_id, "error": str(error)})

    def summary(self) -> str:
        return (
            f"total={self.total} synced={self.synced} removed={self.removed} "
            f"skipped={self.skipped} failed={self.failed}"
        )


class BaseWorker(ABC):
    """Abstract base class for batch workers with timed start/finish logging."""

    def __init__(self):
        self.start_time: Optional[datetime] = None

    def _elapsed(self) -> float:
        if not self.start_time:
            return 0.0
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()

    def _log_start(self, task_name: str, **context):
        self.start_time = datetime.now(timezone.utc)
        logger.info(f"[START] {task_name} | Context: {context}")

    def _log_complete(self, task_name: str, result_summary: str = ""):
        logger.info(f"[COMPLETE] {task_name} | Duration: {self._elapsed():.2f}s | {result_summary}")

    def _log_error(self, task_name: str, error: Exception):
        logger.error(f"[ERROR] {task_name} | Duration: {self._elapsed():.2f}s | Error: {error}")

    @abstractmethod
    async def execute(self, *args, **kwargs) -> Any:
        """Run the job. Must be implemented by subclasses."""
