"""
Member Embedding Sync Batch
Walks the full member table and publishes (or removes) each member's
search vector.

Members are fed through an asyncio queue to a bounded pool of workers. A
shared fixed-interval ticker paces calls to the embedding model and the
vector index; with the default concurrency of one, a single member is in
flight at a time.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from members_api.repositories.members import MemberRepository
from members_api.services.embedding import LookupTables
from members_api.services.embedding_sync import EmbeddingSyncService, SyncOutcome
from members_api.workers.base import BaseWorker, BatchResult, RateLimiter

logger = logging.getLogger(__name__)


class MemberSyncBatch(BaseWorker):
    """Re-sync every member's vector from the member table."""

    TASK_NAME = "member_embedding_sync"

    def __init__(
        self,
        member_repository: MemberRepository,
        sync_service: EmbeddingSyncService,
        concurrency: int = 1,
        interval: float = 0.1,
    ):
        super().__init__()
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.member_repository = member_repository
        self.sync_service = sync_service
        self.concurrency = concurrency
        self.rate_limiter = RateLimiter(interval)

    def select_members(self, members: List[Dict[str, Any]], result: BatchResult) -> List[Dict[str, Any]]:
        """
        Drop active members without a name.

        Deleted members are kept regardless of name so their vectors are removed.
        """
        selected = []
        for member in members:
            if not member.get("deleted") and not str(member.get("name") or "").strip():
                logger.info(f"[Batch] Skipping unnamed member {member.get('id')}")
                result.skipped += 1
                continue
            selected.append(member)
        return selected

    async def _process(self, member: Dict[str, Any], lookups: LookupTables, result: BatchResult) -> None:
        member_id = str(member.get("id"))
        await self.rate_limiter.wait()
        try:
            outcome = await self.sync_service.sync_member(member, lookups)
        except Exception as e:
            logger.error(f"[Batch] Failed to sync member {member_id}: {e}")
            result.record_failure(member_id, e)
            return

        if outcome == SyncOutcome.SYNCED:
            result.synced += 1
        elif outcome == SyncOutcome.REMOVED:
            result.removed += 1
        else:
            result.skipped += 1

    async def _worker(self, queue: asyncio.Queue, lookups: LookupTables, result: BatchResult) -> None:
        while True:
            member = await queue.get()
            try:
                await self._process(member, lookups, result)
            finally:
                queue.task_done()

    async def execute(self, dry_run: bool = False, limit: Optional[int] = None) -> BatchResult:
        self._log_start(self.TASK_NAME, dry_run=dry_run, concurrency=self.concurrency, limit=limit)
        result = BatchResult()

        try:
            members = self.member_repository.scan_all()
            result.total = len(members)
            members = self.select_members(members, result)
            if limit is not None:
                members = members[:limit]

            if dry_run:
                for member in members:
                    action = "remove" if member.get("deleted") else "sync"
                    logger.info(f"[Batch] (dry run) would {action} {member.get('id')} ({member.get('name')})")
                self._log_complete(self.TASK_NAME, f"dry run, {len(members)} members selected")
                return result

            lookups = self.sync_service.load_lookup_tables()
        except Exception as e:
            self._log_error(self.TASK_NAME, e)
            raise

        queue: asyncio.Queue = asyncio.Queue()
        for member in members:
            queue.put_nowait(member)

        workers = [
            asyncio.create_task(self._worker(queue, lookups, result))
            for _ in range(min(self.concurrency, max(len(members), 1)))
        ]
        try:
            await queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        self._log_complete(self.TASK_NAME, result.summary())
        return result
