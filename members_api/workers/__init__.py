# Workers package - batch jobs run outside the request path

from members_api.workers.base import BaseWorker, BatchResult, RateLimiter
from members_api.workers.member_sync import MemberSyncBatch

__all__ = [
    "BaseWorker",
    "BatchResult",
    "RateLimiter",
    "MemberSyncBatch",
]
